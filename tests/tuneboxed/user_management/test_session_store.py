from pathlib import Path

import pytest

from tuneboxed.user_management import (
    CURRENT_USER_KEY,
    USERS_KEY,
    AlreadyExistsError,
    AuthErrorKind,
    InvalidCredentialsError,
    InvalidEmailError,
    LocalKeyValueStore,
    MissingFieldError,
    NotAuthenticatedError,
    PasswordMismatchError,
    PasswordTooShortError,
    PersistenceError,
    SessionStore,
    SignedIn,
    SignedOut,
    UsernameTooShortError,
)

pytestmark = pytest.mark.auth


def build_store(tmp_path: Path, **kwargs) -> SessionStore:
    return SessionStore(LocalKeyValueStore(tmp_path / "storage.json"), **kwargs)


def test_register_then_login_round_trip(tmp_path: Path):
    store = build_store(tmp_path)

    created = store.register("alice", "alice@example.com", "secret1", "secret1")
    assert store.is_signed_in
    store.logout()

    account = store.login("ALICE", "secret1")
    assert account.id == created.id
    assert account.username == "alice"
    assert account.email == "alice@example.com"
    assert isinstance(store.session, SignedIn)
    assert store.session.account.id == created.id


def test_register_scenario(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("alice", "alice@example.com", "secret1", "secret1")

    with pytest.raises(InvalidCredentialsError) as excinfo:
        store.login("alice", "wrong")
    assert excinfo.value.kind is AuthErrorKind.INVALID_CREDENTIALS

    with pytest.raises(AlreadyExistsError):
        store.register("alice", "other@example.com", "pw123456", "pw123456")


def test_register_new_account_defaults(tmp_path: Path):
    store = build_store(tmp_path)

    account = store.register("bob", "bob@example.com", "builder1", "builder1")

    assert account.follower_count == 0
    assert account.following_count == 0
    assert account.post_count == 0
    assert account.is_verified is False
    assert account.is_premium is False
    assert account.password_secret == "builder1"
    assert account.created_at.tzinfo is not None


def test_register_can_mark_accounts_verified(tmp_path: Path):
    store = build_store(tmp_path, verify_on_register=True)

    assert store.register("bob", "bob@example.com", "builder1", "builder1").is_verified


def test_usernames_differing_in_case_collide(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("Carol", "carol@example.com", "secret1", "secret1")

    with pytest.raises(AlreadyExistsError):
        store.register("cAROL", "carol2@example.com", "secret1", "secret1")
    assert len(store.get_all_accounts()) == 1


def test_emails_differing_in_case_collide(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("carol", "carol@example.com", "secret1", "secret1")

    with pytest.raises(AlreadyExistsError):
        store.register("caroline", "CAROL@Example.com", "secret1", "secret1")


@pytest.mark.parametrize(
    "args, error",
    [
        (("", "a@example.com", "secret1", "secret1"), MissingFieldError),
        (("dan", "", "secret1", "secret1"), MissingFieldError),
        (("dan", "a@example.com", "", ""), MissingFieldError),
        (("dan", "a@example.com", "secret1", "secret2"), PasswordMismatchError),
        (("dan", "not-an-email", "secret1", "secret1"), InvalidEmailError),
        (("dn", "a@example.com", "secret1", "secret1"), UsernameTooShortError),
        (("dan", "a@example.com", "short", "short"), PasswordTooShortError),
    ],
)
def test_register_validation_failures(tmp_path: Path, args, error):
    store = build_store(tmp_path)

    with pytest.raises(error):
        store.register(*args)
    assert store.get_all_accounts() == []
    assert isinstance(store.session, SignedOut)


def test_register_validation_runs_before_uniqueness(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("alice", "alice@example.com", "secret1", "secret1")

    with pytest.raises(PasswordMismatchError):
        store.register("alice", "alice@example.com", "secret1", "secret9")


def test_login_requires_both_fields(tmp_path: Path):
    store = build_store(tmp_path)

    with pytest.raises(MissingFieldError):
        store.login("", "secret1")
    with pytest.raises(MissingFieldError):
        store.login("alice", "")


def test_login_unknown_user_is_invalid_credentials(tmp_path: Path):
    store = build_store(tmp_path)

    with pytest.raises(InvalidCredentialsError):
        store.login("nobody", "secret1")


def test_login_password_is_case_sensitive(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("erin", "erin@example.com", "Secret1", "Secret1")
    store.logout()

    with pytest.raises(InvalidCredentialsError):
        store.login("erin", "secret1")


def test_logout_is_idempotent(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("frank", "frank@example.com", "secret1", "secret1")

    store.logout()
    store.logout()

    assert isinstance(store.session, SignedOut)
    assert store.current_account is None
    assert CURRENT_USER_KEY not in store.storage.read_all()


def test_update_profile_overwrites_only_provided_fields(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("gina", "gina@example.com", "secret1", "secret1")
    store.update_profile(first_name="Gina", last_name="Lopez", bio="Crate digger")

    updated = store.update_profile(first_name="", bio="Synth collector")

    assert updated.first_name == "Gina"
    assert updated.last_name == "Lopez"
    assert updated.bio == "Synth collector"
    assert updated.full_name == "Gina Lopez"
    stored = store.get_all_accounts()[0]
    assert stored.bio == "Synth collector"


def test_update_profile_after_logout_fails_without_mutation(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("hank", "hank@example.com", "secret1", "secret1")
    store.logout()
    before = store.storage.read_all()

    with pytest.raises(NotAuthenticatedError):
        store.update_profile(bio="Should not stick")

    assert store.storage.read_all() == before
    assert store.get_all_accounts()[0].bio == ""


def test_update_username_conflict_keeps_original(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("ivy", "ivy@example.com", "secret1", "secret1")
    store.register("jack", "jack@example.com", "secret1", "secret1")

    with pytest.raises(AlreadyExistsError):
        store.update_username("IVY")

    assert store.current_account.username == "jack"
    assert sorted(a.username for a in store.get_all_accounts()) == ["ivy", "jack"]


def test_update_username_allows_case_change_of_own_name(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("kim", "kim@example.com", "secret1", "secret1")

    renamed = store.update_username("KIM")
    store.logout()

    assert renamed.username == "KIM"
    assert store.login("kim", "secret1").id == renamed.id


def test_update_username_validation(tmp_path: Path):
    store = build_store(tmp_path)

    with pytest.raises(NotAuthenticatedError):
        store.update_username("newname")

    store.register("lee", "lee@example.com", "secret1", "secret1")
    with pytest.raises(UsernameTooShortError):
        store.update_username("le")


def test_counters_verify_and_premium(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("mia", "mia@example.com", "secret1", "secret1")

    store.verify()
    store.update_follower_count(1250)
    store.update_following_count(350)
    store.update_post_count(42)
    store.set_premium(True)
    account = store.toggle_premium()

    assert account.is_verified is True
    assert account.follower_count == 1250
    assert account.following_count == 350
    assert account.post_count == 42
    assert account.is_premium is False

    with pytest.raises(ValueError):
        store.update_follower_count(-1)


def test_mutators_require_session(tmp_path: Path):
    store = build_store(tmp_path)

    for call in (
        store.verify,
        lambda: store.update_follower_count(1),
        lambda: store.update_following_count(1),
        store.toggle_premium,
    ):
        with pytest.raises(NotAuthenticatedError):
            call()


def test_returned_accounts_are_copies(tmp_path: Path):
    store = build_store(tmp_path)
    account = store.register("nora", "nora@example.com", "secret1", "secret1")

    account.username = "hijacked"
    store.session.account.username = "hijacked"

    assert store.current_account.username == "nora"
    assert store.get_all_accounts()[0].username == "nora"
    assert build_store(tmp_path).current_account.username == "nora"


def test_state_survives_restart(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("omar", "omar@example.com", "secret1", "secret1")
    store.update_profile(bio="Vinyl only")
    before = store.get_all_accounts()

    restarted = build_store(tmp_path)

    assert restarted.get_all_accounts() == before
    assert restarted.current_account == before[0]


def test_logged_out_state_survives_restart(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("pia", "pia@example.com", "secret1", "secret1")
    store.logout()

    restarted = build_store(tmp_path)

    assert not restarted.is_signed_in
    assert len(restarted.get_all_accounts()) == 1


def test_reset_on_launch_discards_stored_state(tmp_path: Path):
    store = build_store(tmp_path)
    store.register("quinn", "quinn@example.com", "secret1", "secret1")

    restarted = build_store(tmp_path, reset_on_launch=True)

    assert restarted.get_all_accounts() == []
    assert not restarted.is_signed_in
    assert not (tmp_path / "storage.json").exists()


def test_failed_register_write_rolls_back(memory_storage):
    store = SessionStore(memory_storage)
    memory_storage.fail_writes = True

    with pytest.raises(PersistenceError) as excinfo:
        store.register("rose", "rose@example.com", "secret1", "secret1")

    assert excinfo.value.kind is AuthErrorKind.PERSISTENCE_ERROR
    assert store.get_all_accounts() == []
    assert not store.is_signed_in

    memory_storage.fail_writes = False
    assert store.register("rose", "rose@example.com", "secret1", "secret1").username == "rose"


def test_failed_update_write_rolls_back(memory_storage):
    store = SessionStore(memory_storage)
    store.register("sam", "sam@example.com", "secret1", "secret1")
    memory_storage.fail_writes = True

    with pytest.raises(PersistenceError):
        store.update_username("samuel")
    with pytest.raises(PersistenceError):
        store.update_profile(bio="lost")

    assert store.current_account.username == "sam"
    assert store.current_account.bio == ""
    assert store.get_all_accounts()[0].username == "sam"


def test_failed_logout_write_keeps_session(memory_storage):
    store = SessionStore(memory_storage)
    store.register("tia", "tia@example.com", "secret1", "secret1")
    memory_storage.fail_writes = True

    with pytest.raises(PersistenceError):
        store.logout()

    assert store.is_signed_in
    assert store.current_account.username == "tia"
    memory_storage.fail_writes = False
    assert SessionStore(memory_storage).is_signed_in


def test_update_counts_sets_counters_in_one_write(memory_storage):
    store = SessionStore(memory_storage)
    store.register("ugo", "ugo@example.com", "secret1", "secret1")
    writes_before = memory_storage.writes

    account = store.update_counts(followers=1250, posts=42)

    assert memory_storage.writes == writes_before + 1
    assert (account.follower_count, account.following_count, account.post_count) == (1250, 0, 42)


def test_failed_update_counts_changes_nothing(memory_storage):
    store = SessionStore(memory_storage)
    store.register("val", "val@example.com", "secret1", "secret1")
    memory_storage.fail_writes = True

    with pytest.raises(PersistenceError):
        store.update_counts(followers=10, following=20, posts=30)

    account = store.current_account
    assert (account.follower_count, account.following_count, account.post_count) == (0, 0, 0)


def test_update_counts_rejects_negative_before_writing(memory_storage):
    store = SessionStore(memory_storage)
    store.register("wes", "wes@example.com", "secret1", "secret1")
    writes_before = memory_storage.writes

    with pytest.raises(ValueError):
        store.update_counts(followers=5, posts=-1)

    assert memory_storage.writes == writes_before
    assert store.current_account.follower_count == 0


def test_failed_login_write_keeps_signed_out(memory_storage):
    store = SessionStore(memory_storage)
    store.register("tess", "tess@example.com", "secret1", "secret1")
    store.logout()
    memory_storage.fail_writes = True

    with pytest.raises(PersistenceError):
        store.login("tess", "secret1")

    assert not store.is_signed_in


def test_stale_session_pointer_starts_signed_out(memory_storage, log_records):
    memory_storage.data = {
        USERS_KEY: [],
        CURRENT_USER_KEY: {"id": "ghost", "username": "ghost", "email": "g@example.com"},
    }

    store = SessionStore(memory_storage)

    assert not store.is_signed_in
    assert any(getattr(r, "event", None) == "session.stale" for r in log_records)


def test_malformed_accounts_are_skipped_and_logged(memory_storage, log_records):
    memory_storage.data = {
        USERS_KEY: [
            {"username": "missing-id"},
            {
                "id": "u1",
                "username": "uma",
                "email": "uma@example.com",
                "password_secret": "secret1",
            },
        ]
    }

    store = SessionStore(memory_storage)

    assert [a.username for a in store.get_all_accounts()] == ["uma"]
    assert any(getattr(r, "event", None) == "storage.decode_error" for r in log_records)


def test_hashed_passwords(tmp_path: Path):
    store = build_store(tmp_path, hash_passwords=True)

    account = store.register("vera", "vera@example.com", "secret1", "secret1")
    store.logout()

    assert account.password_scheme == "bcrypt"
    assert account.password_secret != "secret1"
    assert account.password_secret.startswith("$2")
    assert store.login("vera", "secret1").id == account.id
    with pytest.raises(InvalidCredentialsError):
        store.login("vera", "secret2")


def test_hashed_passwords_longer_than_72_bytes(tmp_path: Path):
    store = build_store(tmp_path, hash_passwords=True)
    long_password = "p" * 80

    store.register("xena", "xena@example.com", long_password, long_password)
    store.logout()

    assert store.login("xena", long_password).username == "xena"
    store.logout()
    with pytest.raises(InvalidCredentialsError):
        store.login("xena", "p" * 79 + "q")


def test_plain_records_still_log_in_after_enabling_hashing(tmp_path: Path):
    build_store(tmp_path).register("will", "will@example.com", "secret1", "secret1")

    store = build_store(tmp_path, hash_passwords=True)
    store.logout()

    assert store.login("will", "secret1").password_scheme == "plain"
