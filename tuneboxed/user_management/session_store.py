"""Registered accounts plus the single active session, kept durable."""
from __future__ import annotations

import base64
import copy
import hashlib
import threading
from dataclasses import replace
from typing import Any, Dict, List, Optional

import bcrypt

from .. import logging_manager as log_mgr
from .errors import (
    AlreadyExistsError,
    InvalidCredentialsError,
    NotAuthenticatedError,
)
from .local_storage import LocalKeyValueStore
from .storage_base import CURRENT_USER_KEY, USERS_KEY, KeyValueStorageBase
from .user_account import (
    BCRYPT_SCHEME,
    PLAIN_SCHEME,
    SIGNED_OUT,
    SessionState,
    SignedIn,
    UserAccount,
)
from .validation import check_username, require_fields, validate_registration

logger = log_mgr.get_logger("session")


class SessionStore:
    """Coordinate registration, sign-in and profile changes for one device.

    Every public method runs under a per-instance lock and either commits
    both the in-memory state and the durable area, or neither.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorageBase] = None,
        *,
        reset_on_launch: bool = False,
        hash_passwords: bool = False,
        verify_on_register: bool = False,
    ) -> None:
        self._storage = storage or LocalKeyValueStore()
        self._hash_passwords = hash_passwords
        self._verify_on_register = verify_on_register
        self._lock = threading.RLock()
        self._accounts: List[UserAccount] = []
        self._session: SessionState = SIGNED_OUT

        if reset_on_launch:
            logger.info("Resetting stored accounts on launch.", extra={"event": "session.reset"})
            self._storage.clear()
        self.reload()

    @classmethod
    def from_settings(cls, settings: Any) -> "SessionStore":
        """Build a store from a :class:`~tuneboxed.config_manager.TuneBoxedSettings`."""
        return cls(
            LocalKeyValueStore(settings.storage_path),
            reset_on_launch=settings.reset_on_launch,
            hash_passwords=settings.hash_passwords,
            verify_on_register=settings.verify_on_register,
        )

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------
    @property
    def session(self) -> SessionState:
        if isinstance(self._session, SignedIn):
            return SignedIn(copy.copy(self._session.account))
        return self._session

    @property
    def is_signed_in(self) -> bool:
        return isinstance(self._session, SignedIn)

    @property
    def current_account(self) -> Optional[UserAccount]:
        if isinstance(self._session, SignedIn):
            return copy.copy(self._session.account)
        return None

    @property
    def storage(self) -> KeyValueStorageBase:
        return self._storage

    def reload(self) -> None:
        """Re-read accounts and the session pointer from durable storage."""
        with self._lock:
            data = self._storage.read_all()
            accounts = _decode_accounts(data.get(USERS_KEY))
            self._accounts = accounts
            self._session = _restore_session(data.get(CURRENT_USER_KEY), accounts)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def register(
        self, username: str, email: str, password: str, confirm_password: str
    ) -> UserAccount:
        """Create an account and sign it in."""
        with self._lock, log_mgr.log_context(operation="register", username=username):
            validate_registration(username, email, password, confirm_password)
            if self._find_by_username(username) is not None:
                raise AlreadyExistsError(f"Username '{username}' is already taken")
            if self._find_by_email(email) is not None:
                raise AlreadyExistsError(f"Email '{email}' is already registered")

            scheme = BCRYPT_SCHEME if self._hash_passwords else PLAIN_SCHEME
            account = UserAccount(
                username=username,
                email=email,
                password_secret=_encode_password(password, scheme),
                password_scheme=scheme,
                is_verified=self._verify_on_register,
            )
            self._commit([*self._accounts, account], SignedIn(account))
            logger.info(
                "Registered account.",
                extra={"event": "session.register", "account_id": account.id},
            )
            return copy.copy(account)

    def login(self, username: str, password: str) -> UserAccount:
        with self._lock, log_mgr.log_context(operation="login", username=username):
            require_fields(username=username, password=password)
            account = self._find_by_username(username)
            if account is None or not _password_matches(account, password):
                logger.info("Rejected credentials.", extra={"event": "session.login_failed"})
                raise InvalidCredentialsError("Invalid username or password")

            self._storage.write({CURRENT_USER_KEY: account.to_dict()})
            self._session = SignedIn(account)
            logger.info(
                "Signed in.", extra={"event": "session.login", "account_id": account.id}
            )
            return copy.copy(account)

    def logout(self) -> None:
        """Sign out; does nothing when no session is active."""
        with self._lock:
            if not isinstance(self._session, SignedIn):
                return
            account_id = self._session.account.id
            self._commit(self._accounts, SIGNED_OUT)
            logger.info(
                "Signed out.", extra={"event": "session.logout", "account_id": account_id}
            )

    # ------------------------------------------------------------------
    # Profile mutation
    # ------------------------------------------------------------------
    def update_profile(
        self,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        bio: Optional[str] = None,
        profile_picture_url: Optional[str] = None,
    ) -> UserAccount:
        """Overwrite the provided non-empty fields; blank ones are left alone."""
        provided = {
            "first_name": first_name,
            "last_name": last_name,
            "bio": bio,
            "profile_picture_url": profile_picture_url,
        }
        changes = {key: value for key, value in provided.items() if value}
        return self._update_current("update_profile", **changes)

    def update_username(self, new_username: str) -> UserAccount:
        with self._lock:
            current = self._require_current()
            check_username(new_username)
            existing = self._find_by_username(new_username)
            if existing is not None and existing.id != current.id:
                raise AlreadyExistsError(f"Username '{new_username}' is already taken")
            return self._update_current("update_username", username=new_username)

    def verify(self) -> UserAccount:
        return self._update_current("verify", is_verified=True)

    def update_follower_count(self, count: int) -> UserAccount:
        return self._update_current("update_follower_count", follower_count=_counter(count))

    def update_following_count(self, count: int) -> UserAccount:
        return self._update_current("update_following_count", following_count=_counter(count))

    def update_post_count(self, count: int) -> UserAccount:
        return self._update_current("update_post_count", post_count=_counter(count))

    def update_counts(
        self,
        followers: Optional[int] = None,
        following: Optional[int] = None,
        posts: Optional[int] = None,
    ) -> UserAccount:
        """Set any of the three counters in a single durable write."""
        provided = {
            "follower_count": followers,
            "following_count": following,
            "post_count": posts,
        }
        changes = {key: _counter(value) for key, value in provided.items() if value is not None}
        return self._update_current("update_counts", **changes)

    def set_premium(self, enabled: bool) -> UserAccount:
        return self._update_current("set_premium", is_premium=bool(enabled))

    def toggle_premium(self) -> UserAccount:
        with self._lock:
            current = self._require_current()
            return self._update_current("toggle_premium", is_premium=not current.is_premium)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------
    def get_all_accounts(self) -> List[UserAccount]:
        with self._lock:
            return [copy.copy(account) for account in self._accounts]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _find_by_username(self, username: str) -> Optional[UserAccount]:
        wanted = username.lower()
        return next((a for a in self._accounts if a.username.lower() == wanted), None)

    def _find_by_email(self, email: str) -> Optional[UserAccount]:
        wanted = email.lower()
        return next((a for a in self._accounts if a.email.lower() == wanted), None)

    def _require_current(self) -> UserAccount:
        if not isinstance(self._session, SignedIn):
            raise NotAuthenticatedError("No account is signed in")
        return self._session.account

    def _update_current(self, operation: str, **changes: Any) -> UserAccount:
        with self._lock:
            current = self._require_current()
            with log_mgr.log_context(operation=operation, username=current.username):
                updated = replace(current, **changes)
                accounts = [updated if a.id == updated.id else a for a in self._accounts]
                self._commit(accounts, SignedIn(updated))
                logger.info(
                    "Updated account.",
                    extra={
                        "event": f"session.{operation}",
                        "account_id": updated.id,
                        "fields": ",".join(sorted(changes)),
                    },
                )
                return copy.copy(updated)

    def _commit(self, accounts: List[UserAccount], session: SessionState) -> None:
        # Durable write first; in-memory state only changes once it succeeded.
        updates: Dict[str, Any] = {USERS_KEY: [account.to_dict() for account in accounts]}
        removals: List[str] = []
        if isinstance(session, SignedIn):
            updates[CURRENT_USER_KEY] = session.account.to_dict()
        else:
            removals.append(CURRENT_USER_KEY)
        self._storage.write(updates, removals)
        self._accounts = accounts
        self._session = session


def _counter(value: int) -> int:
    count = int(value)
    if count < 0:
        raise ValueError(f"Counts cannot be negative (got {value})")
    return count


def _bcrypt_input(password: str) -> bytes:
    # bcrypt only reads 72 bytes; a SHA-256 digest keeps every password under that.
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def _encode_password(password: str, scheme: str) -> str:
    if scheme == BCRYPT_SCHEME:
        return bcrypt.hashpw(_bcrypt_input(password), bcrypt.gensalt()).decode("utf-8")
    return password


def _password_matches(account: UserAccount, password: str) -> bool:
    if account.password_scheme == BCRYPT_SCHEME:
        try:
            return bcrypt.checkpw(_bcrypt_input(password), account.password_secret.encode("utf-8"))
        except ValueError:
            logger.warning(
                "Stored bcrypt hash is malformed.",
                extra={"event": "session.bad_hash", "account_id": account.id},
            )
            return False
    return account.password_secret == password


def _decode_accounts(raw: Any) -> List[UserAccount]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning(
            "Stored accounts are not a list; ignoring them.",
            extra={"event": "storage.decode_error", "key": USERS_KEY},
        )
        return []
    accounts: List[UserAccount] = []
    for index, item in enumerate(raw):
        try:
            accounts.append(UserAccount.from_dict(item))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning(
                "Skipping malformed stored account at index %d: %s",
                index,
                exc,
                extra={"event": "storage.decode_error", "key": USERS_KEY},
            )
    return accounts


def _restore_session(raw: Any, accounts: List[UserAccount]) -> SessionState:
    if raw is None:
        return SIGNED_OUT
    account_id = raw.get("id") if isinstance(raw, dict) else None
    if account_id is None:
        logger.warning(
            "Stored session pointer is malformed; starting signed out.",
            extra={"event": "storage.decode_error", "key": CURRENT_USER_KEY},
        )
        return SIGNED_OUT
    account = next((a for a in accounts if a.id == account_id), None)
    if account is None:
        logger.warning(
            "Stored session refers to an unknown account; starting signed out.",
            extra={"event": "session.stale", "account_id": account_id},
        )
        return SIGNED_OUT
    logger.debug(
        "Restored session.", extra={"event": "session.restored", "account_id": account.id}
    )
    return SignedIn(account)


__all__ = ["SessionStore"]
