"""Account and session commands for the tuneboxed CLI."""

from __future__ import annotations

import getpass
import logging
from pathlib import Path
from typing import Callable, Dict, Optional

from .. import logging_manager as log_mgr
from ..config_manager import TuneBoxedSettings, load_configuration
from ..user_management import AuthError, AuthErrorKind, SessionStore, UserAccount
from ..user_management.validation import is_strong_password

logger = log_mgr.get_logger("cli")

ERROR_MESSAGES: Dict[AuthErrorKind, str] = {
    AuthErrorKind.MISSING_FIELD: "Please fill in all required fields.",
    AuthErrorKind.PASSWORD_MISMATCH: "Passwords do not match.",
    AuthErrorKind.INVALID_EMAIL: "Please enter a valid email address.",
    AuthErrorKind.USERNAME_TOO_SHORT: "Usernames need at least 3 characters.",
    AuthErrorKind.PASSWORD_TOO_SHORT: "Passwords need at least 6 characters.",
    AuthErrorKind.ALREADY_EXISTS: "That username or email is already taken.",
    AuthErrorKind.INVALID_CREDENTIALS: "Invalid username or password.",
    AuthErrorKind.NOT_AUTHENTICATED: "No active session. Log in with 'tuneboxed user login'.",
    AuthErrorKind.PERSISTENCE_ERROR: "Account storage could not be read or written.",
}


def format_stat_count(count: int) -> str:
    """Render counters the way profile headers show them (``1.2K``, ``3.4M``)."""
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def _prompt_password(label: str) -> str:
    return getpass.getpass(f"{label}: ")


def _load_settings(args) -> TuneBoxedSettings:
    storage_override = getattr(args, "storage_path", None)
    overrides = {"storage_path": Path(storage_override).expanduser() if storage_override else None}
    return load_configuration(getattr(args, "config", None), overrides=overrides)


def _configure_logging(settings: TuneBoxedSettings, debug: bool) -> None:
    level = logging.DEBUG if debug else log_mgr.resolve_log_level(settings.log_level)
    log_mgr.setup_logging(level, settings.log_file)


def _describe(account: UserAccount) -> str:
    badges = []
    if account.is_verified:
        badges.append("verified")
    if account.is_premium:
        badges.append("premium")
    suffix = f" [{', '.join(badges)}]" if badges else ""
    return f"{account.username} <{account.email}>{suffix}"


def _show_profile(account: UserAccount) -> None:
    log_mgr.console_info("Signed in as %s", _describe(account), logger_obj=logger)
    if account.full_name:
        log_mgr.console_info("Name: %s", account.full_name, logger_obj=logger)
    if account.bio:
        log_mgr.console_info("Bio: %s", account.bio, logger_obj=logger)
    if account.profile_picture_url:
        log_mgr.console_info("Picture: %s", account.profile_picture_url, logger_obj=logger)
    log_mgr.console_info(
        "Followers: %s  Following: %s  Posts: %s",
        format_stat_count(account.follower_count),
        format_stat_count(account.following_count),
        format_stat_count(account.post_count),
        logger_obj=logger,
    )


def _register(store: SessionStore, args) -> int:
    password = args.password
    confirm = args.confirm_password
    if password is None:
        password = _prompt_password(f"Password for {args.username}")
        if confirm is None:
            confirm = _prompt_password("Confirm password")
    if confirm is None:
        confirm = password
    account = store.register(args.username, args.email, password, confirm)
    log_mgr.console_info("Created account '%s'.", account.username, logger_obj=logger)
    if not is_strong_password(password):
        log_mgr.console_warning(
            "Consider a stronger password: 8+ characters mixing upper and lower case, "
            "digits and punctuation.",
            logger_obj=logger,
        )
    return 0


def _login(store: SessionStore, args) -> int:
    password = args.password if args.password is not None else _prompt_password(
        f"Password for {args.username}"
    )
    account = store.login(args.username, password)
    log_mgr.console_info("Login successful for '%s'.", account.username, logger_obj=logger)
    return 0


def _logout(store: SessionStore, args) -> int:
    if not store.is_signed_in:
        log_mgr.console_info("No active session.", logger_obj=logger)
        return 0
    store.logout()
    log_mgr.console_info("Logged out.", logger_obj=logger)
    return 0


def _whoami(store: SessionStore, args) -> int:
    account = store.current_account
    if account is None:
        log_mgr.console_error(ERROR_MESSAGES[AuthErrorKind.NOT_AUTHENTICATED], logger_obj=logger)
        return 1
    _show_profile(account)
    return 0


def _list(store: SessionStore, args) -> int:
    accounts = store.get_all_accounts()
    if not accounts:
        log_mgr.console_info("No accounts registered.", logger_obj=logger)
        return 0
    current = store.current_account
    log_mgr.console_info("Registered accounts:", logger_obj=logger)
    for account in sorted(accounts, key=lambda item: item.username.lower()):
        marker = "*" if current is not None and current.id == account.id else "-"
        log_mgr.console_info(" %s %s", marker, _describe(account), logger_obj=logger)
    return 0


def _profile(store: SessionStore, args) -> int:
    account = store.update_profile(
        first_name=args.first_name,
        last_name=args.last_name,
        bio=args.bio,
        profile_picture_url=args.profile_picture_url,
    )
    _show_profile(account)
    return 0


def _rename(store: SessionStore, args) -> int:
    account = store.update_username(args.new_username)
    log_mgr.console_info("Username changed to '%s'.", account.username, logger_obj=logger)
    return 0


def _verify(store: SessionStore, args) -> int:
    account = store.verify()
    log_mgr.console_info("Account '%s' is now verified.", account.username, logger_obj=logger)
    return 0


def _counts(store: SessionStore, args) -> int:
    if args.followers is None and args.following is None and args.posts is None:
        log_mgr.console_error(
            "Provide at least one of --followers, --following or --posts.", logger_obj=logger
        )
        return 1
    account = store.update_counts(
        followers=args.followers, following=args.following, posts=args.posts
    )
    _show_profile(account)
    return 0


def _premium(store: SessionStore, args) -> int:
    if args.state == "toggle":
        account = store.toggle_premium()
    else:
        account = store.set_premium(args.state == "on")
    state = "enabled" if account.is_premium else "disabled"
    log_mgr.console_info("Premium %s for '%s'.", state, account.username, logger_obj=logger)
    return 0


_HANDLERS: Dict[str, Callable[[SessionStore, object], int]] = {
    "register": _register,
    "login": _login,
    "logout": _logout,
    "whoami": _whoami,
    "list": _list,
    "profile": _profile,
    "rename": _rename,
    "verify": _verify,
    "counts": _counts,
    "premium": _premium,
}


def execute_user_command(args, store: Optional[SessionStore] = None) -> int:
    """Dispatch the ``tuneboxed user`` sub-commands."""

    command = getattr(args, "user_command", None)
    handler = _HANDLERS.get(command)
    if handler is None:
        log_mgr.console_error("Unknown user command: %s", command, logger_obj=logger)
        return 2

    try:
        if store is None:
            settings = _load_settings(args)
            _configure_logging(settings, getattr(args, "debug", False))
            store = SessionStore.from_settings(settings)
        with log_mgr.log_context(operation=f"cli.{command}"):
            return handler(store, args)
    except AuthError as exc:
        logger.debug("Command failed: %s", exc, extra={"event": "cli.auth_error", "kind": exc.kind.value})
        log_mgr.console_error(ERROR_MESSAGES[exc.kind], logger_obj=logger)
        return 1
    except RuntimeError as exc:
        log_mgr.console_error(str(exc), logger_obj=logger)
        return 2


__all__ = ["ERROR_MESSAGES", "execute_user_command", "format_stat_count"]
