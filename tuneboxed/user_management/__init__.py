"""Account and session management for tuneboxed."""
from .errors import (
    AlreadyExistsError,
    AuthError,
    AuthErrorKind,
    InvalidCredentialsError,
    InvalidEmailError,
    MissingFieldError,
    NotAuthenticatedError,
    PasswordMismatchError,
    PasswordTooShortError,
    PersistenceError,
    UsernameTooShortError,
)
from .local_storage import LocalKeyValueStore
from .session_store import SessionStore
from .storage_base import CURRENT_USER_KEY, USERS_KEY, KeyValueStorageBase
from .user_account import SIGNED_OUT, SessionState, SignedIn, SignedOut, UserAccount

__all__ = [
    "AlreadyExistsError",
    "AuthError",
    "AuthErrorKind",
    "CURRENT_USER_KEY",
    "InvalidCredentialsError",
    "InvalidEmailError",
    "KeyValueStorageBase",
    "LocalKeyValueStore",
    "MissingFieldError",
    "NotAuthenticatedError",
    "PasswordMismatchError",
    "PasswordTooShortError",
    "PersistenceError",
    "SIGNED_OUT",
    "SessionState",
    "SessionStore",
    "SignedIn",
    "SignedOut",
    "USERS_KEY",
    "UserAccount",
    "UsernameTooShortError",
]
