"""Typed failures raised by the account and session layer."""
from __future__ import annotations

from enum import Enum


class AuthErrorKind(str, Enum):
    MISSING_FIELD = "missing_field"
    PASSWORD_MISMATCH = "password_mismatch"
    INVALID_EMAIL = "invalid_email"
    USERNAME_TOO_SHORT = "username_too_short"
    PASSWORD_TOO_SHORT = "password_too_short"
    ALREADY_EXISTS = "already_exists"
    INVALID_CREDENTIALS = "invalid_credentials"
    NOT_AUTHENTICATED = "not_authenticated"
    PERSISTENCE_ERROR = "persistence_error"


class AuthError(Exception):
    """Base class for every failure surfaced by :class:`SessionStore`.

    Callers branch on :attr:`kind` (or on the concrete subclass); the
    message is diagnostic text, not a user-facing string.
    """

    kind: AuthErrorKind

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind.value.replace("_", " "))


class MissingFieldError(AuthError):
    kind = AuthErrorKind.MISSING_FIELD


class PasswordMismatchError(AuthError):
    kind = AuthErrorKind.PASSWORD_MISMATCH


class InvalidEmailError(AuthError):
    kind = AuthErrorKind.INVALID_EMAIL


class UsernameTooShortError(AuthError):
    kind = AuthErrorKind.USERNAME_TOO_SHORT


class PasswordTooShortError(AuthError):
    kind = AuthErrorKind.PASSWORD_TOO_SHORT


class AlreadyExistsError(AuthError):
    kind = AuthErrorKind.ALREADY_EXISTS


class InvalidCredentialsError(AuthError):
    kind = AuthErrorKind.INVALID_CREDENTIALS


class NotAuthenticatedError(AuthError):
    kind = AuthErrorKind.NOT_AUTHENTICATED


class PersistenceError(AuthError):
    """Durable storage could not be read or written."""

    kind = AuthErrorKind.PERSISTENCE_ERROR


__all__ = [
    "AlreadyExistsError",
    "AuthError",
    "AuthErrorKind",
    "InvalidCredentialsError",
    "InvalidEmailError",
    "MissingFieldError",
    "NotAuthenticatedError",
    "PasswordMismatchError",
    "PasswordTooShortError",
    "PersistenceError",
    "UsernameTooShortError",
]
