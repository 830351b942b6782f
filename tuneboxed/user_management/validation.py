"""Credential and profile field checks used before any state changes."""
from __future__ import annotations

import re
import string

from .errors import (
    InvalidEmailError,
    MissingFieldError,
    PasswordMismatchError,
    PasswordTooShortError,
    UsernameTooShortError,
)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
STRONG_PASSWORD_LENGTH = 8

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}$")


def require_fields(**fields: str) -> None:
    """Raise :class:`MissingFieldError` naming the first empty field."""
    for name, value in fields.items():
        if not value:
            raise MissingFieldError(f"'{name}' is required")


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.match(email) is not None


def check_username(username: str) -> None:
    if len(username) < MIN_USERNAME_LENGTH:
        raise UsernameTooShortError(
            f"Username must be at least {MIN_USERNAME_LENGTH} characters"
        )


def meets_minimum_requirements(password: str) -> bool:
    return len(password) >= MIN_PASSWORD_LENGTH


def is_strong_password(password: str) -> bool:
    """Return True for passwords of 8+ characters mixing case, digits and punctuation."""
    return (
        len(password) >= STRONG_PASSWORD_LENGTH
        and any(ch.isupper() for ch in password)
        and any(ch.islower() for ch in password)
        and any(ch.isdigit() for ch in password)
        and any(ch in string.punctuation for ch in password)
    )


def validate_registration(username: str, email: str, password: str, confirm_password: str) -> None:
    """Run the registration checks in order, stopping at the first failure.

    Uniqueness is not checked here; it needs the registered set and is
    left to :class:`SessionStore`.
    """
    require_fields(username=username, email=email, password=password)
    if password != confirm_password:
        raise PasswordMismatchError("Passwords do not match")
    if not is_valid_email(email):
        raise InvalidEmailError(f"'{email}' is not a valid email address")
    check_username(username)
    if not meets_minimum_requirements(password):
        raise PasswordTooShortError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )


__all__ = [
    "EMAIL_PATTERN",
    "MIN_PASSWORD_LENGTH",
    "MIN_USERNAME_LENGTH",
    "check_username",
    "is_strong_password",
    "is_valid_email",
    "meets_minimum_requirements",
    "require_fields",
    "validate_registration",
]
