"""Account record and session state shared by the session layer."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union
from uuid import uuid4

from .. import logging_manager as log_mgr

logger = log_mgr.get_logger("accounts")

PLAIN_SCHEME = "plain"
BCRYPT_SCHEME = "bcrypt"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _flag(payload: Dict[str, Any], key: str) -> bool:
    value = payload.get(key, False)
    if isinstance(value, bool):
        return value
    logger.warning(
        "Ignoring non-boolean %s=%r on stored account %s",
        key,
        value,
        payload.get("id"),
        extra={"event": "storage.decode_error", "key": key},
    )
    return False


@dataclass
class UserAccount:
    """A registered user's durable profile and credential record.

    Attributes:
        id: Opaque identifier generated at registration.
        username: Display handle, unique case-insensitively.
        email: Contact address, unique case-insensitively.
        password_secret: The password as provided, or its bcrypt hash when
            ``password_scheme`` is ``"bcrypt"``.
        password_scheme: How ``password_secret`` was written.
        first_name: Optional given name.
        last_name: Optional family name.
        bio: Optional free-form profile text.
        profile_picture_url: Optional avatar location.
        is_verified: Whether the account carries the verified badge.
        is_premium: Whether the account has premium features enabled.
        follower_count: Follower counter, set explicitly.
        following_count: Following counter, set explicitly.
        post_count: Number of posts shared by the account.
        created_at: Registration timestamp (UTC).
    """

    username: str
    email: str
    password_secret: str
    id: str = field(default_factory=lambda: str(uuid4()))
    password_scheme: str = PLAIN_SCHEME
    first_name: str = ""
    last_name: str = ""
    bio: str = ""
    profile_picture_url: Optional[str] = None
    is_verified: bool = False
    is_premium: bool = False
    follower_count: int = 0
    following_count: int = 0
    post_count: int = 0
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the account into a JSON-compatible dictionary."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "password_secret": self.password_secret,
            "password_scheme": self.password_scheme,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "bio": self.bio,
            "profile_picture_url": self.profile_picture_url,
            "is_verified": self.is_verified,
            "is_premium": self.is_premium,
            "follower_count": self.follower_count,
            "following_count": self.following_count,
            "post_count": self.post_count,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "UserAccount":
        """Rehydrate an account, accepting the older client field names too.

        Raises ``KeyError``/``ValueError``/``TypeError`` when the payload is
        not an account object.
        """
        first_name = payload.get("first_name")
        last_name = payload.get("last_name")
        if first_name is None and last_name is None and payload.get("full_name"):
            first_name, _, last_name = str(payload["full_name"]).partition(" ")

        created_raw = payload.get("created_at")
        created_at = datetime.fromisoformat(created_raw) if created_raw else _utcnow()

        return cls(
            id=str(payload["id"]),
            username=str(payload["username"]),
            email=str(payload["email"]),
            password_secret=str(payload.get("password_secret", "")),
            password_scheme=str(payload.get("password_scheme", PLAIN_SCHEME)),
            first_name=first_name or "",
            last_name=last_name or "",
            bio=payload.get("bio") or "",
            profile_picture_url=payload.get("profile_picture_url"),
            is_verified=_flag(payload, "is_verified"),
            is_premium=_flag(payload, "is_premium"),
            follower_count=int(payload.get("follower_count", payload.get("followers", 0))),
            following_count=int(payload.get("following_count", payload.get("following", 0))),
            post_count=int(payload.get("post_count", payload.get("posts", 0))),
            created_at=created_at,
        )


@dataclass(frozen=True)
class SignedOut:
    """No account is currently signed in."""

    is_signed_in: bool = field(default=False, init=False)


@dataclass(frozen=True)
class SignedIn:
    """``account`` is the single current account."""

    account: UserAccount
    is_signed_in: bool = field(default=True, init=False)


SessionState = Union[SignedOut, SignedIn]

SIGNED_OUT = SignedOut()


__all__ = [
    "BCRYPT_SCHEME",
    "PLAIN_SCHEME",
    "SIGNED_OUT",
    "SessionState",
    "SignedIn",
    "SignedOut",
    "UserAccount",
]
