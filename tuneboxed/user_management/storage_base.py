"""Base abstraction for the durable key-value area."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Mapping, Optional

USERS_KEY = "users"
CURRENT_USER_KEY = "currentUser"


class KeyValueStorageBase(ABC):
    """Process-wide key/value storage that survives restarts.

    Implementations must apply each :meth:`write` as a single durable
    transaction: either every update and removal lands, or none does and
    :class:`~tuneboxed.user_management.errors.PersistenceError` is raised.
    """

    @abstractmethod
    def read_all(self) -> Dict[str, Any]:
        """Return every stored key; unreadable content reads as empty."""

    @abstractmethod
    def write(
        self,
        updates: Optional[Mapping[str, Any]] = None,
        removals: Iterable[str] = (),
    ) -> None:
        """Set ``updates`` and delete ``removals`` atomically."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every key."""

    def get(self, key: str, default: Any = None) -> Any:
        return self.read_all().get(key, default)


__all__ = ["CURRENT_USER_KEY", "KeyValueStorageBase", "USERS_KEY"]
