"""Local filesystem-backed key-value storage."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

from .. import logging_manager as log_mgr
from .errors import PersistenceError
from .storage_base import KeyValueStorageBase

DEFAULT_STORAGE_PATH = Path("~/.tuneboxed/storage.json")

logger = log_mgr.get_logger("storage")


class LocalKeyValueStore(KeyValueStorageBase):
    """Persist keys in a single JSON document, replaced atomically on write."""

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._storage_path = Path(storage_path or DEFAULT_STORAGE_PATH).expanduser()

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def read_all(self) -> Dict[str, Any]:
        try:
            raw = self._storage_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(
                "No stored data at %s.",
                self._storage_path,
                extra={"event": "storage.empty", "storage_path": self._storage_path},
            )
            return {}
        except OSError as exc:
            logger.error(
                "Failed to read %s: %s",
                self._storage_path,
                exc,
                extra={"event": "storage.read_failed", "storage_path": self._storage_path},
            )
            raise PersistenceError(f"Failed to read {self._storage_path}: {exc}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning(
                "Stored data at %s is not valid JSON (%s); treating it as empty.",
                self._storage_path,
                exc,
                extra={"event": "storage.decode_error", "storage_path": self._storage_path},
            )
            return {}
        if not isinstance(data, dict):
            logger.warning(
                "Stored data at %s is a %s, not an object; treating it as empty.",
                self._storage_path,
                type(data).__name__,
                extra={"event": "storage.decode_error", "storage_path": self._storage_path},
            )
            return {}
        return data

    def write(
        self,
        updates: Optional[Mapping[str, Any]] = None,
        removals: Iterable[str] = (),
    ) -> None:
        data = self.read_all()
        data.update(updates or {})
        for key in removals:
            data.pop(key, None)
        self._save(data)

    def clear(self) -> None:
        try:
            self._storage_path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise PersistenceError(f"Failed to clear {self._storage_path}: {exc}") from exc
        logger.info(
            "Cleared stored data.",
            extra={"event": "storage.cleared", "storage_path": self._storage_path},
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _save(self, data: Dict[str, Any]) -> None:
        temp_path = self._storage_path.with_suffix(self._storage_path.suffix + ".tmp")
        try:
            payload = json.dumps(data, indent=2)
            self._storage_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(payload, encoding="utf-8")
            temp_path.replace(self._storage_path)
        except (OSError, TypeError, ValueError) as exc:
            if temp_path.exists():
                temp_path.unlink()
            logger.error(
                "Failed to write %s: %s",
                self._storage_path,
                exc,
                extra={"event": "storage.write_failed", "storage_path": self._storage_path},
            )
            raise PersistenceError(f"Failed to write {self._storage_path}: {exc}") from exc


__all__ = ["DEFAULT_STORAGE_PATH", "LocalKeyValueStore"]
