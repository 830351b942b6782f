import copy
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pytest

from tuneboxed import logging_manager
from tuneboxed.user_management import KeyValueStorageBase, PersistenceError


class MemoryStorage(KeyValueStorageBase):
    """In-memory key-value area whose writes can be made to fail."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self.data: Dict[str, Any] = copy.deepcopy(initial or {})
        self.fail_writes = False
        self.writes = 0

    def read_all(self) -> Dict[str, Any]:
        return copy.deepcopy(self.data)

    def write(self, updates: Optional[Mapping[str, Any]] = None, removals: Iterable[str] = ()) -> None:
        if self.fail_writes:
            raise PersistenceError("disk full")
        self.writes += 1
        self.data.update(copy.deepcopy(dict(updates or {})))
        for key in removals:
            self.data.pop(key, None)

    def clear(self) -> None:
        self.data = {}


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture()
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def log_records():
    """Collect records emitted on the ``tuneboxed`` logger tree at DEBUG level."""
    logger = logging_manager.get_logger()
    handler = _ListHandler()
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        yield handler.records
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)
