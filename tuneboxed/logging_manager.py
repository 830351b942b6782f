"""Centralized logging configuration for tuneboxed."""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Iterator, Optional

DEFAULT_LOG_LEVEL = logging.WARNING
LOGGER_NAME = "tuneboxed"

_logger: Optional[logging.Logger] = None
_log_context: contextvars.ContextVar[Dict[str, object]] = contextvars.ContextVar(
    "tuneboxed_log_context", default={}
)


class JSONLogFormatter(logging.Formatter):
    """Render log records as structured JSON strings."""

    DEFAULT_FIELDS: tuple[str, ...] = (
        "event",
        "operation",
        "username",
        "account_id",
        "storage_path",
    )

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for attr in self.DEFAULT_FIELDS:
            value = getattr(record, attr, None)
            if value is not None:
                payload[attr] = _jsonable(value)

        extra_attributes = _extract_extra_attributes(record)
        if extra_attributes:
            payload["extra"] = extra_attributes

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


_RESERVED_ATTRIBUTES: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "taskName",
    }
)


def _jsonable(value: object) -> object:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def _extract_extra_attributes(record: logging.LogRecord) -> Dict[str, object]:
    extra: Dict[str, object] = {}
    for key, value in record.__dict__.items():
        if key in _RESERVED_ATTRIBUTES or key in JSONLogFormatter.DEFAULT_FIELDS:
            continue
        extra[key] = _jsonable(value)
    return extra


class LogContextFilter(logging.Filter):
    """Inject values from context variables into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        context = _log_context.get()
        for key, value in context.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def _configure_handlers(logger: logging.Logger, log_file: Optional[Path]) -> None:
    formatter = JSONLogFormatter()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.addFilter(LogContextFilter())
    logger.addHandler(stream_handler)

    if log_file is not None:
        _configure_file_handler(logger, log_file)


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL, log_file: Optional[Path] = None
) -> logging.Logger:
    """Configure the package logger, optionally with a rotating file handler."""
    global _logger

    if _logger is not None:
        if log_file is not None and not any(
            isinstance(handler, RotatingFileHandler) for handler in _logger.handlers
        ):
            _configure_file_handler(_logger, log_file)
        configure_logging_level(log_level=log_level)
        return _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False
    _configure_handlers(logger, log_file)

    _logger = logger
    configure_logging_level(log_level=log_level)
    return logger


def _configure_file_handler(logger: logging.Logger, log_file: Path) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
    file_handler.setFormatter(JSONLogFormatter())
    file_handler.addFilter(LogContextFilter())
    logger.addHandler(file_handler)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the configured logger (or a named child), initializing if necessary."""
    global _logger
    if _logger is None:
        _logger = setup_logging()
    if name:
        return _logger.getChild(name)
    return _logger


def configure_logging_level(debug_enabled: bool = False, log_level: Optional[int] = None) -> int:
    """Adjust the package logger level based on debug preference or explicit level."""
    logger = get_logger()
    if log_level is not None:
        level = log_level
    else:
        level = logging.DEBUG if debug_enabled else DEFAULT_LOG_LEVEL
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
    return level


def resolve_log_level(value: object) -> int:
    """Translate ``"DEBUG"``/``"info"``/``10`` style values into a logging level."""

    if isinstance(value, int):
        return value
    if isinstance(value, str):
        candidate = logging.getLevelName(value.strip().upper())
        if isinstance(candidate, int):
            return candidate
    return DEFAULT_LOG_LEVEL


def get_log_context() -> Dict[str, object]:
    """Return the active structured logging context."""

    return dict(_log_context.get())


def push_log_context(**values: object) -> contextvars.Token[Dict[str, object]]:
    """Merge ``values`` into the structured logging context and return a token."""

    current = dict(_log_context.get())
    current.update({key: value for key, value in values.items() if value is not None})
    return _log_context.set(current)


def pop_log_context(token: contextvars.Token[Dict[str, object]]) -> None:
    """Restore the logging context from ``token``."""

    _log_context.reset(token)


@contextlib.contextmanager
def log_context(**values: object) -> Iterator[None]:
    """Context manager that temporarily enriches log context with ``values``."""

    token = push_log_context(**values)
    try:
        yield
    finally:
        pop_log_context(token)


def clear_log_context() -> None:
    """Clear all structured logging context values."""

    _log_context.set({})


# Console helpers: print user-facing lines and mirror them into the log.


def console_info(message: str, *args: object, logger_obj: Optional[logging.Logger] = None) -> None:
    text = message % args if args else message
    print(text, file=sys.stdout)
    (logger_obj or get_logger()).debug(text, extra={"event": "console.info"})


def console_warning(
    message: str, *args: object, logger_obj: Optional[logging.Logger] = None
) -> None:
    text = message % args if args else message
    print(text, file=sys.stderr)
    (logger_obj or get_logger()).debug(text, extra={"event": "console.warning"})


def console_error(message: str, *args: object, logger_obj: Optional[logging.Logger] = None) -> None:
    text = message % args if args else message
    print(text, file=sys.stderr)
    (logger_obj or get_logger()).debug(text, extra={"event": "console.error"})


__all__ = [
    "DEFAULT_LOG_LEVEL",
    "JSONLogFormatter",
    "LogContextFilter",
    "clear_log_context",
    "configure_logging_level",
    "console_error",
    "console_info",
    "console_warning",
    "get_log_context",
    "get_logger",
    "log_context",
    "pop_log_context",
    "push_log_context",
    "resolve_log_level",
    "setup_logging",
]
