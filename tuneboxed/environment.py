"""Populate ``TUNEBOXED_*`` settings from a dotenv file before configuration loads."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values, find_dotenv

from . import logging_manager as log_mgr

logger = log_mgr.get_logger("environment")

ENV_FILE_VARIABLE = "TUNEBOXED_ENV_FILE"
ENV_PREFIX = "TUNEBOXED_"


def _locate_env_file() -> Optional[Path]:
    explicit = os.environ.get(ENV_FILE_VARIABLE, "").strip()
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            logger.warning(
                "%s points at a missing file: %s",
                ENV_FILE_VARIABLE,
                path,
                extra={"event": "environment.missing_file"},
            )
            return None
        return path
    found = find_dotenv(usecwd=True)
    return Path(found) if found else None


def load_environment() -> Optional[Path]:
    """Copy ``TUNEBOXED_*`` entries of the dotenv file into ``os.environ``.

    Variables already set in the process win. Entries without the
    ``TUNEBOXED_`` prefix are ignored. Returns the file that was read, or
    ``None`` when there was none.
    """

    path = _locate_env_file()
    if path is None:
        return None
    applied = []
    for key, value in dotenv_values(path).items():
        if not key.startswith(ENV_PREFIX) or value is None or key in os.environ:
            continue
        os.environ[key] = value
        applied.append(key)
    logger.debug(
        "Loaded %d setting(s) from %s",
        len(applied),
        path,
        extra={"event": "environment.loaded"},
    )
    return path


__all__ = ["load_environment"]
