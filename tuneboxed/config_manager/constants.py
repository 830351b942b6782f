"""Default values and well-known paths for tuneboxed configuration."""
from __future__ import annotations

from pathlib import Path

CONF_DIR = Path("~/.tuneboxed").expanduser()
DEFAULT_STORAGE_PATH = CONF_DIR / "storage.json"
DEFAULT_CONFIG_PATH = CONF_DIR / "config.json"
DEFAULT_LOG_LEVEL = "WARNING"

CONFIG_FILE_ENV = "TUNEBOXED_CONFIG_FILE"
