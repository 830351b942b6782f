"""High-level configuration management for tuneboxed."""
from __future__ import annotations

from .constants import CONF_DIR, CONFIG_FILE_ENV, DEFAULT_CONFIG_PATH, DEFAULT_STORAGE_PATH
from .loader import load_configuration, resolve_config_path
from .settings import (
    EnvironmentOverrides,
    TuneBoxedSettings,
    apply_settings_updates,
    load_environment_overrides,
)

__all__ = [
    "CONF_DIR",
    "CONFIG_FILE_ENV",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_STORAGE_PATH",
    "EnvironmentOverrides",
    "TuneBoxedSettings",
    "apply_settings_updates",
    "load_configuration",
    "load_environment_overrides",
    "resolve_config_path",
]
