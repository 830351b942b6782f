"""Configuration loading utilities."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from tuneboxed import logging_manager

from .constants import CONFIG_FILE_ENV, DEFAULT_CONFIG_PATH
from .settings import TuneBoxedSettings, apply_settings_updates, load_environment_overrides

logger = logging_manager.get_logger("config")


def _read_config_json(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError:
        logger.debug(
            "No configuration found at %s.", path, extra={"event": "config.file.missing"}
        )
        return {}
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(
            "Error loading configuration from %s: %s. Proceeding without it.",
            path,
            exc,
            extra={"event": "config.file.invalid"},
        )
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Configuration at %s is not an object; ignoring it.",
            path,
            extra={"event": "config.file.invalid"},
        )
        return {}
    return data


def resolve_config_path(config_file: Optional[str] = None) -> Path:
    """Pick the configuration file: explicit argument, then environment, then default."""

    candidate = config_file or os.environ.get(CONFIG_FILE_ENV)
    if not candidate:
        return DEFAULT_CONFIG_PATH
    path = Path(candidate).expanduser()
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve()
    return path


def load_configuration(
    config_file: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None
) -> TuneBoxedSettings:
    """Layer defaults, the JSON config file, environment variables and ``overrides``."""

    payload = _read_config_json(resolve_config_path(config_file))
    try:
        settings = TuneBoxedSettings.model_validate(payload)
    except ValidationError as exc:
        raise RuntimeError("Invalid configuration detected") from exc

    settings = apply_settings_updates(settings, load_environment_overrides())
    settings = apply_settings_updates(
        settings, {key: value for key, value in (overrides or {}).items() if value is not None}
    )
    return settings


__all__ = ["load_configuration", "resolve_config_path"]
