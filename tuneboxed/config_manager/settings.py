"""Pydantic models and helper utilities for configuration values."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from tuneboxed import logging_manager

from .constants import DEFAULT_LOG_LEVEL, DEFAULT_STORAGE_PATH

logger = logging_manager.get_logger("config")


class TuneBoxedSettings(BaseModel):
    """Typed representation of the application configuration."""

    model_config = ConfigDict(extra="ignore")

    storage_path: Path = DEFAULT_STORAGE_PATH
    reset_on_launch: bool = False
    hash_passwords: bool = False
    verify_on_register: bool = False
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[Path] = None


class EnvironmentOverrides(BaseSettings):
    """Configuration overrides sourced from environment variables."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    storage_path: Optional[Path] = Field(
        default=None,
        validation_alias=AliasChoices("TUNEBOXED_STORAGE_PATH", "TUNEBOXED_STORE"),
    )
    reset_on_launch: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("TUNEBOXED_RESET_ON_LAUNCH")
    )
    hash_passwords: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("TUNEBOXED_HASH_PASSWORDS")
    )
    verify_on_register: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("TUNEBOXED_VERIFY_ON_REGISTER")
    )
    log_level: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("TUNEBOXED_LOG_LEVEL")
    )
    log_file: Optional[Path] = Field(
        default=None, validation_alias=AliasChoices("TUNEBOXED_LOG_FILE")
    )


def load_environment_overrides() -> Dict[str, Any]:
    """Return configuration overrides sourced from environment variables."""

    try:
        overrides = EnvironmentOverrides()
    except ValidationError as exc:
        logger.warning(
            "Invalid environment configuration detected; using defaults.",
            extra={"event": "config.env.validation_error", "error": str(exc)},
        )
        return {}
    return overrides.model_dump(exclude_none=True)


def apply_settings_updates(
    settings: TuneBoxedSettings, updates: Dict[str, Any]
) -> TuneBoxedSettings:
    """Return a copy of ``settings`` updated with ``updates`` if any values exist."""

    if not updates:
        return settings
    return settings.model_copy(update=updates)


__all__ = [
    "EnvironmentOverrides",
    "TuneBoxedSettings",
    "apply_settings_updates",
    "load_environment_overrides",
]
