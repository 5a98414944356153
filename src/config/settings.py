# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for cache and logging settings. Every field can be
set through the environment variable of the same name in upper case
(e.g. ``CACHE_BASE_DIRECTORY``, ``CACHE_MAX_RETRIES``).
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


def resolve_base_directory(
    base_directory: Path | str | None, identifier: str = ""
) -> Path:
    """Return the cache directory: explicit path, else ``<tmpdir>/<identifier>``.

    Raises:
        ConfigurationError: If neither a directory nor an identifier is given.
    """
    if base_directory:
        return Path(base_directory).expanduser()
    if not identifier:
        raise ConfigurationError(
            "Please supply either CACHE_BASE_DIRECTORY or CACHE_IDENTIFIER"
        )
    return Path(tempfile.gettempdir()) / identifier


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache ===
    cache_base_directory: Path | None = None
    cache_identifier: str = ""
    cache_default_expiration_s: int = 900
    cache_max_retries: int = 4
    cache_retry_delay_ms: int = 250
    cache_verbose_logging: bool = False

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("cache_max_retries", "cache_retry_delay_ms")
    @classmethod
    def validate_non_negative(cls, v: int, info) -> int:  # noqa: N805
        """Retry budget and delay cannot be negative."""
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @field_validator("cache_default_expiration_s")
    @classmethod
    def validate_expiration(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("cache_default_expiration_s must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """A cache directory must be derivable."""
        if not self.cache_base_directory and not self.cache_identifier:
            raise ConfigurationError(
                "Please supply either CACHE_BASE_DIRECTORY or CACHE_IDENTIFIER"
            )
        return self

    # --- Helpers ---

    @property
    def cache_directory(self) -> Path:
        """Effective cache directory."""
        return resolve_base_directory(self.cache_base_directory, self.cache_identifier)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or the CLI).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
