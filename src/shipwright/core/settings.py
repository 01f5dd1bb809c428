"""
Centralized settings for Shipwright.

Manifesto:
    One validated, cached settings object supplies the defaults that the
    container, the dataflow driver and the CLI would otherwise each read
    from the environment on their own.

All fields can be set via ``SHIPWRIGHT_*`` environment variables (e.g.
``SHIPWRIGHT_LOG_LEVEL=DEBUG``) or a ``.env`` file in the working directory.

Tags:
    shipwright-core, configuration, settings, pydantic, caching

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ShipwrightSettings(BaseSettings):
    """Shipwright runtime configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SHIPWRIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="console")
    service_name: str = Field(default="shipwright")

    # ── Dataflow defaults ────────────────────────────────────────
    max_degree_of_parallelism: int = Field(
        default=1, ge=1, description="Records transformed concurrently per dataflow run"
    )
    buffer_size: int = Field(
        default=1000, ge=1, description="Records read ahead of the transformation workers"
    )
    case_sensitive_fields: bool = Field(
        default=False, description="Whether record field names are compared case-sensitively"
    )

    # ── Databases ────────────────────────────────────────────────
    db_fetch_size: int = Field(default=500, ge=1)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, ShipwrightSettings] = {}


def get_settings(*, env_file: Path | None = None, _force_reload: bool = False) -> ShipwrightSettings:
    """Load, validate, and cache a :class:`ShipwrightSettings` instance.

    Parameters
    ----------
    env_file:
        Explicit ``.env`` file to read instead of the default.
    _force_reload:
        Bypass cache and reload.
    """
    cache_key = str(env_file or "")

    if not _force_reload and cache_key in _settings_cache:
        return _settings_cache[cache_key]

    if env_file is not None:
        settings = ShipwrightSettings(_env_file=env_file)  # type: ignore[call-arg]
    else:
        settings = ShipwrightSettings()

    _settings_cache[cache_key] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "ShipwrightSettings",
    "get_settings",
    "clear_settings_cache",
]
