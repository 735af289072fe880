"""Environment-driven settings for sqlbridge.

Dialect *selection* is external configuration: the engine itself only
ever receives a Dialect by injection. ``SqlBridgeSettings`` is where a
host application reads that choice (plus output formatting and logging
knobs) from the environment.

Manifesto:
    - **Pydantic validation:** an unknown dialect name fails at startup
    - **Environment-driven:** ``SQLBRIDGE_*`` env vars and ``.env`` files
    - **Sensible defaults:** works out of the box against HSQLDB

Examples:
    >>> from sqlbridge.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.dialect
    'hsqldb'

Tags:
    settings, configuration, pydantic, environment, sqlbridge
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SqlBridgeSettings(BaseSettings):
    """Settings read from ``SQLBRIDGE_*`` environment variables.

    Fields
    ──────
    dialect               : Registry name of the target engine
    pretty_print          : Break DDL across lines instead of single spaces
    line_separator        : Separator used when pretty printing
    query_limit           : Application-wide row limit for selects (0 = none)
    default_string_length : Length used for STRING/ENUM columns declared without one
    utc_offset_minutes    : Offset applied when binding/extracting TIMESTAMP_UTC
    log_level             : Structlog log level
    log_format            : "json", "console" or "auto"
    """

    model_config = SettingsConfigDict(
        env_prefix="SQLBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Dialect ──────────────────────────────────────────────────
    dialect: str = Field(default="hsqldb", description="Registry name of the target engine")

    # ── Output ───────────────────────────────────────────────────
    pretty_print: bool = Field(default=False)
    line_separator: str = Field(default="\n")
    query_limit: int = Field(default=0, ge=0, description="Application-wide select limit, 0 disables")
    default_string_length: int = Field(default=255, gt=0)
    utc_offset_minutes: int = Field(default=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="auto")

    @field_validator("dialect")
    @classmethod
    def _known_dialect(cls, value: str) -> str:
        from sqlbridge.dialect.registry import available_dialects, is_known_dialect

        value = value.strip().lower()
        if not is_known_dialect(value):
            raise ValueError(f"Unknown dialect {value!r}; expected one of {', '.join(available_dialects())}")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("json", "console", "auto"):
            raise ValueError(f"log_format must be json, console or auto, got {value!r}")
        return value


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, SqlBridgeSettings] = {}


def get_settings(*, _force_reload: bool = False) -> SqlBridgeSettings:
    """Load, validate, and cache a :class:`SqlBridgeSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = SqlBridgeSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop the cached settings (tests, reconfiguration)."""
    _settings_cache.clear()


__all__ = ["SqlBridgeSettings", "get_settings", "clear_settings_cache"]
