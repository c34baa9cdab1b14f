"""
Centralized settings for timeline-hub.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    One cached ``TimelineSettings`` object holds the page size, the
    deduplication policy and the logging options; every field can be set via
    ``TIMELINE_*`` environment variables or a ``.env`` file.

Examples:
    >>> from timeline_hub.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.page_size
    20

Tags:
    settings, configuration, pydantic, environment, timeline-hub

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from timeline_hub.core.errors import ConfigError


class TimelineSettings(BaseSettings):
    """timeline-hub configuration.

    Fields
    ──────
    page_size    : Items requested from a provider per page
    deduplicate  : Drop items whose key an aggregate already holds
    log_level    : Structlog log level
    log_format   : ``console`` or ``json``
    service_name : ``service.name`` stamped on every log line
    """

    model_config = SettingsConfigDict(
        env_prefix="TIMELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Paging ───────────────────────────────────────────────────
    page_size: int = Field(default=20, ge=1, description="Items per provider page")
    deduplicate: bool = Field(
        default=False,
        description="Drop items whose id (or timestamp:handle) was already merged",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")
    service_name: str = Field(default="timeline-hub")

    @property
    def json_logs(self) -> bool:
        return self.log_format == "json"


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, TimelineSettings] = {}


def get_settings(*, _force_reload: bool = False) -> TimelineSettings:
    """Load, validate, and cache a :class:`TimelineSettings` instance.

    Raises:
        ConfigError: the environment or ``.env`` holds an invalid value.
    """
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    try:
        settings = TimelineSettings()
    except ValidationError as e:
        fields = ", ".join(
            "TIMELINE_" + str(err["loc"][0]).upper() for err in e.errors() if err["loc"]
        )
        raise ConfigError(f"Invalid settings: {fields or e}", cause=e) from e
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["TimelineSettings", "get_settings", "clear_settings_cache"]
