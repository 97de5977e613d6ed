"""Centralized configuration for the window alert poller.

This package provides:
- Pydantic settings models for configuration
- validate_config() for fail-fast startup checks
"""

from pydantic import ValidationError

from windowalert.lib.exceptions import ConfigurationError

from .settings import (
    PUSH_URL,
    UPSTREAM_URL,
    DatabaseSettings,
    DetectionSettings,
    NotificationSettings,
    PollingSettings,
    Settings,
    UpstreamSettings,
    get_database_settings,
    get_settings,
)
from .testing import set_settings


def validate_config() -> Settings:
    """Load settings, turning validation problems into ConfigurationError."""
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


def validate_database_config() -> DatabaseSettings:
    """Load just the database settings; DB_PATH is required."""
    try:
        settings = get_database_settings()
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
    if not settings.db_path:
        raise ConfigurationError("Configuration validation failed: missing DB_PATH")
    return settings


__all__ = [
    # Settings models
    "DatabaseSettings",
    "DetectionSettings",
    "NotificationSettings",
    "PollingSettings",
    "Settings",
    "UpstreamSettings",
    # Constants
    "PUSH_URL",
    "UPSTREAM_URL",
    # Functions
    "get_database_settings",
    "get_settings",
    "set_settings",
    "validate_config",
    "validate_database_config",
]
