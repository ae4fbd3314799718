"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process.

Testing:
    Clear the cache to force a reload:
    get_notification_settings.cache_clear()
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .email import EmailSettings
from .logs import LoggingSettings
from .notifications import NotificationSettings
from .postgres import PostgresSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()


@lru_cache(maxsize=1)
def get_db_settings() -> PostgresSettings:
    """Get cached database settings."""
    return PostgresSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings."""
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_email_settings() -> EmailSettings:
    """Get cached email settings."""
    return EmailSettings()


@lru_cache(maxsize=1)
def get_notification_settings() -> NotificationSettings:
    """Get cached notification and stream settings."""
    return NotificationSettings()


def clear_all_settings_caches() -> None:
    """Reset every cached settings instance (tests only)."""
    get_app_settings.cache_clear()
    get_db_settings.cache_clear()
    get_logging_settings.cache_clear()
    get_email_settings.cache_clear()
    get_notification_settings.cache_clear()
