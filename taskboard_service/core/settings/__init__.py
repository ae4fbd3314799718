"""Application settings.

Each concern has its own ``BaseSettings`` class with an environment prefix
and a cached loader:

    APP_     AppSettings            get_app_settings()
    DB_      PostgresSettings       get_db_settings()
    LOG_     LoggingSettings        get_logging_settings()
    EMAIL_   EmailSettings          get_email_settings()
    NOTIFY_  NotificationSettings   get_notification_settings()
"""

from .app import AppSettings
from .email import EmailSettings
from .loader import (
    clear_all_settings_caches,
    get_app_settings,
    get_db_settings,
    get_email_settings,
    get_logging_settings,
    get_notification_settings,
)
from .logs import LoggingSettings
from .notifications import NotificationSettings
from .postgres import PostgresSettings

__all__ = [
    "AppSettings",
    "EmailSettings",
    "LoggingSettings",
    "NotificationSettings",
    "PostgresSettings",
    "clear_all_settings_caches",
    "get_app_settings",
    "get_db_settings",
    "get_email_settings",
    "get_logging_settings",
    "get_notification_settings",
]
