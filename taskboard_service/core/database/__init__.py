"""Database building blocks: declarative base, mixins, repository."""

from taskboard_service.core.database.base import (
    NAMING_CONVENTION,
    Base,
    TimestampMixin,
    UUIDv7PKMixin,
    UUIDv7TimestampedBase,
    ensure_utc,
    generate_uuid7,
    utc_now,
)
from taskboard_service.core.database.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    RepositoryError,
)
from taskboard_service.core.database.repository import BaseRepository

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "BaseRepository",
    "InvalidTransitionError",
    "NotFoundError",
    "RepositoryError",
    "TimestampMixin",
    "UUIDv7PKMixin",
    "UUIDv7TimestampedBase",
    "ensure_utc",
    "generate_uuid7",
    "utc_now",
]
