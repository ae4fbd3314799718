"""Declarative base and column mixins for ORM models.

Models combine ``Base`` with the mixins they need:

    class Notification(UUIDv7TimestampedBase):
        __tablename__ = "notifications"
        title: Mapped[str] = mapped_column(String(255))
"""

from __future__ import annotations

import os
import time
import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

# Predictable constraint names for schema management
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base with constraint naming and default table names.

    The default table name is the lowercase class name; models normally set
    ``__tablename__`` explicitly.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower()


def generate_uuid7() -> uuid.UUID:
    """Generate a time-ordered UUID v7."""
    timestamp_ms = int(time.time() * 1000)
    random_bytes = os.urandom(10)

    uuid_bytes = bytearray(16)
    uuid_bytes[0:6] = timestamp_ms.to_bytes(6, byteorder="big")
    uuid_bytes[6] = (random_bytes[0] & 0x0F) | 0x70  # version 7
    uuid_bytes[7] = random_bytes[1]
    uuid_bytes[8] = (random_bytes[2] & 0x3F) | 0x80  # RFC 4122 variant
    uuid_bytes[9:16] = random_bytes[3:10]
    return uuid.UUID(bytes=bytes(uuid_bytes))


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from backends without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class UUIDv7PKMixin:
    """UUID v7 primary key; later rows sort after earlier ones."""

    __allow_unmapped__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid7,
        comment="UUID v7 primary key (time-sortable)",
    )


class TimestampMixin:
    """``created_at``/``updated_at`` columns, timezone-aware UTC.

    Python-side defaults fire at flush, so ``created_at`` is the persistence
    time; server defaults cover rows inserted outside the ORM.
    """

    __allow_unmapped__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        index=True,
        comment="Timestamp of record creation",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
        comment="Timestamp of last update",
    )


class UUIDv7TimestampedBase(Base, UUIDv7PKMixin, TimestampMixin):
    """Convenience base with a UUID v7 primary key and timestamps."""

    __abstract__ = True


__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "TimestampMixin",
    "UUIDv7PKMixin",
    "UUIDv7TimestampedBase",
    "ensure_utc",
    "generate_uuid7",
    "utc_now",
]
