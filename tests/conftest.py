"""Pytest configuration and shared fixtures.

Organization:
    - Environment: settings that keep tests off external infrastructure
    - Database Fixtures: in-memory SQLite engine, sessions and session factory
    - Data Fixtures: helpers that persist notifications and contacts
    - Isolation: cache and singleton resets between tests
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable, Iterator
from datetime import datetime
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from taskboard_service.features.notifications.models import (
        Notification,
        NotificationContact,
    )

# Ensure tests run without external infrastructure
os.environ.setdefault("APP_ROOT_PATH", "")
os.environ.setdefault("DB_ENABLED", "false")
os.environ.setdefault("EMAIL_ENABLED", "false")
os.environ.setdefault("NOTIFY_SEED_TEMPLATES", "false")
os.environ.setdefault("NOTIFY_CONSOLE_NOTIFIER", "false")


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Async engine on a private in-memory SQLite database.

    ``StaticPool`` keeps one connection so every session of the test sees
    the same database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def session_factory(db_engine: AsyncEngine) -> AsyncGenerator[async_sessionmaker[AsyncSession]]:
    """Session factory bound to a freshly created schema.

    Example:
        async def test_feed(session_factory):
            async with session_factory() as session:
                ...
    """
    from taskboard_service.core.database import Base

    import taskboard_service.features.notifications.models  # noqa: F401

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Session on the test schema, rolled back after the test."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


# ============================================================================
# Data Fixtures
# ============================================================================


@pytest.fixture
def make_notification(
    db_session: AsyncSession,
) -> Callable[..., Awaitable[Notification]]:
    """Persist a notification without dispatching it.

    Example:
        notification = await make_notification("user-1", created_at=ts)
    """
    from taskboard_service.features.notifications.models import Notification

    async def _make(
        recipient_id: str = "user-1",
        *,
        title: str = "Hello",
        message: str = "World",
        type: str = "info",  # noqa: A002
        is_read: bool = False,
        created_at: datetime | None = None,
        **fields: Any,
    ) -> Notification:
        notification = Notification(
            recipient_id=recipient_id,
            title=title,
            message=message,
            type=type,
            requested_channels=["in_app"],
            is_read=is_read,
            **fields,
        )
        if created_at is not None:
            notification.created_at = created_at
        db_session.add(notification)
        await db_session.commit()
        return notification

    return _make


@pytest.fixture
def make_contact(
    db_session: AsyncSession,
) -> Callable[..., Awaitable[NotificationContact]]:
    """Persist a recipient contact record."""
    from taskboard_service.features.notifications.models import NotificationContact

    async def _make(recipient_id: str = "user-1", **fields: str | None) -> NotificationContact:
        contact = NotificationContact(recipient_id=recipient_id, **fields)
        db_session.add(contact)
        await db_session.commit()
        return contact

    return _make


# ============================================================================
# Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_cached_state() -> Iterator[None]:
    """Drop cached settings and notification singletons around each test."""
    from taskboard_service.core.settings import clear_all_settings_caches
    from taskboard_service.features.notifications.dependencies import (
        reset_notification_dependencies,
    )

    clear_all_settings_caches()
    reset_notification_dependencies()
    yield
    clear_all_settings_caches()
    reset_notification_dependencies()
