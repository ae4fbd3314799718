"""Database session management with the psycopg3 async driver."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from taskboard_service.core.settings import get_app_settings, get_db_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)

SQLITE_FALLBACK_URL = "sqlite+aiosqlite:///./taskboard.db"

db_settings = get_db_settings()
app_settings = get_app_settings()


def _engine_arguments() -> tuple[str, dict[str, Any]]:
    if db_settings.is_configured:
        kwargs = db_settings.sqlalchemy_engine_kwargs()
        kwargs["echo"] = kwargs["echo"] or app_settings.debug
        return db_settings.url, kwargs
    # SQLite has no server-side pool options
    return SQLITE_FALLBACK_URL, {"echo": db_settings.echo or app_settings.debug}


_url, _engine_kwargs = _engine_arguments()
engine = create_async_engine(_url, **_engine_kwargs)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield a session that is closed on exit.

    Example:
        async with get_async_session() as session:
            notifications = await repository.list(session)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_database(*, create_schema: bool = False) -> None:
    """Check connectivity and optionally create missing tables.

    Raises:
        ConnectionError: If the database cannot be reached.
    """
    from taskboard_service.core.database import Base

    # Register every model on Base.metadata before create_all
    import taskboard_service.features.notifications.models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_schema:
                await conn.run_sync(Base.metadata.create_all)
    except Exception as exc:
        logger.exception(
            "Database initialization failed",
            extra={"backend": engine.url.get_backend_name()},
        )
        msg = f"Unable to initialize database: {exc}"
        raise ConnectionError(msg) from exc

    logger.info(
        "Database initialized",
        extra={
            "backend": engine.url.get_backend_name(),
            "create_schema": create_schema,
        },
    )


async def close_database() -> None:
    """Dispose the engine's connection pool (application shutdown)."""
    logger.info("Closing database connection")
    await engine.dispose()
