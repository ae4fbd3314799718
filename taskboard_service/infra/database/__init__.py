"""Async database engine and session factory."""

from taskboard_service.infra.database.session import (
    AsyncSessionLocal,
    close_database,
    engine,
    get_async_session,
    init_database,
)

__all__ = [
    "AsyncSessionLocal",
    "close_database",
    "engine",
    "get_async_session",
    "init_database",
]
