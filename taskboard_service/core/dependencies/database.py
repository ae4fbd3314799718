"""Database dependencies for FastAPI route handlers.

``get_db_session`` ties a session to the HTTP request. Code outside request
handling (stream polls, startup seeding) uses ``infra.database.get_async_session``
or the session factory directly.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_service.infra.database import get_async_session


async def get_db_session() -> AsyncGenerator[AsyncSession]:
    """Yield a request-scoped database session."""
    async with get_async_session() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_db_session)]
