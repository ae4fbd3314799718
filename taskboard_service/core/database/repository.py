"""Minimal generic repository for SQLAlchemy models.

Basic CRUD with explicit session passing. Feature repositories subclass it
and add their own queries; anything more involved uses the session directly.

Example:
    class NotificationContactRepository(BaseRepository[NotificationContact]):
        async def get_for_recipient(self, session, recipient_id):
            return await self.get_by(session, NotificationContact.recipient_id, recipient_id)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar, cast

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select

from taskboard_service.core.database.exceptions import NotFoundError
from taskboard_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import InstrumentedAttribute


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Generic CRUD repository.

    Provides:
        - get(session, id) -> T | None
        - get_or_raise(session, id) -> T (raises NotFoundError)
        - get_by(session, attr, value) -> T | None
        - list(session, limit, offset) -> Sequence[T]
        - create(session, instance) -> T
        - delete(session, instance) -> None

    Methods flush but never commit; transaction boundaries belong to the
    caller.
    """

    __slots__ = ("model", "_logger", "_lazy")

    def __init__(self, model: type[T]) -> None:
        self.model = model
        self._logger = logging.getLogger(f"repository.{model.__name__}")
        self._lazy = get_lazy_logger(f"repository.{model.__name__}")

    async def get(
        self,
        session: AsyncSession,
        id: Any,  # noqa: A002
        *,
        options: Iterable[Any] | None = None,
    ) -> T | None:
        """Get entity by primary key, or None."""
        if options:
            stmt = select(self.model).where(self._pk_attr() == id).options(*options)
            instance = (await session.execute(stmt)).scalar_one_or_none()
        else:
            instance = await session.get(self.model, id)

        self._lazy.debug(
            lambda: f"db.get: {self.model.__name__}({id}) -> {'found' if instance else 'not found'}"
        )
        return instance

    async def get_or_raise(
        self,
        session: AsyncSession,
        id: Any,  # noqa: A002
        *,
        options: Iterable[Any] | None = None,
    ) -> T:
        """Get entity by primary key.

        Raises:
            NotFoundError: If the entity doesn't exist.
        """
        instance = await self.get(session, id, options=options)
        if instance is None:
            self._logger.info(
                "Entity not found",
                extra={
                    "entity": self.model.__name__,
                    "id": str(id),
                    "operation": "db.get_or_raise",
                },
            )
            raise NotFoundError(self.model.__name__, {"id": id})
        return instance

    async def get_by(
        self,
        session: AsyncSession,
        attr: InstrumentedAttribute[Any],
        value: Any,
    ) -> T | None:
        """Get the entity whose ``attr`` equals ``value``, or None."""
        stmt = select(self.model).where(attr == value)
        instance = (await session.execute(stmt)).scalar_one_or_none()

        self._lazy.debug(
            lambda: f"db.get_by: {self.model.__name__}.{attr.key}={value!r} -> {'found' if instance else 'not found'}"
        )
        return instance

    async def list(
        self,
        session: AsyncSession,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[T]:
        """List entities with pagination."""
        stmt = select(self.model).limit(limit).offset(offset)
        items = (await session.execute(stmt)).scalars().all()

        self._lazy.debug(
            lambda: f"db.list: {self.model.__name__}(limit={limit}, offset={offset}) -> {len(items)} items"
        )
        return items

    async def create(self, session: AsyncSession, instance: T) -> T:
        """Add, flush and refresh a new entity so generated fields are populated."""
        session.add(instance)
        await session.flush()
        await session.refresh(instance)

        entity_id = getattr(instance, "id", None)
        self._lazy.debug(lambda: f"db.create: {self.model.__name__}(id={entity_id})")
        return instance

    async def delete(self, session: AsyncSession, instance: T) -> None:
        """Delete an entity and flush."""
        entity_id = getattr(instance, "id", None)
        await session.delete(instance)
        await session.flush()

        self._logger.info(
            "Entity deleted",
            extra={"entity": self.model.__name__, "id": str(entity_id), "operation": "db.delete"},
        )

    def _pk_attr(self) -> InstrumentedAttribute[Any]:
        mapper = sa_inspect(self.model)
        pk_column = mapper.primary_key[0]
        return cast("InstrumentedAttribute[Any]", getattr(self.model, pk_column.key))
