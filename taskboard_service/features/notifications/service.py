"""Notification service: dispatch entry points, read-state and queries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from taskboard_service.core.services import BaseService
from taskboard_service.core.settings import get_notification_settings
from taskboard_service.features.notifications.exceptions import NotificationNotFoundError
from taskboard_service.features.notifications.metrics import notification_read_total
from taskboard_service.features.notifications.repository import (
    NotificationContactRepository,
    NotificationRepository,
    NotificationStats,
    get_notification_contact_repository,
    get_notification_repository,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from taskboard_service.core.settings import NotificationSettings
    from taskboard_service.features.notifications.dispatcher import NotificationDispatcher
    from taskboard_service.features.notifications.models import (
        Notification,
        NotificationContact,
    )

PRIORITY_SUFFIXES = {
    "urgent": " (urgent)",
    "high": " (high priority)",
}


class NotificationService(BaseService):
    """Notification operations used by the HTTP layer and task workflows.

    Dispatch goes through ``NotificationDispatcher``; read-state and queries
    go straight to the repositories. Methods that write commit the session.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        *,
        repository: NotificationRepository | None = None,
        contact_repository: NotificationContactRepository | None = None,
        settings: NotificationSettings | None = None,
    ) -> None:
        super().__init__()
        self._dispatcher = dispatcher
        self._repository = repository or get_notification_repository()
        self._contacts = contact_repository or get_notification_contact_repository()
        self._settings = settings or get_notification_settings()

    # ──────────────────────────────────────────────────────────────
    # Dispatch
    # ──────────────────────────────────────────────────────────────

    async def send_notification(
        self,
        session: AsyncSession,
        recipient_id: str,
        title: str,
        message: str,
        type: str = "info",  # noqa: A002
        channels: Iterable[str] | None = None,
        metadata: dict[str, Any] | None = None,
        template_key: str | None = None,
        template_variables: dict[str, Any] | None = None,
    ) -> Notification:
        """Dispatch a notification; ``channels`` defaults to the configured defaults."""
        return await self._dispatcher.send_notification(
            session,
            recipient_id,
            title,
            message,
            type=type,
            channels=channels if channels is not None else self._settings.default_channels,
            metadata=metadata,
            template_key=template_key,
            template_variables=template_variables,
        )

    async def notify_task_assigned(
        self,
        session: AsyncSession,
        assignee_id: str,
        assigner_name: str,
        task_id: str | int,
        task_title: str,
        priority: str = "medium",
        channels: Iterable[str] | None = None,
    ) -> Notification:
        """Tell ``assignee_id`` that ``assigner_name`` assigned them a task."""
        suffix = PRIORITY_SUFFIXES.get(priority, "")
        return await self.send_notification(
            session,
            assignee_id,
            "New task assigned",
            f'{assigner_name} assigned you the task "{task_title}"{suffix}',
            type="info",
            channels=channels,
            metadata={"task_id": task_id, "task_title": task_title},
        )

    async def notify_task_completed(
        self,
        session: AsyncSession,
        creator_id: str,
        completer_id: str,
        completer_name: str,
        task_id: str | int,
        task_title: str,
        channels: Iterable[str] | None = None,
    ) -> Notification | None:
        """Tell the task creator it was completed; None when they completed it themselves."""
        if creator_id == completer_id:
            self._lazy.debug(lambda: f"notify_task_completed({task_id}) skipped: completed by creator")
            return None
        return await self.send_notification(
            session,
            creator_id,
            "Task completed",
            f'{completer_name} completed the task "{task_title}"',
            type="success",
            channels=channels,
            metadata={"task_id": task_id, "task_title": task_title},
        )

    async def notify_deadline(
        self,
        session: AsyncSession,
        recipient_id: str,
        task_id: str | int,
        task_title: str,
        deadline: datetime,
        channels: Iterable[str] | None = None,
    ) -> Notification:
        """Remind ``recipient_id`` of a task deadline."""
        return await self.send_notification(
            session,
            recipient_id,
            "Deadline reminder",
            f'Task "{task_title}" is due by {deadline:%d.%m.%Y %H:%M}',
            type="warning",
            channels=channels,
            metadata={"task_id": task_id, "task_title": task_title},
        )

    # ──────────────────────────────────────────────────────────────
    # Read-state
    # ──────────────────────────────────────────────────────────────

    async def get_notification(
        self,
        session: AsyncSession,
        notification_id: UUID,
        recipient_id: str,
    ) -> Notification:
        """One notification owned by ``recipient_id``.

        Raises:
            NotificationNotFoundError: Missing, or owned by someone else.
        """
        notification = await self._repository.get(session, notification_id)
        if notification is None or notification.recipient_id != recipient_id:
            raise NotificationNotFoundError(notification_id)
        return notification

    async def mark_as_read(
        self,
        session: AsyncSession,
        notification_id: UUID,
        recipient_id: str,
    ) -> Notification:
        """Mark one notification read. Already-read notifications are returned unchanged."""
        notification = await self.get_notification(session, notification_id, recipient_id)
        if await self._repository.mark_read(session, notification):
            await session.commit()
            notification_read_total.inc()
            self.logger.info(
                "Notification marked read",
                extra={"notification_id": str(notification_id), "recipient_id": recipient_id},
            )
        return notification

    async def mark_all_as_read(self, session: AsyncSession, recipient_id: str) -> int:
        """Mark the recipient's current unread set read; returns the count."""
        marked = await self._repository.mark_all_read(session, recipient_id)
        if marked:
            await session.commit()
            notification_read_total.inc(marked)
        return marked

    # ──────────────────────────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────────────────────────

    async def list_notifications(
        self,
        session: AsyncSession,
        recipient_id: str,
        *,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[Sequence[Notification], int]:
        return await self._repository.list_for_recipient(
            session,
            recipient_id,
            unread_only=unread_only,
            limit=limit,
            offset=offset,
        )

    async def get_unread_count(self, session: AsyncSession, recipient_id: str) -> int:
        return await self._repository.get_unread_count(session, recipient_id)

    async def get_stats(self, session: AsyncSession, recipient_id: str) -> NotificationStats:
        return await self._repository.get_stats(session, recipient_id)

    # ──────────────────────────────────────────────────────────────
    # Contacts and channels
    # ──────────────────────────────────────────────────────────────

    async def get_contact(self, session: AsyncSession, recipient_id: str) -> NotificationContact | None:
        return await self._contacts.get_for_recipient(session, recipient_id)

    async def update_contact(
        self,
        session: AsyncSession,
        recipient_id: str,
        **fields: str | None,
    ) -> NotificationContact:
        """Create or update the recipient's contact details."""
        contact = await self._contacts.upsert(session, recipient_id, **fields)
        await session.commit()
        self.logger.info(
            "Notification contact updated",
            extra={"recipient_id": recipient_id, "fields": sorted(fields)},
        )
        return contact

    async def available_channels(self, session: AsyncSession, recipient_id: str) -> list[str]:
        """Registered channels a send to ``recipient_id`` could currently succeed on."""
        contact = await self._contacts.get_for_recipient(session, recipient_id)
        registry = self._dispatcher.registry
        return [
            channel
            for channel in registry.channels()
            if (sender := registry.get(channel)) is not None and sender.is_available(contact)
        ]
