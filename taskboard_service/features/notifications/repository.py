"""Repositories for the notifications feature.

The notification store: records, per-channel delivery status, read-state,
templates and recipient contacts. Methods flush; callers own commits.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import TYPE_CHECKING

from sqlalchemy import and_, func, select, update

from taskboard_service.core.database import (
    BaseRepository,
    InvalidTransitionError,
    NotFoundError,
    ensure_utc,
    utc_now,
)
from taskboard_service.features.notifications.models import (
    DeliveryStatus,
    Notification,
    NotificationContact,
    NotificationDelivery,
    NotificationTemplate,
)

# Ids per UPDATE statement, below driver bind-parameter limits
MARK_ALL_READ_CHUNK_SIZE = 500

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession


@dataclass(slots=True, frozen=True)
class NotificationStats:
    """Per-recipient notification counters."""

    total: int
    unread: int
    read: int
    today: int


class NotificationRepository(BaseRepository[Notification]):
    """Notification records, channel status and read-state."""

    def __init__(self) -> None:
        super().__init__(Notification)

    async def query_since(
        self,
        session: AsyncSession,
        recipient_id: str,
        since: datetime,
        limit: int,
        *,
        exclude_ids: Collection[UUID] = (),
    ) -> Sequence[Notification]:
        """Unread notifications created at or after ``since``, oldest first.

        Args:
            session: Database session
            recipient_id: Recipient identifier
            since: Inclusive lower bound on ``created_at``
            limit: Maximum rows returned
            exclude_ids: Ids the caller already holds

        Returns:
            Notifications ordered by ``created_at`` then ``id``
        """
        stmt = select(Notification).where(
            and_(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
                Notification.created_at >= ensure_utc(since),
            ),
        )
        if exclude_ids:
            stmt = stmt.where(Notification.id.not_in(list(exclude_ids)))
        stmt = stmt.order_by(Notification.created_at.asc(), Notification.id.asc()).limit(limit)

        items = (await session.execute(stmt)).scalars().all()

        self._lazy.debug(
            lambda: f"db.query_since({recipient_id=}, since={since.isoformat()}) -> {len(items)} notifications"
        )
        return items

    async def update_channel_status(
        self,
        session: AsyncSession,
        notification_id: UUID,
        channel: str,
        status: DeliveryStatus,
        reason: str | None = None,
        *,
        response_time_ms: float | None = None,
    ) -> NotificationDelivery:
        """Move one channel of a notification from ``pending`` to a terminal status.

        Raises:
            NotFoundError: If the notification has no delivery for ``channel``.
            InvalidTransitionError: If the delivery is not pending or ``status`` is pending.
        """
        stmt = select(NotificationDelivery).where(
            and_(
                NotificationDelivery.notification_id == notification_id,
                NotificationDelivery.channel == channel,
            ),
        )
        delivery = (await session.execute(stmt)).scalar_one_or_none()
        if delivery is None:
            raise NotFoundError(
                "NotificationDelivery",
                {"notification_id": notification_id, "channel": channel},
            )

        if delivery.status != DeliveryStatus.PENDING or status == DeliveryStatus.PENDING:
            raise InvalidTransitionError(
                "NotificationDelivery",
                delivery.status,
                status,
                details={"notification_id": str(notification_id), "channel": channel},
            )

        now = utc_now()
        delivery.status = status
        delivery.reason = reason
        delivery.response_time_ms = response_time_ms
        if status == DeliveryStatus.SENT:
            delivery.delivered_at = now
        else:
            delivery.failed_at = now
        await session.flush()

        self._lazy.debug(
            lambda: f"db.update_channel_status({notification_id}, {channel}) -> {status} ({reason})"
        )
        return delivery

    async def mark_read(self, session: AsyncSession, notification: Notification) -> bool:
        """Mark one notification read.

        Returns:
            True if the row changed, False if it was already read (no write).
        """
        if notification.is_read:
            return False

        notification.is_read = True
        notification.read_at = utc_now()
        await session.flush()

        self._lazy.debug(lambda: f"db.mark_read({notification.id}) -> marked")
        return True

    async def mark_all_read(self, session: AsyncSession, recipient_id: str) -> int:
        """Mark every currently unread notification of a recipient as read.

        The unread set is read once; only those rows are updated, so records
        created afterwards stay unread. Updates run in chunks of
        ``MARK_ALL_READ_CHUNK_SIZE`` ids. No UPDATE is issued when the set is
        empty.

        Returns:
            Number of notifications marked read.
        """
        id_stmt = select(Notification.id).where(
            and_(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            ),
        )
        unread_ids = list((await session.execute(id_stmt)).scalars().all())
        if not unread_ids:
            self._lazy.debug(lambda: f"db.mark_all_read({recipient_id=}) -> nothing unread")
            return 0

        read_at = utc_now()
        marked = 0
        for start in range(0, len(unread_ids), MARK_ALL_READ_CHUNK_SIZE):
            chunk = unread_ids[start : start + MARK_ALL_READ_CHUNK_SIZE]
            stmt = (
                update(Notification)
                .where(
                    and_(
                        Notification.id.in_(chunk),
                        Notification.is_read.is_(False),
                    ),
                )
                .values(is_read=True, read_at=read_at)
                .execution_options(synchronize_session="evaluate")
            )
            result = await session.execute(stmt)
            marked += result.rowcount

        self._logger.info(
            "Marked notifications read",
            extra={"recipient_id": recipient_id, "count": marked, "operation": "db.mark_all_read"},
        )
        return marked

    async def list_for_recipient(
        self,
        session: AsyncSession,
        recipient_id: str,
        *,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[Sequence[Notification], int]:
        """List a recipient's notifications, newest first.

        Returns:
            Tuple of (notifications, total_count)
        """
        stmt = select(Notification).where(Notification.recipient_id == recipient_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await session.execute(count_stmt)).scalar() or 0

        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
        stmt = stmt.limit(limit).offset(offset)
        items = (await session.execute(stmt)).scalars().all()

        self._lazy.debug(
            lambda: f"db.list_for_recipient({recipient_id=}) -> {len(items)}/{total} notifications"
        )
        return items, total

    async def get_unread_count(self, session: AsyncSession, recipient_id: str) -> int:
        """Count unread notifications for a recipient."""
        stmt = select(func.count()).where(
            and_(
                Notification.recipient_id == recipient_id,
                Notification.is_read.is_(False),
            ),
        )
        count = (await session.execute(stmt)).scalar() or 0

        self._lazy.debug(lambda: f"db.get_unread_count({recipient_id=}) -> {count}")
        return count

    async def get_stats(
        self,
        session: AsyncSession,
        recipient_id: str,
        *,
        now: datetime | None = None,
    ) -> NotificationStats:
        """Total, unread, read and created-today counts for a recipient."""
        current = ensure_utc(now or utc_now())
        start_of_day = datetime.combine(current.date(), time.min, tzinfo=current.tzinfo)

        owned = Notification.recipient_id == recipient_id
        total = (await session.execute(select(func.count()).where(owned))).scalar() or 0
        unread = await self.get_unread_count(session, recipient_id)
        today = (
            await session.execute(
                select(func.count()).where(and_(owned, Notification.created_at >= start_of_day)),
            )
        ).scalar() or 0

        return NotificationStats(total=total, unread=unread, read=total - unread, today=today)


class NotificationTemplateRepository(BaseRepository[NotificationTemplate]):
    """Repository for notification templates."""

    def __init__(self) -> None:
        super().__init__(NotificationTemplate)

    async def get_active(
        self,
        session: AsyncSession,
        key: str,
        channel: str,
    ) -> NotificationTemplate | None:
        """Active template for ``key`` on ``channel``, or None."""
        stmt = select(NotificationTemplate).where(
            and_(
                NotificationTemplate.key == key,
                NotificationTemplate.channel == channel,
                NotificationTemplate.is_active.is_(True),
            ),
        )
        template = (await session.execute(stmt)).scalar_one_or_none()

        self._lazy.debug(
            lambda: f"db.get_active({key=}, {channel=}) -> {'found' if template else 'not found'}"
        )
        return template

    async def exists(self, session: AsyncSession, key: str, channel: str) -> bool:
        """Whether any template, active or not, exists for ``key`` on ``channel``."""
        stmt = select(func.count()).where(
            and_(NotificationTemplate.key == key, NotificationTemplate.channel == channel),
        )
        return bool((await session.execute(stmt)).scalar())

    async def list_active(self, session: AsyncSession) -> Sequence[NotificationTemplate]:
        """All active templates ordered by key and channel."""
        stmt = (
            select(NotificationTemplate)
            .where(NotificationTemplate.is_active.is_(True))
            .order_by(NotificationTemplate.key, NotificationTemplate.channel)
        )
        return (await session.execute(stmt)).scalars().all()


class NotificationContactRepository(BaseRepository[NotificationContact]):
    """Recipient directory: contact tokens per recipient."""

    def __init__(self) -> None:
        super().__init__(NotificationContact)

    async def get_for_recipient(
        self,
        session: AsyncSession,
        recipient_id: str,
    ) -> NotificationContact | None:
        """Contact record for a recipient, or None."""
        return await self.get_by(session, NotificationContact.recipient_id, recipient_id)

    async def upsert(
        self,
        session: AsyncSession,
        recipient_id: str,
        **fields: str | None,
    ) -> NotificationContact:
        """Create or update a recipient's contact record."""
        contact = await self.get_for_recipient(session, recipient_id)
        if contact is None:
            return await self.create(
                session,
                NotificationContact(recipient_id=recipient_id, **fields),
            )

        for name, value in fields.items():
            setattr(contact, name, value)
        await session.flush()
        self._lazy.debug(lambda: f"db.upsert_contact({recipient_id=}) -> updated {sorted(fields)}")
        return contact


_notification_repository: NotificationRepository | None = None
_template_repository: NotificationTemplateRepository | None = None
_contact_repository: NotificationContactRepository | None = None


def get_notification_repository() -> NotificationRepository:
    """Get NotificationRepository instance (singleton)."""
    global _notification_repository
    if _notification_repository is None:
        _notification_repository = NotificationRepository()
    return _notification_repository


def get_notification_template_repository() -> NotificationTemplateRepository:
    """Get NotificationTemplateRepository instance (singleton)."""
    global _template_repository
    if _template_repository is None:
        _template_repository = NotificationTemplateRepository()
    return _template_repository


def get_notification_contact_repository() -> NotificationContactRepository:
    """Get NotificationContactRepository instance (singleton)."""
    global _contact_repository
    if _contact_repository is None:
        _contact_repository = NotificationContactRepository()
    return _contact_repository
