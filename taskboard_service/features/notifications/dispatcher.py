"""Multi-channel notification dispatch with per-channel failure isolation."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from taskboard_service.core.services import BaseService
from taskboard_service.features.notifications.channels.base import SendResult
from taskboard_service.features.notifications.exceptions import (
    NotificationError,
    UnknownChannelError,
)
from taskboard_service.features.notifications.metrics import (
    notification_created_total,
    notification_delivered_total,
    notification_delivery_duration_seconds,
)
from taskboard_service.features.notifications.models import (
    DeliveryStatus,
    Notification,
    NotificationDelivery,
    NotificationType,
)
from taskboard_service.features.notifications.repository import (
    NotificationContactRepository,
    NotificationRepository,
    get_notification_contact_repository,
    get_notification_repository,
)
from taskboard_service.features.notifications.templates import (
    NotificationTemplateService,
    get_notification_template_service,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from taskboard_service.features.notifications.channels.registry import ChannelRegistry
    from taskboard_service.features.notifications.models import NotificationContact

# Channels that deliver the stored title/message as-is
UNTEMPLATED_CHANNELS = frozenset({"in_app"})


def normalize_channels(channels: Iterable[str]) -> list[str]:
    """Lower-case channel identifiers, dropping blanks and repeats (first wins)."""
    seen: dict[str, None] = {}
    for channel in channels:
        key = channel.strip().lower()
        if key:
            seen.setdefault(key, None)
    return list(seen)


class NotificationDispatcher(BaseService):
    """Persist a notification, then attempt each requested channel once.

    Channel failures end up on the channel's delivery row as
    ``failed(reason)`` and never abort the remaining channels. Only a failure
    to persist the notification itself propagates.
    """

    def __init__(
        self,
        registry: ChannelRegistry,
        *,
        repository: NotificationRepository | None = None,
        contact_repository: NotificationContactRepository | None = None,
        template_service: NotificationTemplateService | None = None,
    ) -> None:
        super().__init__()
        self._registry = registry
        self._repository = repository or get_notification_repository()
        self._contacts = contact_repository or get_notification_contact_repository()
        self._templates = template_service or get_notification_template_service()

    @property
    def registry(self) -> ChannelRegistry:
        return self._registry

    async def send_notification(
        self,
        session: AsyncSession,
        recipient_id: str,
        title: str,
        message: str,
        type: str = "info",  # noqa: A002
        channels: Iterable[str] = ("in_app",),
        metadata: dict[str, Any] | None = None,
        template_key: str | None = None,
        template_variables: dict[str, Any] | None = None,
    ) -> Notification:
        """Create a notification and fan it out across ``channels``.

        Args:
            session: Database session; committed after creation and after
                every channel status write
            recipient_id: The single recipient
            title: Notification title
            message: Notification body
            type: info, success, warning or danger (``error`` aliases danger)
            channels: Channel identifiers in dispatch order
            metadata: Opaque metadata stored with the record
            template_key: Template rendered per channel (all but in_app)
            template_variables: Extra template context

        Returns:
            The notification with every requested channel resolved to
            ``sent`` or ``failed``.

        Raises:
            ValueError: Unknown type or empty channel list.
        """
        notification_type = NotificationType.parse(type)
        requested = normalize_channels(channels)
        if not requested:
            msg = "At least one channel is required"
            raise ValueError(msg)

        notification = Notification(
            recipient_id=recipient_id,
            title=title,
            message=message,
            type=notification_type.value,
            requested_channels=requested,
            template_key=template_key,
            extra_metadata=metadata,
            is_read=False,
            deliveries=[
                NotificationDelivery(channel=channel, status=DeliveryStatus.PENDING.value)
                for channel in requested
            ],
        )
        await self._repository.create(session, notification)
        await session.commit()
        notification_created_total.labels(type=notification_type.value).inc()

        self.logger.info(
            "Notification created",
            extra={
                "notification_id": str(notification.id),
                "recipient_id": recipient_id,
                "channels": requested,
                "template_key": template_key,
            },
        )

        recipient = await self._contacts.get_for_recipient(session, recipient_id)

        for channel in requested:
            start = time.perf_counter()
            result = await self._attempt(
                session,
                notification,
                channel,
                recipient,
                template_variables or {},
            )
            elapsed = time.perf_counter() - start

            status = DeliveryStatus.SENT if result.success else DeliveryStatus.FAILED
            await self._repository.update_channel_status(
                session,
                notification.id,
                channel,
                status,
                result.reason[:500] if result.reason else None,
                response_time_ms=round(elapsed * 1000, 3),
            )
            await session.commit()

            notification_delivered_total.labels(channel=channel, status=status.value).inc()
            notification_delivery_duration_seconds.labels(channel=channel).observe(elapsed)

        await session.refresh(notification, ["deliveries"])

        self._lazy.debug(
            lambda: f"dispatch({notification.id}) -> {notification.channel_status}"
        )
        return notification

    async def _attempt(
        self,
        session: AsyncSession,
        notification: Notification,
        channel: str,
        recipient: NotificationContact | None,
        template_variables: dict[str, Any],
    ) -> SendResult:
        """Attempt one channel; every failure is returned, never raised."""
        log_extra = {"notification_id": str(notification.id), "channel": channel}
        try:
            sender = self._registry.get(channel)
            if sender is None:
                raise UnknownChannelError(channel)

            subject, content = notification.title, notification.message
            if notification.template_key and channel not in UNTEMPLATED_CHANNELS:
                context = {
                    **template_variables,
                    "user_name": (recipient.full_name if recipient else None)
                    or notification.recipient_id,
                    "notification_title": notification.title,
                    "notification_message": notification.message,
                }
                rendered = await self._templates.render_template(
                    session,
                    notification.template_key,
                    channel,
                    context,
                )
                subject = rendered.subject or notification.title
                content = rendered.content

            return await sender.send(notification, recipient, subject, content)
        except NotificationError as exc:
            self.logger.warning(
                "Channel delivery failed",
                extra={**log_extra, "reason": exc.reason, "error": exc.message},
            )
            return SendResult.failed(exc.reason)
        except Exception as exc:
            self.logger.exception("Unexpected error in channel sender", extra=log_extra)
            await self._reset_session(session, notification, recipient)
            return SendResult.failed(str(exc) or type(exc).__name__)

    async def _reset_session(
        self,
        session: AsyncSession,
        notification: Notification,
        recipient: NotificationContact | None,
    ) -> None:
        """Discard whatever the failed attempt left in the transaction.

        Earlier status writes are already committed. Rollback expires every
        instance, so the notification and contact are reloaded for the
        remaining channels.
        """
        await session.rollback()
        await session.refresh(notification)
        if recipient is not None:
            await session.refresh(recipient)
