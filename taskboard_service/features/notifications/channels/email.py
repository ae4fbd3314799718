"""Email channel sender backed by the mail transport."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from taskboard_service.features.notifications.channels.base import SendResult
from taskboard_service.features.notifications.exceptions import (
    RecipientValidationError,
    TransportError,
)
from taskboard_service.infra.email import EmailMessage

if TYPE_CHECKING:
    from taskboard_service.features.notifications.models import (
        Notification,
        NotificationContact,
    )
    from taskboard_service.infra.email import EmailClient

logger = logging.getLogger(__name__)


class EmailSender:
    """Send ``(to, subject, html body)`` through an ``EmailClient``."""

    channel = "email"

    def __init__(self, email_client: EmailClient) -> None:
        self._email_client = email_client

    async def send(
        self,
        notification: Notification,
        recipient: NotificationContact | None,
        subject: str,
        content: str,
    ) -> SendResult:
        recipient_id = notification.recipient_id
        if recipient is None or not recipient.email:
            raise RecipientValidationError(
                "no email address",
                channel=self.channel,
                recipient_id=recipient_id,
            )

        try:
            message = EmailMessage(
                to=[recipient.email],
                subject=subject,
                body_html=content,
                metadata={"notification_id": str(notification.id)},
            )
        except ValidationError as exc:
            raise RecipientValidationError(
                "invalid email address",
                channel=self.channel,
                recipient_id=recipient_id,
            ) from exc

        result = await self._email_client.send(message)
        if not result.success:
            raise TransportError(
                f"Email delivery failed for notification {notification.id}: {result.error}",
                reason=result.error or "email delivery failed",
                details={"error_code": result.error_code, "backend": result.backend},
            )

        logger.info(
            "Email sent for notification",
            extra={
                "notification_id": str(notification.id),
                "message_id": result.message_id,
                "backend": result.backend,
            },
        )
        return SendResult.ok()

    def is_available(self, recipient: NotificationContact | None) -> bool:
        return self._email_client.settings.enabled and recipient is not None and bool(recipient.email)
