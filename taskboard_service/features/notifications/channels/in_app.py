"""In-app channel: the committed notification record is the delivery."""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskboard_service.features.notifications.channels.base import SendResult
from taskboard_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from taskboard_service.features.notifications.models import (
        Notification,
        NotificationContact,
    )

lazy_logger = get_lazy_logger(__name__)


class InAppSender:
    """Always succeeds; clients read the record or receive it on the live stream."""

    async def send(
        self,
        notification: Notification,
        recipient: NotificationContact | None,
        subject: str,
        content: str,
    ) -> SendResult:
        lazy_logger.debug(lambda: f"in_app.send: notification {notification.id} stored")
        return SendResult.ok()

    def is_available(self, recipient: NotificationContact | None) -> bool:
        return True
