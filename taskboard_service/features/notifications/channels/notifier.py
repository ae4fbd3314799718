"""Push, SMS, Slack and Telegram senders backed by notifier backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from taskboard_service.features.notifications.channels.base import SendResult
from taskboard_service.features.notifications.exceptions import (
    RecipientValidationError,
    TransportError,
)
from taskboard_service.infra.logging import get_lazy_logger
from taskboard_service.infra.notifier import NotifierError

if TYPE_CHECKING:
    from taskboard_service.features.notifications.models import (
        Notification,
        NotificationContact,
    )
    from taskboard_service.infra.notifier import BaseNotifier

lazy_logger = get_lazy_logger(__name__)


class NotifierSender:
    """Deliver to the contact token in ``contact_field`` through a backend.

    Subclasses set ``channel``, ``contact_field`` and ``missing_reason``.
    The contact token is checked before the backend.
    """

    channel: ClassVar[str]
    contact_field: ClassVar[str]
    missing_reason: ClassVar[str]

    def __init__(self, backend: BaseNotifier | None) -> None:
        self._backend = backend

    @property
    def configured(self) -> bool:
        return self._backend is not None

    def is_available(self, recipient: NotificationContact | None) -> bool:
        return self.configured and self.token_for(recipient) is not None

    def token_for(self, recipient: NotificationContact | None) -> str | None:
        if recipient is None:
            return None
        return getattr(recipient, self.contact_field) or None

    async def send(
        self,
        notification: Notification,
        recipient: NotificationContact | None,
        subject: str,
        content: str,
    ) -> SendResult:
        token = self.token_for(recipient)
        if token is None:
            raise RecipientValidationError(
                self.missing_reason,
                channel=self.channel,
                recipient_id=notification.recipient_id,
            )
        if self._backend is None:
            raise TransportError(
                f"No {self.channel} notifier backend configured",
                reason="notifier not configured",
            )

        try:
            await self._backend.notify(token, self.channel, content, subject=subject)
        except NotifierError as exc:
            raise TransportError(
                f"{self.channel} delivery failed for notification {notification.id}: {exc.message}",
                reason=exc.message,
                status_code=exc.status_code,
            ) from exc

        lazy_logger.debug(lambda: f"{self.channel}.send: notification {notification.id} delivered")
        return SendResult.ok()


class PushSender(NotifierSender):
    channel = "push"
    contact_field = "device_token"
    missing_reason = "no device token"


class SmsSender(NotifierSender):
    channel = "sms"
    contact_field = "phone"
    missing_reason = "no phone number"


class SlackSender(NotifierSender):
    channel = "slack"
    contact_field = "slack_user_id"
    missing_reason = "no slack user id"


class TelegramSender(NotifierSender):
    channel = "telegram"
    contact_field = "telegram_chat_id"
    missing_reason = "no telegram chat id"
