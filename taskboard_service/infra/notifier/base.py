"""Notifier backend interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class NotifierError(Exception):
    """A backend was unreachable or rejected the message."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class BaseNotifier(ABC):
    """Delivers one text message to one address on an external service.

    ``recipient`` is the channel-specific address: a device token, phone
    number, Slack user id or Telegram chat id. ``channel`` is the channel
    kind the message was dispatched on.
    """

    name: str = "notifier"

    @abstractmethod
    async def notify(
        self,
        recipient: str,
        channel: str,
        content: str,
        *,
        subject: str | None = None,
    ) -> None:
        """Send the message.

        Raises:
            NotifierError: The backend did not accept the message.
        """
