"""Base protocol and result type for channel senders."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from taskboard_service.features.notifications.models import (
        Notification,
        NotificationContact,
    )


@dataclass(slots=True, frozen=True)
class SendResult:
    """Outcome of one channel send.

    Attributes:
        success: Whether the transport accepted the message
        reason: Short failure description when ``success`` is False
    """

    success: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> SendResult:
        return cls(success=True)

    @classmethod
    def failed(cls, reason: str) -> SendResult:
        return cls(success=False, reason=reason)


class ChannelSender(Protocol):
    """One-shot delivery of a notification through one transport.

    Senders may either return ``SendResult.failed(reason)`` or raise a
    ``NotificationError`` subclass; the dispatcher records both the same way.
    """

    async def send(
        self,
        notification: Notification,
        recipient: NotificationContact | None,
        subject: str,
        content: str,
    ) -> SendResult:
        """Deliver ``subject``/``content`` for ``notification`` to ``recipient``.

        Args:
            notification: The persisted notification record
            recipient: Resolved contact of the recipient, or None if unknown
            subject: Rendered subject (the title when no template applies)
            content: Rendered content (the message when no template applies)
        """
        ...

    def is_available(self, recipient: NotificationContact | None) -> bool:
        """Whether a send to ``recipient`` could succeed with the current setup."""
        ...
