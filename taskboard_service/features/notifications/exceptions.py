"""Exceptions for the notifications feature.

Channel-level errors carry a short ``reason`` that the dispatcher writes to
the delivery row; they never escape ``send_notification``.
"""

from __future__ import annotations

from typing import Any

from taskboard_service.core.exceptions import NotFoundException


class NotificationError(Exception):
    """Base exception for notification errors."""

    reason: str = "notification error"

    def __init__(self, message: str | None = None, *, reason: str | None = None) -> None:
        if reason is not None:
            self.reason = reason
        self.message = message or self.reason
        super().__init__(self.message)


class RecipientValidationError(NotificationError):
    """The recipient lacks the contact information a channel needs."""

    def __init__(self, reason: str, *, channel: str, recipient_id: str | None = None) -> None:
        self.channel = channel
        self.recipient_id = recipient_id
        super().__init__(f"{channel}: {reason} (recipient {recipient_id})", reason=reason)


class TemplateNotFoundError(NotificationError):
    """No active template exists for the key and channel."""

    reason = "template not found"

    def __init__(self, key: str, channel: str) -> None:
        self.key = key
        self.channel = channel
        super().__init__(f"Template {key!r} not found for channel {channel!r}")


class TemplateRenderError(NotificationError):
    """A template exists but could not be rendered."""

    reason = "template render failed"

    def __init__(
        self,
        message: str,
        *,
        template_key: str | None = None,
        missing_vars: list[str] | None = None,
    ) -> None:
        self.template_key = template_key
        self.missing_vars = missing_vars or []
        super().__init__(message)


class TransportError(NotificationError):
    """A backend was unreachable, misconfigured or rejected the message."""

    reason = "transport error"

    def __init__(
        self,
        message: str,
        *,
        reason: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message, reason=reason or message)


class UnknownChannelError(NotificationError):
    """No sender is registered for the channel identifier."""

    reason = "unknown channel"

    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"Unknown channel: {channel}")


class StreamCancelled(NotificationError):
    """The client went away; the live stream drains with ``client_disconnect``."""

    reason = "client_disconnect"


class NotificationNotFoundError(NotFoundException):
    """The notification doesn't exist or belongs to another recipient."""

    def __init__(self, notification_id: Any) -> None:
        self.notification_id = notification_id
        super().__init__(
            detail=f"Notification {notification_id} not found",
            type="notification-not-found",
            extra={"notification_id": str(notification_id)},
        )
