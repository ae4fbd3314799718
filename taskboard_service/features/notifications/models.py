"""SQLAlchemy models for the notifications feature."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskboard_service.core.database import UUIDv7TimestampedBase

JSONType = JSONB().with_variant(JSON(), "sqlite")


class NotificationType(StrEnum):
    """Informational category shown by clients."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"

    @classmethod
    def parse(cls, value: str) -> NotificationType:
        """Parse a type name; ``error`` is accepted for ``danger``."""
        normalized = value.strip().lower()
        if normalized == "error":
            return cls.DANGER
        return cls(normalized)


class DeliveryStatus(StrEnum):
    """Per-channel delivery status. ``pending`` is the only non-terminal value."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class Notification(UUIDv7TimestampedBase):
    """A notification addressed to exactly one recipient.

    ``title``/``message`` never change after creation; per-channel rendered
    content lives only in the outgoing messages. Channel outcomes are one
    ``NotificationDelivery`` row per requested channel.

    Indexes:
        - (recipient_id, is_read) for unread counts and mark-all-read
        - (recipient_id, created_at) for stream polls and listings
    """

    __tablename__ = "notifications"

    recipient_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Recipient user identifier",
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Notification title",
    )
    message: Mapped[str] = mapped_column(
        Text(),
        nullable=False,
        comment="Notification body",
    )
    type: Mapped[str] = mapped_column(
        String(20),
        default=NotificationType.INFO.value,
        nullable=False,
        comment="Type: info, success, warning, danger",
    )
    requested_channels: Mapped[list[str]] = mapped_column(
        JSONType,
        nullable=False,
        comment="Channels requested at creation, in dispatch order",
    )
    template_key: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        comment="Template key rendered per channel (optional)",
    )
    extra_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        JSONType,
        nullable=True,
        comment="Opaque caller metadata",
    )

    is_read: Mapped[bool] = mapped_column(
        Boolean(),
        default=False,
        nullable=False,
        comment="Whether the recipient has read the notification",
    )
    read_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the notification was marked read",
    )

    deliveries: Mapped[list[NotificationDelivery]] = relationship(
        back_populates="notification",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_notifications_recipient_read", "recipient_id", "is_read"),
        Index("ix_notifications_recipient_created", "recipient_id", "created_at"),
    )

    @property
    def channel_status(self) -> dict[str, dict[str, str | None]]:
        """Channel -> {status, reason}, in requested order."""
        by_channel = {delivery.channel: delivery for delivery in self.deliveries}
        return {
            channel: {
                "status": by_channel[channel].status,
                "reason": by_channel[channel].reason,
            }
            for channel in self.requested_channels
            if channel in by_channel
        }

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, recipient={self.recipient_id}, type={self.type})>"


class NotificationDelivery(UUIDv7TimestampedBase):
    """Outcome of one channel for one notification.

    Moves once from ``pending`` to ``sent`` or ``failed``; the repository
    rejects any other transition.
    """

    __tablename__ = "notification_deliveries"

    notification_id: Mapped[UUID] = mapped_column(
        ForeignKey("notifications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Parent notification",
    )
    channel: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Channel identifier: in_app, email, push, sms, slack, telegram, ...",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=DeliveryStatus.PENDING.value,
        nullable=False,
        comment="Status: pending, sent, failed",
    )
    reason: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        comment="Short failure reason",
    )
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    failed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    response_time_ms: Mapped[float | None] = mapped_column(
        Float(),
        nullable=True,
        comment="Time spent in the channel sender",
    )

    notification: Mapped[Notification] = relationship(back_populates="deliveries")

    __table_args__ = (
        UniqueConstraint("notification_id", "channel", name="uq_notification_deliveries_channel"),
    )

    def __repr__(self) -> str:
        return f"<NotificationDelivery(channel={self.channel}, status={self.status})>"


class NotificationTemplate(UUIDv7TimestampedBase):
    """Subject/content template for one (key, channel) pair.

    ``subject`` and ``content`` use Jinja2 ``{{ variable }}`` syntax;
    ``variables`` lists the context keys rendering requires.
    """

    __tablename__ = "notification_templates"

    key: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        comment="Template key, e.g. task_assigned",
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, comment="Display name")
    channel: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Channel this template renders for",
    )
    subject: Mapped[str | None] = mapped_column(Text(), nullable=True)
    content: Mapped[str] = mapped_column(Text(), nullable=False)
    variables: Mapped[list[str]] = mapped_column(
        JSONType,
        default=list,
        nullable=False,
        comment="Required context variable names",
    )
    is_active: Mapped[bool] = mapped_column(Boolean(), default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("key", "channel", name="uq_notification_templates_key_channel"),
    )

    def __repr__(self) -> str:
        return f"<NotificationTemplate(key={self.key}, channel={self.channel})>"


class NotificationContact(UUIDv7TimestampedBase):
    """Per-recipient contact tokens used by the external channels."""

    __tablename__ = "notification_contacts"

    recipient_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Recipient user identifier",
    )
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    device_token: Mapped[str | None] = mapped_column(String(512), nullable=True)
    slack_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    telegram_chat_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<NotificationContact(recipient_id={self.recipient_id})>"
