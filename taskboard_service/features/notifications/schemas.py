"""Pydantic schemas for the notifications feature."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from taskboard_service.features.notifications.models import NotificationType

# ============================================================================
# Notification Schemas
# ============================================================================


class NotificationCreate(BaseModel):
    """Payload for dispatching a notification."""

    recipient_id: str | None = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Recipient user id (defaults to the caller)",
    )
    title: str = Field(..., min_length=1, max_length=255, description="Notification title")
    message: str = Field(..., min_length=1, description="Notification body")
    type: str = Field(
        default=NotificationType.INFO.value,
        description="info, success, warning or danger (error is accepted for danger)",
    )
    channels: list[str] | None = Field(
        default=None,
        min_length=1,
        description="Channels in dispatch order (defaults to the configured channels)",
    )
    metadata: dict[str, Any] | None = Field(default=None, description="Opaque metadata")
    template_key: str | None = Field(
        default=None,
        max_length=100,
        description="Template rendered for every channel except in_app",
    )
    template_variables: dict[str, Any] | None = Field(
        default=None,
        description="Template context variables",
    )

    @field_validator("type")
    @classmethod
    def _validate_type(cls, value: str) -> str:
        return NotificationType.parse(value).value


class ChannelStatusResponse(BaseModel):
    """Delivery outcome of one channel."""

    status: str
    reason: str | None = None


class NotificationResponse(BaseModel):
    """Representation of a notification returned from the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    recipient_id: str
    title: str
    message: str
    type: str
    requested_channels: list[str]
    channel_status: dict[str, ChannelStatusResponse]
    template_key: str | None
    metadata: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("extra_metadata", "metadata"),
    )
    is_read: bool
    read_at: datetime | None
    created_at: datetime
    updated_at: datetime


class NotificationListResponse(BaseModel):
    """A page of notifications, newest first."""

    items: list[NotificationResponse]
    total: int
    limit: int
    offset: int


class UnreadCountResponse(BaseModel):
    count: int


class NotificationStatsResponse(BaseModel):
    """Per-recipient notification counters."""

    model_config = ConfigDict(from_attributes=True)

    total: int
    unread: int
    read: int
    today: int


class MarkAllReadResponse(BaseModel):
    marked_count: int


class AvailableChannelsResponse(BaseModel):
    """Channels a notification to the caller could currently be delivered on."""

    channels: list[str]


# ============================================================================
# Contact Schemas
# ============================================================================


class NotificationContactUpdate(BaseModel):
    """Contact details used by the external channels. Omitted fields are unchanged."""

    full_name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=32, pattern=r"^\+?[0-9 ()\-]{3,31}$")
    device_token: str | None = Field(default=None, max_length=512)
    slack_user_id: str | None = Field(default=None, max_length=64)
    telegram_chat_id: str | None = Field(default=None, max_length=64)


class NotificationContactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    recipient_id: str
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    device_token: str | None = None
    slack_user_id: str | None = None
    telegram_chat_id: str | None = None


# ============================================================================
# Template Schemas
# ============================================================================


class NotificationTemplateResponse(BaseModel):
    """Representation of a notification template returned from the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    key: str
    name: str
    channel: str
    subject: str | None
    content: str
    variables: list[str]
    is_active: bool


class NotificationTemplateListResponse(BaseModel):
    items: list[NotificationTemplateResponse]
    total: int


class SeedTemplatesResponse(BaseModel):
    created: int
