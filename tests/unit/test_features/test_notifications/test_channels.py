"""Unit tests for channel senders and the channel registry."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from taskboard_service.core.settings import EmailSettings
from taskboard_service.features.notifications.channels import (
    ChannelRegistry,
    EmailSender,
    InAppSender,
    PushSender,
    SlackSender,
    SmsSender,
    TelegramSender,
    build_channel_registry,
)
from taskboard_service.features.notifications.exceptions import (
    RecipientValidationError,
    TransportError,
)
from taskboard_service.features.notifications.models import Notification, NotificationContact
from taskboard_service.infra.email import EmailResult
from taskboard_service.infra.notifier import NotifierError


@pytest.fixture
def notification() -> Notification:
    return Notification(
        id=uuid.uuid4(),
        recipient_id="user-1",
        title="Hello",
        message="World",
        type="info",
        requested_channels=["email"],
    )


@pytest.fixture
def email_client() -> MagicMock:
    client = MagicMock()
    client.settings = EmailSettings(enabled=True, backend="console")
    client.send = AsyncMock(
        return_value=EmailResult.success_result("console-1", ["ann@example.com"], "console"),
    )
    return client


@pytest.fixture
def backend() -> MagicMock:
    notifier = MagicMock()
    notifier.notify = AsyncMock(return_value=None)
    return notifier


class TestInAppSender:
    """Test InAppSender."""

    @pytest.mark.asyncio
    async def test_always_succeeds(self, notification: Notification) -> None:
        result = await InAppSender().send(notification, None, "Hello", "World")

        assert result.success is True
        assert result.reason is None

    def test_always_available(self) -> None:
        assert InAppSender().is_available(None) is True


class TestEmailSender:
    """Test EmailSender."""

    @pytest.mark.asyncio
    async def test_sends_rendered_subject_and_html(
        self,
        notification: Notification,
        email_client: MagicMock,
    ) -> None:
        contact = NotificationContact(recipient_id="user-1", email="ann@example.com")

        result = await EmailSender(email_client).send(notification, contact, "Subject", "<p>Body</p>")

        assert result.success is True
        message = email_client.send.await_args.args[0]
        assert message.to == ["ann@example.com"]
        assert message.subject == "Subject"
        assert message.body_html == "<p>Body</p>"
        assert message.metadata == {"notification_id": str(notification.id)}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("contact", [None, NotificationContact(recipient_id="user-1")])
    async def test_missing_address(
        self,
        notification: Notification,
        email_client: MagicMock,
        contact: NotificationContact | None,
    ) -> None:
        with pytest.raises(RecipientValidationError) as exc_info:
            await EmailSender(email_client).send(notification, contact, "Subject", "Body")

        assert exc_info.value.reason == "no email address"
        email_client.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_address(self, notification: Notification, email_client: MagicMock) -> None:
        contact = NotificationContact(recipient_id="user-1", email="not-an-address")

        with pytest.raises(RecipientValidationError) as exc_info:
            await EmailSender(email_client).send(notification, contact, "Subject", "Body")

        assert exc_info.value.reason == "invalid email address"

    @pytest.mark.asyncio
    async def test_transport_failure_raises(
        self,
        notification: Notification,
        email_client: MagicMock,
    ) -> None:
        email_client.send.return_value = EmailResult.failure_result(
            "Email sending is disabled",
            "EMAIL_DISABLED",
            "smtp",
        )
        contact = NotificationContact(recipient_id="user-1", email="ann@example.com")

        with pytest.raises(TransportError) as exc_info:
            await EmailSender(email_client).send(notification, contact, "Subject", "Body")

        assert exc_info.value.reason == "Email sending is disabled"

    def test_availability(self, email_client: MagicMock) -> None:
        sender = EmailSender(email_client)

        assert sender.is_available(NotificationContact(recipient_id="u", email="a@example.com"))
        assert not sender.is_available(NotificationContact(recipient_id="u"))
        assert not sender.is_available(None)

        email_client.settings = EmailSettings(enabled=False)
        assert not sender.is_available(NotificationContact(recipient_id="u", email="a@example.com"))


class TestNotifierSenders:
    """Test push/sms/slack/telegram senders."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("sender_cls", "field", "token", "channel"),
        [
            (PushSender, "device_token", "device-abc", "push"),
            (SmsSender, "phone", "+15550100", "sms"),
            (SlackSender, "slack_user_id", "U123", "slack"),
            (TelegramSender, "telegram_chat_id", "98765", "telegram"),
        ],
    )
    async def test_delivers_to_contact_token(
        self,
        notification: Notification,
        backend: MagicMock,
        sender_cls: type,
        field: str,
        token: str,
        channel: str,
    ) -> None:
        contact = NotificationContact(recipient_id="user-1", **{field: token})

        result = await sender_cls(backend).send(notification, contact, "Hello", "World")

        assert result.success is True
        backend.notify.assert_awaited_once_with(token, channel, "World", subject="Hello")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("sender_cls", "reason"),
        [
            (PushSender, "no device token"),
            (SmsSender, "no phone number"),
            (SlackSender, "no slack user id"),
            (TelegramSender, "no telegram chat id"),
        ],
    )
    async def test_missing_token(
        self,
        notification: Notification,
        backend: MagicMock,
        sender_cls: type,
        reason: str,
    ) -> None:
        contact = NotificationContact(recipient_id="user-1", email="ann@example.com")

        with pytest.raises(RecipientValidationError) as exc_info:
            await sender_cls(backend).send(notification, contact, "Hello", "World")

        assert exc_info.value.reason == reason
        backend.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_token_checked_before_backend(self, notification: Notification) -> None:
        with pytest.raises(RecipientValidationError) as exc_info:
            await SmsSender(None).send(notification, None, "Hello", "World")

        assert exc_info.value.reason == "no phone number"

    @pytest.mark.asyncio
    async def test_unconfigured_backend(self, notification: Notification) -> None:
        contact = NotificationContact(recipient_id="user-1", phone="+15550100")

        with pytest.raises(TransportError) as exc_info:
            await SmsSender(None).send(notification, contact, "Hello", "World")

        assert exc_info.value.reason == "notifier not configured"

    @pytest.mark.asyncio
    async def test_notifier_error_becomes_transport_error(
        self,
        notification: Notification,
        backend: MagicMock,
    ) -> None:
        backend.notify.side_effect = NotifierError("slack error: channel_not_found")
        contact = NotificationContact(recipient_id="user-1", slack_user_id="U123")

        with pytest.raises(TransportError) as exc_info:
            await SlackSender(backend).send(notification, contact, "Hello", "World")

        assert exc_info.value.reason == "slack error: channel_not_found"

    def test_availability(self, backend: MagicMock) -> None:
        contact = NotificationContact(recipient_id="user-1", phone="+15550100")

        assert SmsSender(backend).is_available(contact)
        assert not SmsSender(None).is_available(contact)
        assert not PushSender(backend).is_available(contact)
        assert not SmsSender(backend).is_available(None)


class TestChannelRegistry:
    """Test ChannelRegistry and build_channel_registry."""

    def test_register_and_lookup(self) -> None:
        registry = ChannelRegistry()
        sender = InAppSender()

        registry.register(" In_App ", sender)

        assert registry.get("in_app") is sender
        assert "in_app" in registry
        assert registry.get("email") is None
        assert registry.channels() == ["in_app"]

    def test_register_replaces_existing(self) -> None:
        registry = ChannelRegistry()
        first, second = InAppSender(), InAppSender()

        registry.register("in_app", first)
        registry.register("in_app", second)

        assert registry.get("in_app") is second
        assert registry.channels() == ["in_app"]

    def test_builtin_channels(self, email_client: MagicMock) -> None:
        registry = build_channel_registry(email_client, {})

        assert registry.channels() == ["in_app", "email", "push", "sms", "slack", "telegram"]
        assert isinstance(registry.get("email"), EmailSender)
        assert isinstance(registry.get("telegram"), TelegramSender)
        assert registry.get("sms").configured is False
