"""Unit tests for NotificationDispatcher."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from taskboard_service.core.settings import EmailSettings
from taskboard_service.features.notifications.channels import (
    ChannelRegistry,
    InAppSender,
    SendResult,
    build_channel_registry,
)
from taskboard_service.features.notifications.dispatcher import (
    NotificationDispatcher,
    normalize_channels,
)
from taskboard_service.features.notifications.models import NotificationContact, NotificationDelivery
from taskboard_service.features.notifications.templates import NotificationTemplateService
from taskboard_service.infra.email import EmailResult
from taskboard_service.infra.metrics import REGISTRY
from taskboard_service.infra.notifier import NotifierError


@pytest.fixture
def email_client() -> MagicMock:
    """Email client whose transport accepts everything."""
    client = MagicMock()
    client.settings = EmailSettings(enabled=True, backend="console")
    client.send = AsyncMock(
        return_value=EmailResult.success_result("console-1", ["ann@example.com"], "console"),
    )
    return client


@pytest.fixture
def sms_backend() -> MagicMock:
    backend = MagicMock()
    backend.name = "sms"
    backend.notify = AsyncMock(return_value=None)
    return backend


@pytest.fixture
def dispatcher(email_client: MagicMock, sms_backend: MagicMock) -> NotificationDispatcher:
    registry = build_channel_registry(
        email_client,
        {"push": None, "sms": sms_backend, "slack": None, "telegram": None},
    )
    return NotificationDispatcher(registry)


def _status(notification) -> dict[str, tuple[str, str | None]]:
    return {
        channel: (entry["status"], entry["reason"])
        for channel, entry in notification.channel_status.items()
    }


class TestNormalizeChannels:
    """Test normalize_channels helper."""

    def test_lowercases_and_dedupes_in_order(self) -> None:
        assert normalize_channels(["Email", "in_app", " email ", "SMS"]) == ["email", "in_app", "sms"]

    def test_drops_blank_entries(self) -> None:
        assert normalize_channels(["", "  ", "in_app"]) == ["in_app"]


class TestSendNotification:
    """Test NotificationDispatcher.send_notification."""

    @pytest.mark.asyncio
    async def test_partial_failure_is_isolated_per_channel(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
        make_contact,
        email_client: MagicMock,
        sms_backend: MagicMock,
    ) -> None:
        """Recipient with email but no phone: sms fails, the others are sent."""
        await make_contact("user-1", email="ann@example.com")

        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "New task assigned",
            "Bob assigned you a task",
            channels=["in_app", "email", "sms"],
        )

        assert _status(notification) == {
            "in_app": ("sent", None),
            "email": ("sent", None),
            "sms": ("failed", "no phone number"),
        }
        email_client.send.assert_awaited_once()
        sms_backend.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_template_fails_only_templated_channels(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
        make_contact,
        email_client: MagicMock,
    ) -> None:
        await make_contact("user-1", email="ann@example.com")

        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Deadline reminder",
            "Report is due tomorrow",
            channels=["in_app", "email"],
            template_key="deadline_reminder",
        )

        assert _status(notification) == {
            "in_app": ("sent", None),
            "email": ("failed", "template not found"),
        }
        email_client.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_renders_template_for_email(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
        make_contact,
        email_client: MagicMock,
    ) -> None:
        await NotificationTemplateService().seed_defaults(db_session)
        await db_session.commit()
        await make_contact("user-1", email="ann@example.com", full_name="Ann")

        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Task completed",
            "Bob completed the task",
            type="success",
            channels=["email"],
            template_key="task_completed",
            template_variables={
                "task_title": "Write <docs>",
                "completed_by": "Bob",
                "task_url": "https://crm.example.com/tasks/7",
            },
        )

        assert _status(notification) == {"email": ("sent", None)}
        message = email_client.send.await_args.args[0]
        assert message.to == ["ann@example.com"]
        assert message.subject == "Task completed: Write <docs>"
        assert "<strong>Write &lt;docs&gt;</strong>" in message.body_html
        # Stored record keeps the original title/message
        assert notification.title == "Task completed"
        assert notification.message == "Bob completed the task"

    @pytest.mark.asyncio
    async def test_missing_template_variables_fail_the_channel(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
        make_contact,
    ) -> None:
        await NotificationTemplateService().seed_defaults(db_session)
        await db_session.commit()
        await make_contact("user-1", email="ann@example.com")

        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Task completed",
            "done",
            channels=["in_app", "email"],
            template_key="task_completed",
            template_variables={"task_title": "Docs"},
        )

        assert _status(notification) == {
            "in_app": ("sent", None),
            "email": ("failed", "template render failed"),
        }

    @pytest.mark.asyncio
    async def test_email_transport_failure_records_reason(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
        make_contact,
        email_client: MagicMock,
    ) -> None:
        await make_contact("user-1", email="ann@example.com")
        email_client.send.return_value = EmailResult.failure_result(
            "Connection refused",
            "CONNECTION_ERROR",
            "smtp",
        )

        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Hello",
            "World",
            channels=["email", "in_app"],
        )

        assert _status(notification) == {
            "email": ("failed", "Connection refused"),
            "in_app": ("sent", None),
        }

    @pytest.mark.asyncio
    async def test_notifier_error_records_reason(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
        make_contact,
        sms_backend: MagicMock,
    ) -> None:
        await make_contact("user-1", phone="+15550100")
        sms_backend.notify.side_effect = NotifierError("HTTP 503", status_code=503)

        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Hello",
            "World",
            channels=["sms"],
        )

        assert _status(notification) == {"sms": ("failed", "HTTP 503")}
        sms_backend.notify.assert_awaited_once_with("+15550100", "sms", "World", subject="Hello")

    @pytest.mark.asyncio
    async def test_unconfigured_notifier_backend(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
        make_contact,
    ) -> None:
        await make_contact("user-1", slack_user_id="U123")

        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Hello",
            "World",
            channels=["slack"],
        )

        assert _status(notification) == {"slack": ("failed", "notifier not configured")}

    @pytest.mark.asyncio
    async def test_unknown_channel_fails_without_aborting(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
    ) -> None:
        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Hello",
            "World",
            channels=["carrier_pigeon", "in_app"],
        )

        assert _status(notification) == {
            "carrier_pigeon": ("failed", "unknown channel"),
            "in_app": ("sent", None),
        }

    @pytest.mark.asyncio
    async def test_unexpected_sender_exception_is_contained(self, db_session) -> None:
        exploding = MagicMock()
        exploding.send = AsyncMock(side_effect=RuntimeError("boom"))
        registry = ChannelRegistry()
        registry.register("exploding", exploding)
        registry.register("in_app", InAppSender())
        dispatcher = NotificationDispatcher(registry)

        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Hello",
            "World",
            channels=["exploding", "in_app"],
        )

        assert _status(notification) == {
            "exploding": ("failed", "boom"),
            "in_app": ("sent", None),
        }

    @pytest.mark.asyncio
    async def test_store_error_in_channel_does_not_poison_session(
        self,
        db_session,
        make_contact,
        email_client: MagicMock,
    ) -> None:
        """A failed statement during one channel leaves later channels deliverable."""
        await make_contact("user-1", email="ann@example.com")

        async def render_with_bad_write(session, key, channel, variables):
            session.add(NotificationContact(recipient_id="user-1"))
            await session.flush()

        templates = MagicMock()
        templates.render_template = AsyncMock(side_effect=render_with_bad_write)
        registry = build_channel_registry(email_client, {})
        dispatcher = NotificationDispatcher(registry, template_service=templates)

        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Deadline reminder",
            "Report is due tomorrow",
            channels=["email", "in_app"],
            template_key="deadline_reminder",
        )

        status = _status(notification)
        assert status["email"][0] == "failed"
        assert "UNIQUE" in status["email"][1]
        assert status["in_app"] == ("sent", None)
        email_client.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_returned_failure_is_recorded(self, db_session) -> None:
        """Senders may also report failure without raising."""
        sender = MagicMock()
        sender.send = AsyncMock(return_value=SendResult.failed("quota exceeded"))
        registry = ChannelRegistry()
        registry.register("webhook", sender)
        dispatcher = NotificationDispatcher(registry)

        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Hello",
            "World",
            channels=["webhook"],
        )

        assert _status(notification) == {"webhook": ("failed", "quota exceeded")}

    @pytest.mark.asyncio
    async def test_every_channel_persisted_terminal(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
        session_factory,
    ) -> None:
        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Hello",
            "World",
            channels=["in_app", "email", "push", "sms", "slack", "telegram"],
        )

        async with session_factory() as other:
            rows = (
                await other.execute(
                    select(NotificationDelivery).where(
                        NotificationDelivery.notification_id == notification.id,
                    ),
                )
            ).scalars().all()

        assert {row.channel for row in rows} == set(notification.requested_channels)
        assert all(row.status in {"sent", "failed"} for row in rows)
        assert all(row.response_time_ms is not None for row in rows)
        sent = {row.channel for row in rows if row.status == "sent"}
        assert sent == {"in_app"}

    @pytest.mark.asyncio
    async def test_channels_are_normalized(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
    ) -> None:
        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Hello",
            "World",
            channels=["IN_APP", "in_app"],
        )

        assert notification.requested_channels == ["in_app"]
        assert _status(notification) == {"in_app": ("sent", None)}

    @pytest.mark.asyncio
    async def test_error_type_is_stored_as_danger(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
    ) -> None:
        notification = await dispatcher.send_notification(
            db_session,
            "user-1",
            "Sync failed",
            "Check the integration",
            type="error",
        )

        assert notification.type == "danger"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("channels", [[], ["", "  "]])
    async def test_empty_channel_list_is_rejected(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
        channels: list[str],
    ) -> None:
        with pytest.raises(ValueError, match="At least one channel"):
            await dispatcher.send_notification(
                db_session,
                "user-1",
                "Hello",
                "World",
                channels=channels,
            )

    @pytest.mark.asyncio
    async def test_unknown_type_is_rejected(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
    ) -> None:
        with pytest.raises(ValueError):
            await dispatcher.send_notification(db_session, "user-1", "Hello", "World", type="fatal")

    @pytest.mark.asyncio
    async def test_delivery_metrics_are_recorded(
        self,
        dispatcher: NotificationDispatcher,
        db_session,
    ) -> None:
        labels = {"channel": "sms", "status": "failed"}
        before = REGISTRY.get_sample_value("notification_delivered_total", labels) or 0.0

        await dispatcher.send_notification(
            db_session,
            "user-1",
            "Hello",
            "World",
            channels=["sms"],
        )

        after = REGISTRY.get_sample_value("notification_delivered_total", labels)
        assert after == before + 1
