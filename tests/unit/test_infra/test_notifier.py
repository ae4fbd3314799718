"""Unit tests for the notifier backends and their factory."""

from __future__ import annotations

import json

import httpx
import pytest

from taskboard_service.core.settings import NotificationSettings
from taskboard_service.infra.notifier import (
    ConsoleNotifier,
    GatewayNotifier,
    NotifierError,
    SlackNotifier,
    TelegramNotifier,
    build_notifiers,
)


class Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, status_code: int = 200, body: dict | None = None) -> None:
        self.status_code = status_code
        self.body = body if body is not None else {"ok": True}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def payload(self) -> dict:
        return json.loads(self.requests[-1].content)


class TestSlackNotifier:
    """Test SlackNotifier."""

    @pytest.mark.asyncio
    async def test_posts_message(self) -> None:
        recorder = Recorder()
        notifier = SlackNotifier("xoxb-token", transport=httpx.MockTransport(recorder))

        await notifier.notify("U123", "slack", "Report is due", subject="Deadline reminder")

        request = recorder.requests[0]
        assert str(request.url) == "https://slack.com/api/chat.postMessage"
        assert request.headers["Authorization"] == "Bearer xoxb-token"
        assert recorder.payload == {"channel": "U123", "text": "*Deadline reminder*\nReport is due"}

    @pytest.mark.asyncio
    async def test_api_error_with_http_200(self) -> None:
        recorder = Recorder(body={"ok": False, "error": "channel_not_found"})
        notifier = SlackNotifier("xoxb-token", transport=httpx.MockTransport(recorder))

        with pytest.raises(NotifierError, match="slack error: channel_not_found"):
            await notifier.notify("U123", "slack", "hello")


class TestTelegramNotifier:
    """Test TelegramNotifier."""

    @pytest.mark.asyncio
    async def test_posts_message(self) -> None:
        recorder = Recorder()
        notifier = TelegramNotifier(
            "123:abc",
            api_url="https://tg.example.com/",
            transport=httpx.MockTransport(recorder),
        )

        await notifier.notify("98765", "telegram", "hello")

        assert str(recorder.requests[0].url) == "https://tg.example.com/bot123:abc/sendMessage"
        assert recorder.payload == {"chat_id": "98765", "text": "hello"}

    @pytest.mark.asyncio
    async def test_api_error(self) -> None:
        recorder = Recorder(body={"ok": False, "description": "chat not found"})
        notifier = TelegramNotifier("123:abc", transport=httpx.MockTransport(recorder))

        with pytest.raises(NotifierError, match="telegram error: chat not found"):
            await notifier.notify("98765", "telegram", "hello")


class TestInvalidResponseBody:
    """Test 2xx responses whose body is not a JSON object."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "notifier_cls, token",
        [(SlackNotifier, "xoxb-token"), (TelegramNotifier, "123:abc")],
    )
    @pytest.mark.parametrize(
        "body",
        [{"text": "<html>Bad gateway</html>"}, {"json": ["not", "an", "object"]}],
    )
    async def test_reported_as_invalid_response(self, notifier_cls, token, body: dict) -> None:
        notifier = notifier_cls(token, transport=httpx.MockTransport(lambda request: httpx.Response(200, **body)))

        with pytest.raises(NotifierError) as exc_info:
            await notifier.notify("U123", notifier_cls.name, "hello")

        assert exc_info.value.message == "invalid response"
        assert exc_info.value.status_code == 200


class TestGatewayNotifier:
    """Test GatewayNotifier."""

    @pytest.mark.asyncio
    async def test_posts_payload_with_api_key(self) -> None:
        recorder = Recorder(body={})
        notifier = GatewayNotifier(
            "sms",
            "https://sms.example.com/send",
            api_key="secret",
            transport=httpx.MockTransport(recorder),
        )

        await notifier.notify("+15550100", "sms", "Report is due", subject="Reminder")

        assert recorder.requests[0].headers["Authorization"] == "Bearer secret"
        assert recorder.payload == {
            "to": "+15550100",
            "channel": "sms",
            "subject": "Reminder",
            "content": "Report is due",
        }

    @pytest.mark.asyncio
    async def test_non_2xx_status(self) -> None:
        notifier = GatewayNotifier(
            "push",
            "https://push.example.com",
            transport=httpx.MockTransport(Recorder(status_code=503, body={})),
        )

        with pytest.raises(NotifierError) as exc_info:
            await notifier.notify("device-abc", "push", "hello")

        assert exc_info.value.message == "HTTP 503"
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        notifier = GatewayNotifier(
            "push",
            "https://push.example.com",
            timeout=2.0,
            transport=httpx.MockTransport(handler),
        )

        with pytest.raises(NotifierError, match="timeout after 2.0s"):
            await notifier.notify("device-abc", "push", "hello")

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        notifier = GatewayNotifier(
            "push",
            "https://push.example.com",
            transport=httpx.MockTransport(handler),
        )

        with pytest.raises(NotifierError, match="connection error"):
            await notifier.notify("device-abc", "push", "hello")


class TestBuildNotifiers:
    """Test build_notifiers."""

    def test_nothing_configured(self) -> None:
        notifiers = build_notifiers(NotificationSettings())

        assert notifiers == {"push": None, "sms": None, "slack": None, "telegram": None}

    def test_configured_backends(self) -> None:
        settings = NotificationSettings(
            sms_gateway_url="https://sms.example.com/send",
            slack_bot_token="xoxb-token",
            telegram_bot_token="123:abc",
        )

        notifiers = build_notifiers(settings)

        assert notifiers["push"] is None
        assert isinstance(notifiers["sms"], GatewayNotifier)
        assert notifiers["sms"].name == "sms"
        assert isinstance(notifiers["slack"], SlackNotifier)
        assert isinstance(notifiers["telegram"], TelegramNotifier)

    def test_console_overrides_everything(self) -> None:
        notifiers = build_notifiers(
            NotificationSettings(console_notifier=True, slack_bot_token="xoxb-token"),
        )

        assert all(isinstance(backend, ConsoleNotifier) for backend in notifiers.values())
        assert notifiers["slack"].name == "slack"

    @pytest.mark.asyncio
    async def test_console_notifier_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level("INFO", logger="taskboard_service.infra.notifier.clients")

        await ConsoleNotifier("push").notify("device-abc", "push", "hello", subject="Hi")

        record = next(r for r in caplog.records if r.getMessage() == "Notification logged to console")
        assert record.recipient == "device-abc"
        assert record.channel == "push"
