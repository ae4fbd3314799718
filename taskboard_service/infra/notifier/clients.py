"""HTTP and console notifier backends."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from taskboard_service.infra.logging import get_lazy_logger
from taskboard_service.infra.notifier.base import BaseNotifier, NotifierError

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)


class HTTPNotifier(BaseNotifier):
    """Base for backends that deliver with a single JSON POST."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._transport = transport

    async def _post(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        start_time = time.perf_counter()
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers=headers,
                    timeout=self.timeout,
                )
        except httpx.TimeoutException as exc:
            logger.warning(
                "Notifier request timeout",
                extra={"notifier": self.name, "timeout_seconds": self.timeout, "operation": "notifier.post"},
            )
            raise NotifierError(f"timeout after {self.timeout}s") from exc
        except httpx.RequestError as exc:
            logger.warning(
                "Notifier request failed",
                extra={"notifier": self.name, "error": str(exc), "operation": "notifier.post"},
            )
            raise NotifierError("connection error") from exc

        response_time_ms = int((time.perf_counter() - start_time) * 1000)
        if not 200 <= response.status_code < 300:
            logger.warning(
                "Notifier rejected message with non-2xx status",
                extra={
                    "notifier": self.name,
                    "status_code": response.status_code,
                    "response_time_ms": response_time_ms,
                    "operation": "notifier.post",
                },
            )
            raise NotifierError(f"HTTP {response.status_code}", status_code=response.status_code)

        lazy_logger.debug(
            lambda: f"notifier.post: {self.name} -> {response.status_code} in {response_time_ms}ms"
        )
        return response

    def _json_body(self, response: httpx.Response) -> dict[str, Any]:
        """Decode a 2xx JSON object body; anything else is an invalid response."""
        try:
            body = response.json()
        except ValueError as exc:
            logger.warning(
                "Notifier returned a non-JSON body",
                extra={"notifier": self.name, "status_code": response.status_code, "operation": "notifier.post"},
            )
            raise NotifierError("invalid response", status_code=response.status_code) from exc
        if not isinstance(body, dict):
            raise NotifierError("invalid response", status_code=response.status_code)
        return body


class SlackNotifier(HTTPNotifier):
    """Direct message through the Slack Web API ``chat.postMessage``."""

    name = "slack"

    def __init__(
        self,
        token: str,
        *,
        api_url: str = "https://slack.com/api",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self._token = token
        self._api_url = api_url.rstrip("/")

    async def notify(
        self,
        recipient: str,
        channel: str,
        content: str,
        *,
        subject: str | None = None,
    ) -> None:
        text = f"*{subject}*\n{content}" if subject else content
        response = await self._post(
            f"{self._api_url}/chat.postMessage",
            {"channel": recipient, "text": text},
            headers={"Authorization": f"Bearer {self._token}"},
        )
        # Slack reports API errors with HTTP 200 and ok=false
        body = self._json_body(response)
        if not body.get("ok", False):
            raise NotifierError(f"slack error: {body.get('error', 'unknown')}")


class TelegramNotifier(HTTPNotifier):
    """Message through the Telegram Bot API ``sendMessage``."""

    name = "telegram"

    def __init__(
        self,
        token: str,
        *,
        api_url: str = "https://api.telegram.org",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self._token = token
        self._api_url = api_url.rstrip("/")

    async def notify(
        self,
        recipient: str,
        channel: str,
        content: str,
        *,
        subject: str | None = None,
    ) -> None:
        text = f"{subject}\n\n{content}" if subject else content
        response = await self._post(
            f"{self._api_url}/bot{self._token}/sendMessage",
            {"chat_id": recipient, "text": text},
        )
        body = self._json_body(response)
        if not body.get("ok", False):
            raise NotifierError(f"telegram error: {body.get('description', 'unknown')}")


class GatewayNotifier(HTTPNotifier):
    """Generic JSON gateway used for push and SMS providers.

    Posts ``{"to", "channel", "subject", "content"}`` with a bearer API key.
    """

    def __init__(
        self,
        name: str,
        url: str,
        *,
        api_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self.name = name
        self._url = url
        self._api_key = api_key

    async def notify(
        self,
        recipient: str,
        channel: str,
        content: str,
        *,
        subject: str | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else None
        await self._post(
            self._url,
            {"to": recipient, "channel": channel, "subject": subject, "content": content},
            headers=headers,
        )


class ConsoleNotifier(BaseNotifier):
    """Log messages instead of sending them (development)."""

    def __init__(self, name: str) -> None:
        self.name = name

    async def notify(
        self,
        recipient: str,
        channel: str,
        content: str,
        *,
        subject: str | None = None,
    ) -> None:
        logger.info(
            "Notification logged to console",
            extra={
                "notifier": self.name,
                "channel": channel,
                "recipient": recipient,
                "subject": subject,
                "content_preview": content[:500],
            },
        )
