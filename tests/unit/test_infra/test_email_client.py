"""Unit tests for the email client backends."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import aiosmtplib
import pytest
from pydantic import ValidationError

from taskboard_service.core.settings import EmailSettings
from taskboard_service.infra.email import EmailClient, EmailMessage, EmailStatus
from taskboard_service.infra.email import client as client_module


@pytest.fixture
def message() -> EmailMessage:
    return EmailMessage(
        to=["ann@example.com"],
        subject="New task assigned: Quarterly report",
        body_html="<p>Hello Ann</p>",
    )


@pytest.fixture
def smtp(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """aiosmtplib.SMTP replaced by an async context manager double."""
    connection = MagicMock()
    connection.__aenter__ = AsyncMock(return_value=connection)
    connection.__aexit__ = AsyncMock(return_value=False)
    connection.login = AsyncMock()
    connection.send_message = AsyncMock(return_value=({}, "OK"))
    factory = MagicMock(return_value=connection)
    monkeypatch.setattr(client_module.aiosmtplib, "SMTP", factory)
    return connection


class TestEmailMessage:
    """Test EmailMessage validation."""

    def test_requires_a_body(self) -> None:
        with pytest.raises((ValidationError, ValueError)):
            EmailMessage(to=["ann@example.com"], subject="Hi")

    def test_rejects_invalid_address(self) -> None:
        with pytest.raises(ValidationError):
            EmailMessage(to=["not-an-address"], subject="Hi", body_text="x")


class TestEmailClient:
    """Test the EmailClient facade and its backends."""

    @pytest.mark.asyncio
    async def test_disabled_transport_fails(self, message: EmailMessage) -> None:
        client = EmailClient(EmailSettings(enabled=False, backend="console"))

        result = await client.send(message)

        assert result.success is False
        assert result.error == "Email sending is disabled"
        assert result.error_code == "EMAIL_DISABLED"

    @pytest.mark.asyncio
    async def test_console_backend(self, message: EmailMessage) -> None:
        client = EmailClient(EmailSettings(enabled=True, backend="console"))

        result = await client.send(message)

        assert result.success is True
        assert result.status == EmailStatus.SENT
        assert result.backend == "console"
        assert result.recipients_accepted == ["ann@example.com"]

    @pytest.mark.asyncio
    async def test_file_backend_writes_json(self, message: EmailMessage, tmp_path) -> None:
        client = EmailClient(EmailSettings(enabled=True, backend="file", file_path=str(tmp_path)))

        result = await client.send(message)

        files = list(tmp_path.glob("*.json"))
        assert result.success is True
        assert len(files) == 1
        data = json.loads(files[0].read_text(encoding="utf-8"))
        assert data["to"] == ["ann@example.com"]
        assert data["subject"] == message.subject
        assert data["from_email"] == "noreply@crm-system.com"
        assert await client.health_check() is True

    @pytest.mark.asyncio
    async def test_smtp_backend_sends(self, message: EmailMessage, smtp: MagicMock) -> None:
        settings = EmailSettings(
            enabled=True,
            backend="smtp",
            smtp_username="mailer",
            smtp_password="secret",
        )

        result = await EmailClient(settings).send(message)

        assert result.success is True
        assert result.backend == "smtp"
        smtp.login.assert_awaited_once_with("mailer", "secret")
        sent = smtp.send_message.await_args.args[0]
        assert sent["To"] == "ann@example.com"
        assert sent["Subject"] == message.subject

    @pytest.mark.asyncio
    async def test_smtp_error_is_reported(self, message: EmailMessage, smtp: MagicMock) -> None:
        smtp.send_message.side_effect = aiosmtplib.SMTPException("mailbox unavailable")

        result = await EmailClient(EmailSettings(enabled=True, backend="smtp")).send(message)

        assert result.success is False
        assert result.error_code == "SMTP_ERROR"
        assert "mailbox unavailable" in result.error
        smtp.login.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_smtp_connection_error(self, message: EmailMessage, smtp: MagicMock) -> None:
        smtp.__aenter__.side_effect = ConnectionRefusedError("refused")

        result = await EmailClient(EmailSettings(enabled=True, backend="smtp")).send(message)

        assert result.success is False
        assert result.error_code == "CONNECTION_ERROR"


class TestEmailSettings:
    """Test EmailSettings validation."""

    def test_tls_and_ssl_are_exclusive(self) -> None:
        with pytest.raises(ValidationError):
            EmailSettings(use_tls=True, use_ssl=True)

    def test_credentials_come_in_pairs(self) -> None:
        with pytest.raises(ValidationError):
            EmailSettings(smtp_username="mailer")

    def test_smtp_url_hides_password(self) -> None:
        settings = EmailSettings(smtp_host="smtp.example.com", smtp_username="mailer", smtp_password="pw")

        assert settings.get_smtp_url() == "smtp://mailer@smtp.example.com:587"
