"""Email clients for SMTP and development backends.

- SMTP: delivery via aiosmtplib, one connection per message
- Console: log messages instead of sending (development)
- File: write messages as JSON files (testing)

Clients make exactly one attempt per message and report the outcome as an
``EmailResult``; they never raise for delivery failures.
"""

from __future__ import annotations

import json
import logging
import ssl
import uuid
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path

import aiosmtplib

from taskboard_service.core.settings import EmailSettings, get_email_settings

from .schemas import EmailMessage, EmailResult, EmailStatus

logger = logging.getLogger(__name__)


class BaseEmailClient(ABC):
    """Abstract base class for email backends."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> EmailResult:
        """Send one message and report the outcome."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Check whether the backend can accept messages."""


class SMTPClient(BaseEmailClient):
    """SMTP client using aiosmtplib with STARTTLS, implicit TLS and auth."""

    def __init__(self, settings: EmailSettings) -> None:
        self.settings = settings
        logger.info(
            "SMTP client initialized",
            extra={
                "smtp_url": settings.get_smtp_url(),
                "use_tls": settings.use_tls,
                "use_ssl": settings.use_ssl,
            },
        )

    def _tls_context(self) -> ssl.SSLContext | None:
        if not (self.settings.use_tls or self.settings.use_ssl):
            return None
        context = ssl.create_default_context()
        if not self.settings.validate_certs:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def _smtp(self, timeout: float) -> aiosmtplib.SMTP:
        return aiosmtplib.SMTP(
            hostname=self.settings.smtp_host,
            port=self.settings.smtp_port,
            use_tls=self.settings.use_ssl,
            start_tls=self.settings.use_tls,
            tls_context=self._tls_context(),
            timeout=timeout,
        )

    async def health_check(self) -> bool:
        smtp = self._smtp(timeout=5.0)
        try:
            await smtp.connect()
            await smtp.quit()
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.warning("SMTP health check failed", extra={"error": str(exc)})
            return False
        return True

    async def send(self, message: EmailMessage) -> EmailResult:
        mime_message = self._build_mime_message(message)
        message_id = mime_message["Message-ID"]

        try:
            async with self._smtp(timeout=self.settings.timeout) as smtp:
                if self.settings.requires_auth:
                    await smtp.login(
                        self.settings.smtp_username,
                        self.settings.smtp_password.get_secret_value(),
                    )
                errors, _ = await smtp.send_message(mime_message)
        except aiosmtplib.SMTPAuthenticationError as exc:
            logger.error("SMTP authentication failed", extra={"error": str(exc)})
            return EmailResult.failure_result(str(exc), "AUTH_FAILED", "smtp")
        except aiosmtplib.SMTPRecipientsRefused as exc:
            logger.error("All recipients refused", extra={"error": str(exc)})
            return EmailResult.failure_result(str(exc), "RECIPIENTS_REFUSED", "smtp")
        except aiosmtplib.SMTPException as exc:
            logger.error("SMTP error", extra={"error": str(exc)})
            return EmailResult.failure_result(str(exc), "SMTP_ERROR", "smtp")
        except OSError as exc:
            logger.error("SMTP connection failed", extra={"error": str(exc)})
            return EmailResult.failure_result(str(exc), "CONNECTION_ERROR", "smtp")

        rejected = list(errors.keys()) if errors else []
        accepted = [r for r in message.to if r not in rejected]
        if rejected:
            logger.warning(
                "Some recipients rejected",
                extra={"message_id": message_id, "rejected": rejected},
            )

        logger.info(
            "Email sent",
            extra={"message_id": message_id, "recipients": len(accepted), "subject": message.subject[:50]},
        )
        return EmailResult(
            success=bool(accepted),
            message_id=message_id,
            status=EmailStatus.SENT if accepted else EmailStatus.FAILED,
            error=None if accepted else "All recipients rejected",
            recipients_accepted=accepted,
            recipients_rejected=rejected,
            backend="smtp",
        )

    def _build_mime_message(self, message: EmailMessage) -> MIMEMultipart:
        mime_msg = MIMEMultipart("alternative")

        from_email = message.from_email or self.settings.default_from_email
        from_name = message.from_name or self.settings.default_from_name
        mime_msg["From"] = f"{from_name} <{from_email}>" if from_name else from_email
        mime_msg["To"] = ", ".join(message.to)
        mime_msg["Subject"] = message.subject
        mime_msg["Message-ID"] = f"<{uuid.uuid4()}@{self.settings.smtp_host}>"
        mime_msg["Date"] = datetime.now(UTC).strftime("%a, %d %b %Y %H:%M:%S +0000")
        for key, value in message.headers.items():
            mime_msg[key] = value

        if message.body_text:
            mime_msg.attach(MIMEText(message.body_text, "plain", "utf-8"))
        if message.body_html:
            mime_msg.attach(MIMEText(message.body_html, "html", "utf-8"))
        return mime_msg


class ConsoleClient(BaseEmailClient):
    """Log messages instead of sending them."""

    def __init__(self, settings: EmailSettings) -> None:
        self.settings = settings
        logger.info("Console email client initialized (development mode)")

    async def health_check(self) -> bool:
        return True

    async def send(self, message: EmailMessage) -> EmailResult:
        message_id = f"console-{uuid.uuid4()}"
        body = message.body_html or message.body_text or ""
        logger.info(
            "Email logged to console",
            extra={
                "message_id": message_id,
                "to": message.to,
                "subject": message.subject,
                "body_preview": body[:500],
            },
        )
        return EmailResult.success_result(message_id, list(message.to), "console")


class FileClient(BaseEmailClient):
    """Write each message as a JSON file in ``settings.file_path``."""

    def __init__(self, settings: EmailSettings) -> None:
        self.settings = settings
        self.output_dir = Path(settings.file_path)
        logger.info("File email client initialized", extra={"output_dir": str(self.output_dir)})

    async def health_check(self) -> bool:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            probe = self.output_dir / ".health_check"
            probe.touch()
            probe.unlink()
        except OSError:
            return False
        return True

    async def send(self, message: EmailMessage) -> EmailResult:
        message_id = f"file-{uuid.uuid4()}"
        timestamp = datetime.now(UTC)
        filepath = self.output_dir / f"{timestamp:%Y%m%d_%H%M%S_%f}_{message_id}.json"

        email_data = {
            "message_id": message_id,
            "timestamp": timestamp.isoformat(),
            "from_email": message.from_email or self.settings.default_from_email,
            "from_name": message.from_name or self.settings.default_from_name,
            "to": list(message.to),
            "subject": message.subject,
            "body_text": message.body_text,
            "body_html": message.body_html,
            "headers": message.headers,
            "metadata": message.metadata,
        }

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(email_data, f, indent=2, default=str)
        except OSError as exc:
            logger.error("Failed to write email to file", extra={"error": str(exc)})
            return EmailResult.failure_result(str(exc), "FILE_WRITE_ERROR", "file")

        logger.info(
            "Email written to file",
            extra={"message_id": message_id, "filepath": str(filepath), "subject": message.subject},
        )
        return EmailResult.success_result(message_id, list(message.to), "file")


class EmailClient:
    """Facade that delegates to the configured backend.

    Example:
        client = EmailClient(settings)
        result = await client.send(message)
    """

    def __init__(self, settings: EmailSettings) -> None:
        self.settings = settings
        self._backend: BaseEmailClient
        if settings.backend == "smtp":
            self._backend = SMTPClient(settings)
        elif settings.backend == "console":
            self._backend = ConsoleClient(settings)
        elif settings.backend == "file":
            self._backend = FileClient(settings)
        else:
            raise ValueError(f"Unknown email backend: {settings.backend}")

    async def send(self, message: EmailMessage) -> EmailResult:
        """Send a message; a disabled transport fails every send."""
        if not self.settings.enabled:
            logger.warning("Email sending is disabled")
            return EmailResult.failure_result(
                "Email sending is disabled",
                "EMAIL_DISABLED",
                self.settings.backend,
            )
        return await self._backend.send(message)

    async def health_check(self) -> bool:
        return await self._backend.health_check()


def get_email_client(settings: EmailSettings | None = None) -> EmailClient:
    """Build an email client from ``settings`` or the environment."""
    return EmailClient(settings or get_email_settings())
