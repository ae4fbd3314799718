"""Email message and delivery result models."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, EmailStr, Field


class EmailStatus(StrEnum):
    """Email delivery status."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class EmailMessage(BaseModel):
    """A complete email ready for sending.

    Example:
        message = EmailMessage(
            to=["user@example.com"],
            subject="New task assigned: Quarterly report",
            body_html="Hello Ann,<br><br>You have been assigned ...",
        )
    """

    to: list[EmailStr] = Field(min_length=1, description="Primary recipients")
    from_email: EmailStr | None = Field(default=None, description="Sender address")
    from_name: str | None = Field(default=None, max_length=100)

    subject: str = Field(min_length=1, max_length=500)
    body_text: str | None = Field(default=None, description="Plain text body")
    body_html: str | None = Field(default=None, description="HTML body")

    headers: dict[str, str] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        if self.body_text is None and self.body_html is None:
            msg = "Either body_text or body_html must be provided"
            raise ValueError(msg)


class EmailResult(BaseModel):
    """Result of one send attempt."""

    success: bool
    message_id: str | None = None
    status: EmailStatus = EmailStatus.PENDING
    error: str | None = None
    error_code: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    recipients_accepted: list[str] = Field(default_factory=list)
    recipients_rejected: list[str] = Field(default_factory=list)
    backend: str = Field(default="smtp", description="Backend that handled the message")

    @classmethod
    def success_result(
        cls,
        message_id: str,
        recipients: list[str],
        backend: str,
    ) -> EmailResult:
        return cls(
            success=True,
            message_id=message_id,
            status=EmailStatus.SENT,
            recipients_accepted=recipients,
            backend=backend,
        )

    @classmethod
    def failure_result(cls, error: str, error_code: str, backend: str) -> EmailResult:
        return cls(
            success=False,
            status=EmailStatus.FAILED,
            error=error,
            error_code=error_code,
            backend=backend,
        )
