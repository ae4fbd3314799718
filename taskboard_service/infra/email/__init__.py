"""Mail transport used by the email channel."""

from taskboard_service.infra.email.client import (
    BaseEmailClient,
    ConsoleClient,
    EmailClient,
    FileClient,
    SMTPClient,
    get_email_client,
)
from taskboard_service.infra.email.schemas import EmailMessage, EmailResult, EmailStatus

__all__ = [
    "BaseEmailClient",
    "ConsoleClient",
    "EmailClient",
    "EmailMessage",
    "EmailResult",
    "EmailStatus",
    "FileClient",
    "SMTPClient",
    "get_email_client",
]
