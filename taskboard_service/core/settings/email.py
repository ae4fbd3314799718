"""Email delivery settings.

Environment variables use EMAIL_ prefix.
Example: EMAIL_ENABLED=true, EMAIL_SMTP_HOST=smtp.example.com
"""

from __future__ import annotations

from pathlib import Path
from tempfile import gettempdir
from typing import Literal

from pydantic import EmailStr, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_EMAIL_FILE_DIR = Path(gettempdir()) / "taskboard_emails"


class EmailSettings(BaseSettings):
    """Mail transport configuration for the email channel.

    Backends:
    - smtp: SMTP/SMTPS delivery through aiosmtplib
    - console: log messages instead of sending (development)
    - file: write messages as JSON files (testing)
    """

    enabled: bool = Field(
        default=False,
        description="Enable email sending. Disabled transports fail every email delivery.",
    )

    backend: Literal["smtp", "console", "file"] = Field(
        default="smtp",
        description="Email backend: smtp (production), console (dev), file (testing)",
    )

    # SMTP
    smtp_host: str = Field(default="localhost", min_length=1, max_length=255)
    smtp_port: int = Field(
        default=587,
        ge=1,
        le=65535,
        description="SMTP server port (587 for STARTTLS, 465 for SSL, 25 for plain)",
    )
    smtp_username: str | None = Field(default=None, max_length=255)
    smtp_password: SecretStr | None = Field(default=None)

    use_tls: bool = Field(default=True, description="Use STARTTLS")
    use_ssl: bool = Field(
        default=False,
        description="Use implicit SSL/TLS. Mutually exclusive with use_tls",
    )
    validate_certs: bool = Field(default=True)

    # Sender
    default_from_email: EmailStr = Field(default="noreply@crm-system.com")
    default_from_name: str = Field(default="Taskboard", max_length=100)

    timeout: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="SMTP connection timeout in seconds",
    )

    file_path: str = Field(
        default=str(DEFAULT_EMAIL_FILE_DIR),
        description="Directory the file backend writes messages to",
    )

    @model_validator(mode="after")
    def validate_tls_ssl_exclusive(self) -> EmailSettings:
        """Ensure TLS and SSL are mutually exclusive."""
        if self.use_tls and self.use_ssl:
            msg = "use_tls and use_ssl are mutually exclusive"
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def validate_smtp_auth(self) -> EmailSettings:
        """Require username and password together."""
        if (self.smtp_username is None) != (self.smtp_password is None):
            msg = "Both smtp_username and smtp_password must be provided together"
            raise ValueError(msg)
        return self

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @property
    def requires_auth(self) -> bool:
        """Whether SMTP authentication is configured."""
        return self.smtp_username is not None and self.smtp_password is not None

    def get_smtp_url(self) -> str:
        """SMTP URL for logging (without password)."""
        scheme = "smtps" if self.use_ssl else "smtp"
        auth = f"{self.smtp_username}@" if self.smtp_username else ""
        return f"{scheme}://{auth}{self.smtp_host}:{self.smtp_port}"
