"""Notification delivery and live stream settings.

Environment variables use NOTIFY_ prefix.
Example: NOTIFY_STREAM_POLL_INTERVAL=5, NOTIFY_SLACK_BOT_TOKEN=xoxb-...
"""

from __future__ import annotations

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NotificationSettings(BaseSettings):
    """Dispatch defaults, stream limits and notifier backends."""

    # ──────────────────────────────────────────────────────────────
    # Dispatch
    # ──────────────────────────────────────────────────────────────

    default_channels: list[str] = Field(
        default_factory=lambda: ["in_app"],
        min_length=1,
        description="Channels used by the task notification helpers when none are given",
    )

    seed_templates: bool = Field(
        default=True,
        description="Create missing default templates at startup",
    )

    # ──────────────────────────────────────────────────────────────
    # Live stream
    # ──────────────────────────────────────────────────────────────

    stream_max_iterations: int = Field(
        default=300,
        ge=1,
        le=100_000,
        description="Poll cycles before a stream closes with reason 'timeout'",
    )
    stream_poll_interval: float = Field(
        default=10.0,
        gt=0,
        le=300.0,
        description="Seconds between store polls",
    )
    stream_heartbeat_every: int = Field(
        default=3,
        ge=1,
        le=1000,
        description="Emit a heartbeat every N poll cycles",
    )
    stream_batch_size: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Maximum notifications emitted per poll",
    )
    stream_disconnect_check_interval: float = Field(
        default=2.0,
        gt=0,
        le=60.0,
        description="Seconds between client liveness checks",
    )
    stream_max_consecutive_failures: int = Field(
        default=3,
        ge=1,
        le=100,
        description="Consecutive poll failures before closing with 'store_unavailable'",
    )
    stream_checkpoint_overlap: float = Field(
        default=5.0,
        ge=0.0,
        le=300.0,
        description="Look-back window (seconds) for rows committed after a poll began",
    )

    # ──────────────────────────────────────────────────────────────
    # Notifier backends
    # ──────────────────────────────────────────────────────────────

    console_notifier: bool = Field(
        default=False,
        description="Log push/sms/slack/telegram messages instead of sending (development)",
    )
    notifier_timeout: float = Field(default=10.0, ge=0.5, le=120.0)

    push_gateway_url: str | None = Field(default=None, description="Push gateway endpoint")
    push_api_key: SecretStr | None = Field(default=None)

    sms_gateway_url: str | None = Field(default=None, description="SMS gateway endpoint")
    sms_api_key: SecretStr | None = Field(default=None)

    slack_bot_token: SecretStr | None = Field(default=None)
    slack_api_url: str = Field(default="https://slack.com/api")

    telegram_bot_token: SecretStr | None = Field(default=None)
    telegram_api_url: str = Field(default="https://api.telegram.org")

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @field_validator("default_channels")
    @classmethod
    def _normalize_channels(cls, value: list[str]) -> list[str]:
        return [channel.strip().lower() for channel in value if channel.strip()]
