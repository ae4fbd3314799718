"""Logging configuration settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Structured logging configuration.

    Environment variables use LOG_ prefix.
    Example: LOG_LEVEL=DEBUG, LOG_JSON=false, LOG_FILE_ENABLED=true
    """

    # ──────────────────────────────────────────────────────────────
    # Basic configuration
    # ──────────────────────────────────────────────────────────────

    service_name: str = Field(
        default="taskboard-service",
        description="Service name included as a static field in JSON records",
    )

    level: LogLevel = Field(
        default="INFO",
        description="Root logger level (DEBUG|INFO|WARNING|ERROR|CRITICAL)",
    )

    json_logs: bool = Field(
        default=True,
        alias="json",
        description="Emit JSON Lines instead of human-readable text",
    )

    # ──────────────────────────────────────────────────────────────
    # Handlers
    # ──────────────────────────────────────────────────────────────

    console_enabled: bool = Field(default=True, description="Log to stderr")

    console_level: LogLevel | None = Field(
        default=None,
        description="Console handler level. If None, uses root level.",
    )

    file_enabled: bool = Field(
        default=False,
        description="Enable rotating file logging. When False, file_path is ignored.",
    )

    file_path: Path | None = Field(
        default=Path("logs/taskboard-service.log.jsonl"),
        description="Log file path.",
    )

    file_level: LogLevel | None = Field(
        default=None,
        description="File handler level. If None, uses root level.",
    )

    file_max_bytes: int = Field(
        default=10_485_760,  # 10 MiB
        ge=1024,
        le=1_073_741_824,
        description="Maximum log file size in bytes before rotation.",
    )

    file_backup_count: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Number of rotated log files to keep.",
    )

    # ──────────────────────────────────────────────────────────────
    # Record content
    # ──────────────────────────────────────────────────────────────

    include_context: bool = Field(
        default=True,
        description="Inject contextvars log context (request_id, recipient_id) into records",
    )

    include_process_info: bool = Field(
        default=False,
        description="Add process id and name to JSON records",
    )

    capture_warnings: bool = Field(
        default=True,
        description="Route Python warnings through logging",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @computed_field  # type: ignore[misc]
    @property
    def effective_file_path(self) -> Path | None:
        """File path when file logging is enabled, otherwise None."""
        return self.file_path if self.file_enabled else None

    def to_logging_kwargs(self) -> dict[str, Any]:
        """Return kwargs for ``configure_logging``."""
        file_path = self.effective_file_path
        return {
            "service_name": self.service_name,
            "log_level": self.level,
            "json_logs": self.json_logs,
            "console_enabled": self.console_enabled,
            "console_level": self.console_level or self.level,
            "file_path": str(file_path) if file_path else None,
            "file_level": self.file_level or self.level,
            "file_max_bytes": self.file_max_bytes,
            "file_backup_count": self.file_backup_count,
            "include_context": self.include_context,
            "include_process_info": self.include_process_info,
            "capture_warnings": self.capture_warnings,
        }
