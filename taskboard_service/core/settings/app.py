"""Application settings for FastAPI configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["development", "staging", "production", "test"]


class AppSettings(BaseSettings):
    """FastAPI application settings.

    Environment variables use APP_ prefix.
    Example: APP_DEBUG=true, APP_API_PREFIX=/api/v2
    """

    service_name: str = Field(
        default="taskboard-service",
        min_length=1,
        max_length=100,
        pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$",
        description="Service name for logging (lowercase, hyphens allowed)",
    )
    title: str = Field(
        default="Taskboard Notification API",
        min_length=1,
        max_length=200,
        description="API title displayed in documentation",
    )
    description: str = Field(
        default="Multi-channel notification delivery and live notification stream",
        description="API description (supports Markdown)",
    )
    version: str = Field(
        default="0.1.0",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9]+)?$",
        description="API version (semver format)",
    )
    environment: Environment = Field(
        default="development",
        description="Environment: development|staging|production|test",
    )
    api_prefix: str = Field(
        default="/api/v1",
        min_length=1,
        max_length=255,
        pattern=r"^/.*$",
        description="Base URL prefix for API routes",
    )

    # FastAPI toggles
    debug: bool = Field(default=False, description="Enable debug mode")
    docs_url: str | None = Field(default="/docs", description="Swagger UI path")
    redoc_url: str | None = Field(default="/redoc", description="ReDoc path")
    openapi_url: str | None = Field(default="/openapi.json", description="OpenAPI schema path")
    root_path: str = Field(
        default="",
        description="Root path for proxy/ingress (set when behind a reverse proxy)",
    )

    # Server
    host: str = Field(default="0.0.0.0", min_length=1, max_length=255)
    port: int = Field(default=8000, ge=1, le=65535)

    # CORS (browser EventSource clients)
    cors_origins: list[str] = Field(
        default_factory=list,
        description="Allowed CORS origins (JSON array)",
    )
    cors_allow_credentials: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
