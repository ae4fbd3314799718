"""Router registry and setup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from taskboard_service.core.settings import get_app_settings
from taskboard_service.features.metrics.router import router as metrics_router
from taskboard_service.features.notifications.router import router as notifications_router

if TYPE_CHECKING:
    from fastapi import FastAPI

    from taskboard_service.core.settings import AppSettings

logger = logging.getLogger(__name__)


def setup_routers(app: FastAPI, app_settings: AppSettings | None = None) -> None:
    """Register all feature routers with the application."""
    app_settings = app_settings or get_app_settings()
    api_prefix = app_settings.api_prefix

    # No prefix: scraped at /metrics
    app.include_router(metrics_router)

    app.include_router(notifications_router, prefix=api_prefix)

    logger.debug("Routers registered", extra={"api_prefix": api_prefix})
