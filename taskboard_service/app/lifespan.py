"""Application lifespan management.

Startup order:
1. Logging and application info metric
2. Database (connectivity check, schema creation when configured)
3. Default notification templates (when configured)

Shutdown order is the reverse.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from taskboard_service.core.settings import (
    get_app_settings,
    get_db_settings,
    get_logging_settings,
    get_notification_settings,
)
from taskboard_service.infra.logging import setup_logging
from taskboard_service.infra.logging import shutdown as shutdown_logging
from taskboard_service.infra.metrics import application_info

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


async def _startup_core() -> None:
    app = get_app_settings()
    setup_logging(log_settings=get_logging_settings(), force=True)
    logger.info(
        "Application starting",
        extra={"service": app.service_name, "environment": app.environment},
    )
    application_info.labels(
        version=app.version,
        service=app.service_name,
        environment=app.environment,
    ).set(1)


async def _startup_database() -> None:
    from taskboard_service.infra.database import init_database

    db = get_db_settings()
    await init_database(create_schema=db.create_schema)


async def _seed_templates() -> None:
    from taskboard_service.features.notifications.templates import (
        get_notification_template_service,
    )
    from taskboard_service.infra.database import get_async_session

    if not get_notification_settings().seed_templates:
        return

    async with get_async_session() as session:
        created = await get_notification_template_service().seed_defaults(session)
        await session.commit()
    logger.info("Default notification templates seeded", extra={"created": created})


async def _shutdown_database() -> None:
    from taskboard_service.infra.database import close_database

    await close_database()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the service's infrastructure and tear it down on shutdown."""
    _ = app

    await _startup_core()
    await _startup_database()
    await _seed_templates()

    logger.info("Application startup complete")
    try:
        yield
    finally:
        logger.info("Application shutting down")
        await _shutdown_database()
        shutdown_logging()
