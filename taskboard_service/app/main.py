"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskboard_service.app.exception_handlers import configure_exception_handlers
from taskboard_service.app.lifespan import lifespan
from taskboard_service.app.router import setup_routers
from taskboard_service.core.settings import get_app_settings


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app_settings = get_app_settings()

    app = FastAPI(
        title=app_settings.title,
        description=app_settings.description,
        version=app_settings.version,
        docs_url=app_settings.docs_url,
        redoc_url=app_settings.redoc_url,
        openapi_url=app_settings.openapi_url,
        root_path=app_settings.root_path,
        debug=app_settings.debug,
        lifespan=lifespan,
    )

    configure_exception_handlers(app)

    if app_settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=app_settings.cors_origins,
            allow_credentials=app_settings.cors_allow_credentials,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_routers(app, app_settings)

    return app


# Application instance for uvicorn
app = create_app()
