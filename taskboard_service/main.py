"""Entry point: run the API server with uvicorn."""

from __future__ import annotations

import sys
from typing import NoReturn


def main() -> NoReturn:
    """Run the FastAPI application with settings from the environment."""
    import uvicorn

    from taskboard_service.core.settings import get_app_settings, get_logging_settings

    settings = get_app_settings()
    log_settings = get_logging_settings()

    uvicorn.run(
        "taskboard_service.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        access_log=settings.debug,
        log_level=log_settings.level.lower(),
    )
    sys.exit(0)


if __name__ == "__main__":
    main()
