"""Global exception handlers producing RFC 7807 Problem Details."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from taskboard_service.core.exceptions import AppException
from taskboard_service.core.schemas import FieldError, ProblemDetails, ValidationProblemDetails

logger = logging.getLogger(__name__)


def _problem_response(
    status_code: int,
    detail: str,
    type_: str,
    title: str,
    instance: str,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    content = ProblemDetails(
        type=type_,
        title=title,
        status=status_code,
        detail=detail,
        instance=instance,
    ).model_dump(exclude_none=True)
    if extra:
        content.update(extra)
    return JSONResponse(
        status_code=status_code,
        content=content,
        media_type="application/problem+json",
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render an ``AppException`` as Problem Details."""
    logger.warning(
        "Application exception occurred",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": exc.type,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )
    return _problem_response(
        exc.status_code,
        exc.detail,
        exc.type,
        exc.title,
        exc.instance or request.url.path,
        exc.extra,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation errors with field-level details."""
    errors = [
        FieldError(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            type=error["type"],
            value=error.get("input"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "Request validation failed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_count": len(errors),
            "errors": [e.model_dump() for e in errors],
        },
    )

    problem = ValidationProblemDetails(
        type="validation-error",
        title="Validation Error",
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=f"Request validation failed for {len(errors)} field(s)",
        instance=request.url.path,
        errors=errors,
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=problem.model_dump(mode="json", exclude_none=True),
        media_type="application/problem+json",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log the traceback, return a generic 500."""
    logger.error(
        "Unexpected exception occurred",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
        exc_info=exc,
    )
    return _problem_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred while processing your request",
        "internal-error",
        "Internal Server Error",
        request.url.path,
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """Register the Problem Details exception handlers on ``app``."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
