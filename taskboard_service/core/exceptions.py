"""HTTP-facing exception classes for the application."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception rendered as RFC 7807 Problem Details.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier.
        title: Short, human-readable summary of the problem type.
        instance: URI reference identifying this occurrence.
        extra: Additional context merged into the response body.

    Example:
        raise AppException(
            status_code=404,
            detail="Notification not found",
            type="notification-not-found",
            extra={"notification_id": "0190..."},
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)


def default_title(status_code: int) -> str:
    """Human-readable title for an HTTP status code."""
    titles = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        409: "Conflict",
        422: "Unprocessable Entity",
        500: "Internal Server Error",
        502: "Bad Gateway",
        503: "Service Unavailable",
    }
    return titles.get(status_code, "Error")


class NotFoundException(AppException):
    """Resource not found (404)."""

    def __init__(
        self,
        detail: str,
        type: str = "not-found",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=404,
            detail=detail,
            type=type,
            title="Not Found",
            instance=instance,
            extra=extra,
        )


class ValidationException(AppException):
    """Semantically invalid input (422)."""

    def __init__(
        self,
        detail: str,
        type: str = "validation-error",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=422,
            detail=detail,
            type=type,
            title="Validation Error",
            instance=instance,
            extra=extra,
        )


class UnauthorizedException(AppException):
    """Missing or invalid caller identity (401)."""

    def __init__(
        self,
        detail: str = "Authentication required",
        type: str = "unauthorized",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=401,
            detail=detail,
            type=type,
            title="Unauthorized",
            instance=instance,
            extra=extra,
        )


class ServiceUnavailableException(AppException):
    """A backing service (database, transport) is unavailable (503)."""

    def __init__(
        self,
        detail: str,
        type: str = "service-unavailable",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=503,
            detail=detail,
            type=type,
            title="Service Unavailable",
            instance=instance,
            extra=extra,
        )
