"""Repository exceptions.

Raised instead of raw SQLAlchemy errors where the repository itself detects a
problem (missing row, rejected state change).
"""

from __future__ import annotations

from typing import Any


class RepositoryError(Exception):
    """Base exception for repository operations."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class NotFoundError(RepositoryError):
    """Entity not found in database.

    Attributes:
        model_name: Name of the model class that wasn't found
        identifier: The key/value pairs that were searched for
    """

    def __init__(self, model_name: str, identifier: dict[str, Any]):
        self.model_name = model_name
        self.identifier = identifier
        id_str = ", ".join(f"{k}={v!r}" for k, v in identifier.items())
        super().__init__(
            f"{model_name} not found with {id_str}",
            details={"model": model_name, **identifier},
        )


class InvalidTransitionError(RepositoryError):
    """A status column was asked to move along a forbidden edge."""

    def __init__(self, model_name: str, current: str, requested: str, details: dict[str, Any]):
        self.current = current
        self.requested = requested
        super().__init__(
            f"{model_name} cannot move from {current!r} to {requested!r}",
            details=details,
        )
