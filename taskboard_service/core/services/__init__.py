"""Service layer base classes."""

from taskboard_service.core.services.base import BaseService

__all__ = ["BaseService"]
