"""Logging infrastructure.

Structured logging for the notification service:
- JSON Lines output with OpenTelemetry trace correlation
- contextvars-based context injection (request id, recipient id)
- QueueHandler + QueueListener so handlers never block the event loop
- lazy debug messages via ``get_lazy_logger``

Usage:
    import logging

    from taskboard_service.infra.logging import get_lazy_logger, set_log_context

    logger = logging.getLogger(__name__)
    lazy_logger = get_lazy_logger(__name__)

    set_log_context(recipient_id="42")
    logger.info("Stream opened")
    lazy_logger.debug(lambda: f"Batch: {describe(batch)}")
"""

from taskboard_service.infra.logging.config import (
    configure_logging,
    setup_logging,
    shutdown,
)
from taskboard_service.infra.logging.context import (
    ContextBoundLogger,
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    get_logger,
    set_log_context,
)
from taskboard_service.infra.logging.formatters import JSONFormatter
from taskboard_service.infra.logging.lazy import LazyLoggerAdapter, get_lazy_logger

__all__ = [
    "ContextBoundLogger",
    "ContextInjectingFilter",
    "JSONFormatter",
    "LazyLoggerAdapter",
    "clear_log_context",
    "configure_logging",
    "get_lazy_logger",
    "get_log_context",
    "get_logger",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
