"""Log context propagation.

Fields set with ``set_log_context`` are copied onto every record emitted from
the same asyncio task, so a stream connection or an HTTP request carries its
identifiers through all log lines without passing them around.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Merge ``kwargs`` into the log context of the current task.

    Example:
        set_log_context(request_id="abc-123", recipient_id="42")
        logger.info("Dispatching")  # record carries request_id and recipient_id
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Return a copy of the current task's log context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Drop every field from the current task's log context."""
    _log_context.set({})


class ContextInjectingFilter(logging.Filter):
    """Copy the contextvars log context onto each ``LogRecord``.

    Attached to the root logger by ``configure_logging`` so formatters see the
    fields as record attributes. Attributes already present on the record win.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class ContextBoundLogger(logging.LoggerAdapter):
    """Logger adapter with permanently bound fields.

    Example:
        stream_logger = ContextBoundLogger(logger, recipient_id="42")
        stream_logger.info("Heartbeat")
        poll_logger = stream_logger.bind(cycle=3)
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        super().__init__(logger, context)

    def bind(self, **context: Any) -> ContextBoundLogger:
        """Return a new adapter with ``context`` added to the bound fields."""
        return ContextBoundLogger(self.logger, **{**self.extra, **context})

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def get_logger(name: str, **context: Any) -> ContextBoundLogger:
    """Get a logger named ``name`` with ``context`` bound to every message."""
    return ContextBoundLogger(logging.getLogger(name), **context)
