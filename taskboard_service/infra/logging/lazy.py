"""Lazy log message evaluation.

``LazyLoggerAdapter`` accepts callables as the message or as format
arguments and only invokes them when the level is enabled, so debug output
that serializes batches or records costs nothing in production.
"""

from __future__ import annotations

import logging
from typing import Any


class LazyLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that evaluates callable messages on demand.

    Example:
        lazy_logger = get_lazy_logger(__name__)
        lazy_logger.debug(lambda: f"Rendered {len(content)} chars for {channel}")
    """

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        if not self.isEnabledFor(level):
            return
        if callable(msg):
            msg = msg()
        if args:
            args = tuple(arg() if callable(arg) else arg for arg in args)
        super().log(level, msg, *args, **kwargs)

    def debug(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, msg, *args, **kwargs)


def get_lazy_logger(name: str, **context: Any) -> LazyLoggerAdapter:
    """Get a lazily evaluating logger, optionally with bound ``context``."""
    return LazyLoggerAdapter(logging.getLogger(name), context or {})
