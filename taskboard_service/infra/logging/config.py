"""Logging configuration.

``dictConfig`` sets the root level; handlers run behind a
``QueueHandler``/``QueueListener`` pair so formatting and file I/O happen off
the event loop. Application loggers propagate to the root.
"""

from __future__ import annotations

import atexit
import logging
import logging.config
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

from taskboard_service.infra.logging.context import ContextInjectingFilter
from taskboard_service.infra.logging.formatters import JSONFormatter

if TYPE_CHECKING:
    from taskboard_service.core.settings.logs import LoggingSettings

logger = logging.getLogger(__name__)

_TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None
_LOGGING_INITIALIZED = False


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **overrides: Any,
) -> None:
    """Configure logging once per process.

    Args:
        log_settings: Settings to apply; loaded from the environment if omitted.
        force: Reconfigure even when logging was already set up.
        **overrides: Keyword overrides passed through to ``configure_logging``.
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    if log_settings is None:
        from taskboard_service.core.settings import get_logging_settings

        log_settings = get_logging_settings()

    configure_logging(**{**log_settings.to_logging_kwargs(), **overrides})
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    console_level: str | None = None,
    file_level: str | None = None,
    file_path: str | Path | None = None,
    json_logs: bool = True,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    include_process_info: bool = False,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    service_name: str = "taskboard-service",
) -> None:
    """Apply the logging configuration.

    Args:
        log_level: Root logger level.
        console_level: Console handler level, defaults to ``log_level``.
        file_level: File handler level, defaults to ``log_level``.
        file_path: Rotating JSONL/text log file; ``None`` disables file output.
        json_logs: Emit JSON Lines instead of human-readable text.
        console_enabled: Write to stderr.
        include_context: Inject contextvars fields into every record.
        capture_warnings: Route ``warnings`` through logging.
        include_process_info: Add process id/name to JSON records.
        file_max_bytes: Rotation threshold.
        file_backup_count: Rotated files kept.
        service_name: Static ``service`` field on JSON records.
    """
    shutdown()

    logging.captureWarnings(capture_warnings)

    # Root handlers are replaced with a single QueueHandler below
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "root": {"level": log_level.upper(), "handlers": []},
        }
    )

    path = Path(file_path) if file_path else None
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)

    handlers = _build_handlers(
        console_enabled=console_enabled,
        console_level=console_level or log_level,
        file_path=path,
        file_level=file_level or log_level,
        file_max_bytes=file_max_bytes,
        file_backup_count=file_backup_count,
        formatter_factory=lambda: _build_formatter(
            json_logs=json_logs,
            service_name=service_name,
            include_process_info=include_process_info,
        ),
    )
    _start_queue(handlers, include_context=include_context)

    logger.debug(
        "Logging configured",
        extra={"log_level": log_level, "json_logs": json_logs, "file_path": str(path)},
    )


def shutdown() -> None:
    """Stop the queue listener and detach its handler from the root logger."""
    global _listener, _queue_handler

    if _listener is not None:
        _listener.stop()
        _listener = None
    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None


def _build_formatter(
    *, json_logs: bool, service_name: str, include_process_info: bool
) -> logging.Formatter:
    if json_logs:
        return JSONFormatter(
            static={"service": service_name},
            include_process_info=include_process_info,
        )
    return logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_DATE_FORMAT)


def _build_handlers(
    *,
    console_enabled: bool,
    console_level: str,
    file_path: Path | None,
    file_level: str,
    file_max_bytes: int,
    file_backup_count: int,
    formatter_factory: Any,
) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level.upper())
        console_handler.setFormatter(formatter_factory())
        handlers.append(console_handler)

    if file_path is not None:
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=file_max_bytes,
            backupCount=file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level.upper())
        file_handler.setFormatter(formatter_factory())
        handlers.append(file_handler)

    return handlers


def _start_queue(handlers: list[logging.Handler], *, include_context: bool) -> None:
    global _listener, _queue_handler

    if not handlers:
        return

    log_queue: Queue[logging.LogRecord] = Queue()
    _listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
    _listener.start()

    _queue_handler = QueueHandler(log_queue)
    # Handler-level filter so records propagated from child loggers get context too
    if include_context:
        _queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(_queue_handler)


atexit.register(shutdown)
