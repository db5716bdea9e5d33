"""Structured logging for the engine.

Every module logs through ``get_logger(__name__)`` with key/value events.
Run-scoped keys (run_id, workflow_id) are bound with ``run_context`` and
merged into each event emitted while the run is active, including events
from handlers and clients that never see the run id themselves.
"""

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import structlog

from core.config import Settings

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "redis")


def _stdlib_handlers(level: int, log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level)
    return handlers


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=False,
        pad_event=35,
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(settings: Settings) -> None:
    """Route structlog through stdlib logging with the configured renderer.

    Called once at startup through the container's logging resource.
    """
    level = getattr(logging, settings.log_level)
    logging.basicConfig(
        level=level,
        handlers=_stdlib_handlers(level, settings.log_file),
        format="%(message)s",
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    timestamp_fmt = "iso" if settings.log_format == "json" else "%H:%M:%S"
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt=timestamp_fmt),
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer(settings.log_format),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


@contextmanager
def run_context(run_id: str, workflow_id: Optional[str] = None) -> Iterator[None]:
    """Bind run identifiers to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(run_id=run_id, workflow_id=workflow_id):
        yield


def log_execution_time(logger: structlog.BoundLogger, operation: str,
                       start_time: float, end_time: float, **kwargs) -> None:
    """Log how long an operation took."""
    logger.info(
        "Operation timed",
        operation=operation,
        execution_time_seconds=round(end_time - start_time, 4),
        **kwargs
    )


def log_remote_call(logger: structlog.BoundLogger, service: str, operation: str,
                    success: bool, **kwargs) -> None:
    """Log calls to external collaborators in one shape."""
    log = logger.info if success else logger.warning
    log(
        "Remote call",
        service=service,
        operation=operation,
        success=success,
        **kwargs
    )
