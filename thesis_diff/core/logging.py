"""
Logging configuration for the Thesis Diff Service.

Structured logging via structlog: JSON lines in production, a coloured console
renderer in development. Worker code binds the job id into the context so every
event emitted while a comparison runs can be traced back to its job.
"""

import logging
import sys

import structlog
from structlog.typing import EventDict, Processor

from thesis_diff.core.config import get_settings


def add_app_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp every event with the service name and version."""
    settings = get_settings()
    event_dict["app"] = "thesis_diff_service"
    event_dict["version"] = settings.api_version
    return event_dict


def configure_logging() -> None:
    """
    Configure structlog and the standard library root logger.

    ``log_format`` selects the renderer: ``json`` for production, anything else
    for the console renderer.
    """
    settings = get_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        structlog.processors.format_exc_info,
    ]
    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=settings.debug))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def bind_job_context(job_id: str) -> None:
    """Attach ``job_id`` to every event logged on this thread until cleared."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(job_id=job_id)


def clear_job_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance for the specified name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("diff_computed", rows=12)
    """
    return structlog.get_logger(name)
