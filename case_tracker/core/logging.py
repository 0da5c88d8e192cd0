"""Structured logging for the case tracker.

structlog renders every record; the standard library ``logging`` module is
the sink, so records from uvicorn, SQLAlchemy and module-level
``logging.getLogger`` calls share one output stream.
"""

import logging
import sys
from typing import Any

import structlog

from case_tracker.core.config import Settings

# Libraries that are chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "asyncpg", "httpx")


def build_processors(log_format: str) -> list[Any]:
    """Processor chain ending in a JSON or console renderer."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def setup_logging(settings: Settings) -> None:
    """Configure structlog and the root logger from settings."""
    log_level = settings.app.log_level.value

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=build_processors(settings.observability.log_record_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)


class LoggerMixin:
    """Mixin providing logger access."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        """Logger named after the class's module."""
        return get_logger(self.__class__.__module__)
