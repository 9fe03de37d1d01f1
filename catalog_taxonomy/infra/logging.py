"""Structured logging configuration using structlog.

JSON lines outside dev, colored console output in dev. Request-scoped
context (tenant, module) is carried through contextvars so every event
emitted while serving a request is tagged without passing loggers around.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from catalog_taxonomy.config import Settings, settings as default_settings

_NOISY_LOGGERS = ("uvicorn", "uvicorn.access", "sqlalchemy.engine", "asyncio")


def setup_logging(config: Settings | None = None) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        config: Settings to read level/format from (defaults to global settings)
    """
    config = config or default_settings
    level = logging.getLevelName(config.log_level.upper())
    use_json = config.log_json and config.environment != "dev"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if use_json:
        renderer: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=[*shared_processors, *renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Get a configured logger instance.

    Args:
        name: Logger name (usually __name__)
        **initial_context: Initial context to bind to the logger

    Returns:
        Bound structlog logger
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


def bind_request_context(**context: Any) -> None:
    """Bind key/values to every log event of the current task."""
    structlog.contextvars.bind_contextvars(**context)


def clear_request_context() -> None:
    """Drop all request-scoped log context."""
    structlog.contextvars.clear_contextvars()
