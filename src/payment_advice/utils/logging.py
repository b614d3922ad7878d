"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from payment_advice.config import get_settings


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name, defaults to the configured ``log_level``
        fmt: ``json`` or ``console``, defaults to the configured ``log_format``
    """
    if level is None or fmt is None:
        settings = get_settings()
        level = level or settings.log_level
        fmt = fmt or settings.log_format

    level_name = level.upper()
    log_format = fmt
    log_level = getattr(logging, level_name, logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "console":
        renderer: Any = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(sys.stdout),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger.

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Bound logger
    """
    return structlog.get_logger(name)
