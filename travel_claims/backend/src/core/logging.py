"""Structured logging configuration."""

from __future__ import annotations

import logging

import structlog

from .config import get_settings


def configure_logging(level: str | None = None) -> None:
    """Configure JSON logging for stdlib and structlog loggers."""

    resolved = (level or get_settings().log_level or "INFO").upper()
    logging.basicConfig(level=resolved, format="%(message)s")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
