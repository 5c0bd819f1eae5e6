"""
Structured Logging Configuration

structlog with event-style keys: console output while developing, one JSON
object per line elsewhere. Library loggers that report every HTTP request
or scheduler tick are held at WARNING.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog
from structlog.types import Processor

from ..config import get_settings

# Per-request and per-tick chatter from libraries used by the ingestion job
NOISY_LOGGERS = ("apscheduler", "httpx", "httpcore", "sqlalchemy.engine", "aiosqlite")


def _renderer(environment: str) -> list:
    if environment == "development":
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [
        structlog.processors.format_exc_info,
        # Titles are CJK; keep them readable in the JSON lines
        structlog.processors.JSONRenderer(ensure_ascii=False),
    ]


def setup_logging(log_level: Optional[str] = None, stream: Optional[TextIO] = None):
    """
    Configure structured logging for the application.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        stream: Where log lines go, stdout unless given (the CLI uses stderr)
    """
    settings = get_settings()
    stream = stream or sys.stdout
    level = getattr(logging, (log_level or ("DEBUG" if settings.debug else "INFO")).upper())

    logging.basicConfig(format="%(message)s", stream=stream, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ] + _renderer(settings.environment)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "anisync") -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
