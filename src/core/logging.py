"""Structured logging setup.

Outputs structured logs to stdout using structlog.
- Development: human-readable console renderer with colors
- Testing/CI/Production: JSON renderer for machine parsing

Modules obtain loggers with ``structlog.get_logger(__name__)`` and pass
context as keyword arguments:

    logger = structlog.get_logger(__name__)
    logger.info("user_logged_in", user_id=str(user.id))
"""

import logging
import sys

import structlog

from src.core.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure structlog once at application startup.

    Args:
        settings: Application settings (environment and log level).
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if settings.is_development:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
