"""structlog configuration for the locale facade.

The library itself only calls ``get_logger``; applications that want the
facade's events rendered call ``setup_logging`` once at startup.
"""

import logging
import sys
from typing import Any

import structlog

from locale_facade.core.config import settings


def setup_logging(debug: bool | None = None, json_logs: bool | None = None) -> None:
    """Route facade log events through structlog.

    Args:
        debug: Emit debug events (missing keys, format failures).
            Defaults to ``settings.DEBUG``.
        json_logs: Render JSON lines instead of the colored console output.
            Defaults to ``True`` outside the local environment.
    """
    if debug is None:
        debug = settings.DEBUG
    if json_logs is None:
        json_logs = settings.ENVIRONMENT != "local"

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    processors: list[Any]
    if json_logs:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
