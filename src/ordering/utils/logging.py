"""Logging configuration for the Ordering service.

structlog renders through the standard library so that Protean, APScheduler
and uvicorn records end up on the same handlers. Production gets JSON lines;
everything else gets the console renderer.
"""

import logging
import os
import sys
from typing import Any

import structlog

LEVELS_BY_ENVIRONMENT = {
    "production": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}


def resolve_environment(environment: str | None = None) -> str:
    return (environment or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level(environment: str | None = None) -> str:
    """Explicit ``LOG_LEVEL`` wins, otherwise the environment's default."""
    env = resolve_environment(environment)
    return os.getenv("LOG_LEVEL", LEVELS_BY_ENVIRONMENT.get(env, "INFO")).upper()


def configure_logging(environment: str | None = None) -> None:
    """Configure stdlib logging and structlog for ``environment``."""
    log_level = get_log_level(environment)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    # Suppress noisy library loggers
    logging.getLogger("protean").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if resolve_environment(environment) == "production":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def add_context(**kwargs: Any) -> None:
    """Bind values to every log line emitted by the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
