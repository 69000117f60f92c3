"""Structured logging configuration using structlog.

Retry decisions are logged as structured events (kind, wait_ms, status) so a
host application can route them to its own aggregator. The executor binds
``retry_operation`` and ``retry_attempt`` as context variables;
``merge_contextvars`` adds them to every event emitted while an operation
runs, including the operation's own.

The library never configures logging on import; call ``configure_logging``
from the application entry point.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, WrappedLogger

from retry_policy.config import Settings


def add_component(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag every event emitted through structlog with the library name."""
    event_dict.setdefault("component", "retry-policy")
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    stream=None,
) -> None:
    """Configure structlog for structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: Environment name (development, production)
        stream: Output stream for the root handler (defaults to stdout)

    In production mode events are rendered as JSON with ISO timestamps.
    In development mode they go through the coloured console renderer.
    """
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_component,
    ]

    is_production = environment.lower() == "production"

    if is_production:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level_int)

    root_logger = logging.getLogger()
    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level_int)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        renderer="json" if is_production else "console",
    )


def configure_from_settings(settings: Settings) -> None:
    """Configure logging from the ``RETRY_LOG_LEVEL``/``RETRY_ENVIRONMENT`` settings."""
    configure_logging(log_level=settings.LOG_LEVEL, environment=settings.ENVIRONMENT)
