"""structlog setup."""

from __future__ import annotations

import logging
import sys

import structlog

from mobide.config import LoggingConfig


def configure_logging(config: LoggingConfig) -> None:
    """Configure structlog and route stdlib logging (uvicorn, aiodocker) to stderr."""
    level = getattr(logging, config.level)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    renderer: structlog.types.Processor
    if config.json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
