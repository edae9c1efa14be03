"""
Logging setup - OKR RAG Cascade Engine
rag_cascade/logging_config.py

Configures structlog (event-name-first, keyword context) on top of the
stdlib logging module so both styles end up in the same stream.
"""

import logging
import sys

import structlog

from rag_cascade.config import Settings, get_settings


def configure_logging(settings: Settings = None) -> None:
    """Configure structlog and stdlib logging from LOG_LEVEL / LOG_FORMAT."""
    settings = settings or get_settings()
    level = getattr(logging, settings.LOG_LEVEL)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if settings.LOG_FORMAT == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
