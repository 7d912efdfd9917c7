"""structlog setup for the API process and its background sweeps.

Modules log through a module-level ``structlog.get_logger()`` and pass event
fields as keyword arguments; every event is rendered as one JSON line.
"""

import logging
import sys
from typing import Optional

import structlog

from app.config import settings


def add_service_context(logger, method_name, event_dict):
    event_dict.setdefault("service", "centratutor-api")
    event_dict.setdefault("environment", settings.ENVIRONMENT)
    return event_dict


def configure_logger(level: Optional[str] = None) -> None:
    """Configure structlog for the whole process.

    Args:
        level: level name such as "DEBUG"; defaults to ``settings.LOG_LEVEL``
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            add_service_context,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level_name)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
