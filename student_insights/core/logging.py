"""Logging configuration using structlog.

Every record carries the service name and environment so insight pipeline
logs can be told apart when several services share a sink.
"""

import logging
import sys

import structlog
from structlog.typing import EventDict, WrappedLogger

from student_insights.core.config import get_settings

# httpx logs every outbound request at INFO; generation calls are logged by the client.
_QUIET_LOGGERS = ("httpx", "httpcore")


def _service_fields(service: str, env: str):
    def add_service_fields(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        event_dict.setdefault("env", env)
        return event_dict

    return add_service_fields


def setup_logging() -> None:
    """Configure structlog for the application."""
    settings = get_settings()
    level = getattr(logging, settings.app.log_level.value)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    # Student names and observations are mostly non-ASCII; keep them readable.
    renderer = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if settings.observability.log_record_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _service_fields(settings.observability.service_name, str(settings.app.env)),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
