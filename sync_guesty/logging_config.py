from __future__ import annotations

import logging
import sys
from typing import Any, Callable, MutableMapping

import structlog

from sync_guesty.config import LOG_LEVEL

SERVICE_NAME = "sync-guesty"

# Loggers that are chatty at INFO: HTTP clients, the Celery transport, access logs
QUIET_LOGGERS = ("urllib3", "requests", "kombu", "amqp", "uvicorn.access")

EventDict = MutableMapping[str, Any]
Processor = Callable[[Any, str, EventDict], Any]


def add_service_name(_: Any, __: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def build_processors(json_output: bool) -> list[Processor]:
    """
    Processor chain shared by the API and the worker.

    JSON output renders tracebacks into the event (``exception`` key) so that
    ``logger.exception`` calls stay one line per event in log aggregation.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_name,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    return processors


def setup_logging() -> None:
    """
    Configure structured logging for the process.

    Called by the API at import and by the Celery worker through its
    setup_logging signal, so both emit the same event format. Safe to call
    more than once.

    LOG_LEVEL=DEBUG switches from JSON lines to the colored console renderer.
    """
    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s:%(lineno)d: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=LOG_LEVEL,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=build_processors(json_output=LOG_LEVEL != "DEBUG"),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(LOG_LEVEL)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
