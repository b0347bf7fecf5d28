"""structlog setup for the assistant: shared processors, renderers and per-turn context."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from .settings import settings
from .utils import request_id_ctx

SERVICE_NAME = "dinver-ai"
SERVICE_VERSION = "0.1.0"

# Event keys whose values must never reach a log sink.
CONTACT_KEYS = frozenset({"phone", "email"})
REDACTED = "[redacted]"

QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine")


def add_request_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    request_id = request_id_ctx.get("")
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["service"] = SERVICE_NAME
    event_dict["environment"] = settings.SENTRY_ENVIRONMENT
    event_dict["version"] = SERVICE_VERSION
    return event_dict


def redact_contact_fields(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Mask restaurant phone numbers and e-mail addresses.

    Grounding payloads are sometimes logged whole; nested dicts are walked one
    level deep, which covers ``{"contact": {...}}`` blocks.
    """
    for key, value in list(event_dict.items()):
        if key in CONTACT_KEYS and value:
            event_dict[key] = REDACTED
        elif isinstance(value, dict) and CONTACT_KEYS.intersection(value):
            event_dict[key] = {k: (REDACTED if k in CONTACT_KEYS and v else v) for k, v in value.items()}
    return event_dict


def drop_color_message_key(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.pop("color_message", None)
    return event_dict


def build_processors(json_logs: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_request_id,
        add_service_context,
        redact_contact_fields,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    if json_logs:
        processors += [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            drop_color_message_key,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(),
        ]
    return processors


def configure_structlog(json_logs: bool = False) -> None:
    """
    Configure structlog and the stdlib root logger.

    JSON output is used when ``json_logs`` is set or DEBUG is off; console output
    otherwise.
    """
    structlog.configure(
        processors=build_processors(json_logs or not settings.DEBUG),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=logging.INFO)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def turn_context(**fields: Any) -> Iterator[None]:
    """Bind the non-empty ``fields`` to every event logged during one chat turn."""
    with structlog.contextvars.bound_contextvars(**{k: v for k, v in fields.items() if v is not None}):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


__all__ = ["configure_structlog", "get_logger", "turn_context"]
