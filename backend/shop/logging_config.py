"""structlog setup for the shop backend.

Payment code logs through ``get_logger(__name__)`` with snake_case event
names (``payment_charge_declined``); ``checkout_context`` binds the order and
provider so every line of one checkout can be correlated.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from .settings import settings

SERVICE_NAME = "webshop-backend"
SERVICE_VERSION = "0.1.0"


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp service, environment and version on each event."""
    event_dict["service"] = SERVICE_NAME
    event_dict["environment"] = settings.ENVIRONMENT
    event_dict["version"] = SERVICE_VERSION
    return event_dict


def configure_structlog(json_logs: bool = False) -> None:
    """Route structlog through stdlib logging on stdout.

    JSON lines unless ``settings.DEBUG`` is on and ``json_logs`` is false,
    in which case the console renderer is used.
    """
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_app_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    if json_logs or not settings.DEBUG:
        processors = shared + [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared + [
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.INFO,
    )

    # Provider HTTP traffic is logged by the adapters themselves
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def checkout_context(order_reference: str, provider: str) -> Iterator[None]:
    """Bind checkout fields to every log line emitted while the block runs."""
    with structlog.contextvars.bound_contextvars(
        order_reference=order_reference, provider=provider
    ):
        yield


__all__ = ["checkout_context", "configure_structlog", "get_logger"]
