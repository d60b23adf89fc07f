"""structlog setup shared by the API, the engine and the rate limiter.

Events carry the request, client and caller identity of the request that
emitted them. Development renders colored console lines; every other
environment writes one orjson-encoded object per line with the event text
under ``message``.
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any

import orjson
import structlog
from structlog.types import EventDict, Processor

from clientele.core.config import settings

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
client_id_ctx: ContextVar[int | None] = ContextVar("client_id", default=None)
identity_ctx: ContextVar[str | None] = ContextVar("identity", default=None)

# SQL echo is controlled by DEBUG through the engine, not by these loggers
_QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "asyncio")


def _add_context_vars(_logger: Any, _method: str, event_dict: EventDict) -> EventDict:
    """Copy whichever request-scoped values are set into the event."""
    for key, var in (
        ("request_id", request_id_ctx),
        ("client_id", client_id_ctx),
        ("identity", identity_ctx),
    ):
        value = var.get()
        if value is not None and value != "":
            event_dict[key] = value
    return event_dict


def _dumps(obj: Any, **_: Any) -> str:
    # Datetimes and Decimals in event payloads fall back to str()
    return orjson.dumps(obj, default=str).decode()


def _wants_json() -> bool:
    if settings.log_format:
        return settings.log_format.lower() == "json"
    return settings.environment != "development"


def configure_logging() -> None:
    """Install the structlog pipeline and point stdlib logging at stdout."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_context_vars,
        structlog.processors.StackInfoRenderer(),
    ]
    if _wants_json():
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(serializer=_dumps),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
