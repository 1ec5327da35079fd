"""Structured logging for the leadcoach services.

Every event is stamped with the service identity and merged with whatever
request context is bound on the current task: the correlation ID set by the
HTTP middleware and, once a bearer token has been verified, the caller's
user ID.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

CORRELATION_ID_KEY = "correlation_id"
USER_ID_KEY = "user_id"

# Libraries that log every statement or request at INFO
_CHATTY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


class ServiceInfo:
    """Processor stamping the service name, version and environment on events."""

    def __init__(self, name: str, version: str, environment: str):
        self.name = name
        self.version = version
        self.environment = environment

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", self.name)
        event_dict.setdefault("version", self.version)
        event_dict.setdefault("environment", self.environment)
        return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    service_name: str = "leadcoach-api",
    service_version: str = "0.1.0",
    environment: str = "development",
) -> None:
    """Route stdlib logging and structlog through one processor chain.

    Args:
        level: Root log level.
        json_format: JSON lines when True, colored console output otherwise.
        service_name: Stamped on every event as ``service``.
        service_version: Stamped on every event as ``version``.
        environment: Stamped on every event as ``environment``.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        ServiceInfo(service_name, service_version, environment),
    ]

    if json_format:
        renderer: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]

    log_level = getattr(logging, level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level, force=True)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[*shared_processors, *renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def request_scope(correlation_id: str) -> Iterator[None]:
    """Bind ``correlation_id`` for the duration of one request.

    The user ID bound by :func:`bind_user` inside the scope is dropped on
    exit as well.
    """
    tokens = structlog.contextvars.bind_contextvars(**{CORRELATION_ID_KEY: correlation_id})
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(USER_ID_KEY)
        structlog.contextvars.reset_contextvars(**tokens)


def get_correlation_id() -> str | None:
    """Correlation ID bound on the current task, if any."""
    return structlog.contextvars.get_contextvars().get(CORRELATION_ID_KEY)


def bind_user(user_id: UUID | str) -> None:
    """Attach the authenticated caller to subsequent log events."""
    structlog.contextvars.bind_contextvars(**{USER_ID_KEY: str(user_id)})
