"""Correlation ID middleware for request tracing."""

import re
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from coach_shared.logging.config import request_scope

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Client-supplied IDs end up in logs and response headers
_VALID_CORRELATION_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


def resolve_correlation_id(incoming: str | None) -> str:
    """Reuse a well-formed incoming ID, otherwise mint a UUID4."""
    if incoming and _VALID_CORRELATION_ID.match(incoming):
        return incoming
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tag each request, its log events and its response with one correlation ID."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        request.state.correlation_id = correlation_id

        with request_scope(correlation_id):
            response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response


def get_correlation_id(request: Request) -> str | None:
    return getattr(request.state, "correlation_id", None)
