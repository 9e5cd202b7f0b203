"""
Medication API - Request ID Middleware
======================================

What:  Tags each request with a correlation ID and echoes it in X-Request-ID.
How:   A non-blank client header is kept (trimmed, capped at 64 chars);
       otherwise a fresh 8-hex-char ID is minted. The ID is bound to
       request_id_var so loggers and error handlers can read it.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64

# Coroutine-local; read by the error handlers in main.py
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def resolve_request_id(header_value: Optional[str]) -> str:
    """Return the client's ID when usable, otherwise a new one."""
    candidate = (header_value or "").strip()
    if candidate:
        return candidate[:MAX_REQUEST_ID_LENGTH]
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Outermost middleware: every log line and error body below it sees the ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request_id_var.set(request_id)
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
