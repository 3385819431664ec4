"""
EntityHub Backend — Request ID Middleware
===========================================

What:  Assigns a correlation ID to each incoming request and returns it in a header.
Why:   Every log entry and every error envelope of a request carries the same ID,
       so a client-reported failure can be matched to server logs.
How:   Uses the client's X-Request-ID when present, otherwise generates one;
       stores it in a ContextVar and request.state for the duration of the request.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Longer client-supplied values are truncated before they reach logs
MAX_REQUEST_ID_LENGTH = 64

# ContextVar: concurrent requests share a thread, so each coroutine needs its own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def _incoming_id(request: Request) -> str:
    supplied = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if supplied:
        return supplied[:MAX_REQUEST_ID_LENGTH]
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Use X-Request-ID from the client when present (truncated to 64 chars)
        2. Otherwise generate a short (8 hex char) id
        3. Bind it in the ContextVar (loggers, error envelopes) and request.state
        4. Echo in the X-Request-ID response header
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = _incoming_id(request)
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
