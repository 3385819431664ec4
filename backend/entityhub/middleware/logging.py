"""
EntityHub Backend — Request Logging Middleware
================================================

What:  One structured access-log line per HTTP request.
How:   Logs method, route template, status, duration, request ID and client IP
       once the response is ready. Level follows the status class.
When:  After RequestIDMiddleware (uses the request ID for correlation).

Route templates:
    Entity routes carry record ids in the path (/device/api/v1/task/<24 hex>).
    The log line records the matched template (/device/api/v1/task/{id}) next
    to the raw path, so per-action volumes can be aggregated.

What we log vs what we DON'T log:
    ✅ Log: method, path, route, status, duration, IP, request ID
    ❌ Don't log: request bodies (record payloads), caller identity headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from entityhub.middleware.request_id import request_id_var

logger = logging.getLogger("entityhub.access")

# Probes and docs are not worth a log line
QUIET_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, route, status and duration of each non-probe request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        # request.client may be None in testing
        client_ip = request.client.host if request.client else "unknown"
        route = request.scope.get("route")
        template = getattr(route, "path", request.url.path)
        rid = request_id_var.get("")
        status = response.status_code

        logger.log(
            _level_for(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            template,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "route": template,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
