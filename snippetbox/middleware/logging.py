"""
Snippetbox — Access Log Middleware
===================================

What:  One line per request, written after the response is produced:

           203.0.113.7 "POST /snippet/create?x=1 HTTP/1.1" 303 12.4ms [a1b2c3d4]

       client address, request line (method, full URI, protocol), status,
       time spent, request ID.
When:  Inside RequestIDMiddleware and outside Recover, so recovered 500s
       are logged with their request ID.

Form bodies and cookies are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from snippetbox.middleware.request_id import request_id_var

logger = logging.getLogger("snippetbox.access")

# Liveness probes are not logged
QUIET_PATHS = frozenset({"/ping"})


def request_line(request: Request) -> str:
    """`METHOD /path?query HTTP/x.y`, as the client sent it."""
    uri = request.url.path
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    return f"{request.method} {uri} HTTP/{request.scope.get('http_version', '1.1')}"


def level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        client = request.client.host if request.client else "-"
        logger.log(
            level_for(response.status_code),
            '%s "%s" %d %.1fms [%s]',
            client,
            request_line(request),
            response.status_code,
            elapsed_ms,
            request_id_var.get(""),
        )
        return response
