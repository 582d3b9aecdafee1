"""
Snippetbox — Recover Middleware
================================

What:  Last line of defence: turns any unhandled exception into a 500.
How:   Wraps the whole stack. The exception is logged with its traceback
       and the client gets the generic server error page. The connection
       is marked `Connection: close` since the server state for this
       request is unknown.

Expected errors (NotFoundError, CSRFError, ...) never get this far; they
are answered by the exception handlers registered in main.py.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from snippetbox.responses import server_error


class RecoverMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            response = server_error(exc)
            response.headers["Connection"] = "close"
            return response
