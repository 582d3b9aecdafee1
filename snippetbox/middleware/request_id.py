"""
Snippetbox — Request ID Middleware
===================================

What:  Tags every request with a short ID, echoed as `X-Request-ID` and
       included in log lines through `request_id_var`.
How:   A client-supplied `X-Request-ID` is kept when it is a plausible
       token (1-64 characters of letters, digits, `-`, `_`, `.`); anything
       else is replaced by 8 hex characters of a fresh UUID, so arbitrary
       header content never reaches the logs.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_ID_RX = re.compile(r"[A-Za-z0-9._-]{1,64}")


def choose_request_id(supplied: str) -> str:
    if supplied and REQUEST_ID_RX.fullmatch(supplied):
        return supplied
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = choose_request_id(request.headers.get(REQUEST_ID_HEADER, ""))
        request.state.request_id = rid

        reset_token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(reset_token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
