"""
Snippetbox — Error Responses
=============================

What:  The plain-text responses used for errors outside of form validation.

    server_error(exc)   500, logs the traceback; body is the traceback in debug mode
    client_error(code)  the bare status phrase ("Bad Request", "Not Found", ...)
    not_found()         client_error(404)

Form validation problems are not errors in this sense: they re-render the
form with a 422 and are handled by the routes themselves.
"""

import logging
import traceback
from http import HTTPStatus
from typing import Mapping, Optional

from starlette.responses import PlainTextResponse

from snippetbox.config import settings
from snippetbox.middleware.request_id import request_id_var

logger = logging.getLogger("snippetbox.errors")


def server_error(exc: BaseException) -> PlainTextResponse:
    """
    Log `exc` with its traceback and answer 500.

    This is the only place a server error is logged; services raise
    DatabaseError `from` the driver error so its cause is in the traceback.
    The response body never contains internal details unless debug mode is on.
    """
    rid = request_id_var.get("")
    context = getattr(exc, "context", None)
    logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc, context, exc_info=exc)

    if settings.debug:
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return PlainTextResponse(trace, status_code=500)
    return PlainTextResponse(HTTPStatus.INTERNAL_SERVER_ERROR.phrase, status_code=500)


def client_error(status_code: int, headers: Optional[Mapping[str, str]] = None) -> PlainTextResponse:
    return PlainTextResponse(HTTPStatus(status_code).phrase, status_code=status_code, headers=headers)


def not_found() -> PlainTextResponse:
    return client_error(404)
