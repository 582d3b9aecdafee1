"""
Snippetbox — Security Headers Middleware
=========================================

What:  Adds browser security headers to every response.

Headers:
    Content-Security-Policy   Own origin only, plus Google Fonts for styles/fonts
    Referrer-Policy           Full URL same-origin, origin only cross-origin
    X-Content-Type-Options    No MIME sniffing
    X-Frame-Options           No framing (clickjacking)
    X-XSS-Protection          0: legacy XSS auditors off, CSP does the job

Protected pages additionally get `Cache-Control: no-store` (flag set by
snippetbox.dependencies.require_authentication).
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'self' fonts.googleapis.com; font-src fonts.gstatic.com"
    ),
    "Referrer-Policy": "origin-when-cross-origin",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "deny",
    "X-XSS-Protection": "0",
}


class SecureHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value

        if getattr(request.state, "no_store", False):
            response.headers["Cache-Control"] = "no-store"

        return response
