"""
Snippetbox — Middleware Package
================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Secure Headers] → [Recover] → [Session] → Router

    1. Request ID: correlation ID for every log line of the request
    2. Logging: one access line per request, recovered 500s included
    3. Secure Headers: added to every response, including error pages
    4. Recover: an exception anywhere below becomes a logged 500
    5. Session: server-side sessions (sessions table), token in a signed cookie

    CSRF and authentication need the parsed form or the database, so they
    live in snippetbox.dependencies rather than here.
"""
