"""
Snippetbox — Liveness Route
============================

What:  GET /ping answers "OK" as long as the process is serving requests.
Who:   Load balancers and uptime checks.

No session, CSRF or database work happens here, so the probe stays cheap
and never creates session cookies.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["Health"])


@router.get("/ping", response_class=PlainTextResponse)
async def ping() -> str:
    return "OK"
