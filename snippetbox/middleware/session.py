"""
Snippetbox — Server-Side Session Middleware
============================================

What:  Gives every request a `request.session` dict backed by the
       `sessions` table.
How:   Pure ASGI middleware in the shape of Starlette's SessionMiddleware.
       The cookie holds only a random token, signed with `secret_key`
       (itsdangerous) so tampered cookies are discarded before any lookup.

Per request:
    1. Cookie present and signature valid → load the session from the store
       (unknown or expired tokens give an empty session)
    2. Handlers read and write `request.session` like a dict
    3. Before the response headers go out:
         renewed        → old row deleted, data saved under a new token
         data changed   → row saved, cookie (re)issued
         data emptied   → row deleted, cookie expired
         unchanged      → nothing written

Renewal (`renew()`) is requested on login and logout. After it, a copy of
the old cookie no longer refers to any session.
"""

import json
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from itsdangerous import BadSignature, Signer
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection, Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from snippetbox.services.session_store import SessionStore

STATE_SCOPE_KEY = "session_state"


@dataclass
class SessionState:
    """Bookkeeping for the session attached to one request."""

    token: Optional[str] = None
    expiry: Optional[datetime] = None
    renewed: bool = False


def renew(request: Request) -> None:
    """Issue a new session token for this request's session when it is saved."""
    request.scope[STATE_SCOPE_KEY].renewed = True


def _fingerprint(data: Dict[str, Any]) -> str:
    return json.dumps(data, sort_keys=True)


class ServerSessionMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        store: SessionStore,
        secret_key: str,
        cookie_name: str = "session",
        max_age: int = 12 * 3600,
        https_only: bool = True,
    ) -> None:
        self.app = app
        self.store = store
        self.signer = Signer(secret_key, salt="snippetbox.session")
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.https_only = https_only

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        state = SessionState()
        data: Dict[str, Any] = {}

        token = self._unsign(HTTPConnection(scope).cookies.get(self.cookie_name))
        if token is not None:
            found = await self.store.find(token)
            if found is not None:
                data, state.expiry = found
                state.token = token

        scope["session"] = data
        scope[STATE_SCOPE_KEY] = state
        loaded = _fingerprint(data)

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                cookie = await self._save(scope["session"], state, loaded)
                if cookie is not None:
                    MutableHeaders(scope=message).append("Set-Cookie", cookie)
            await send(message)

        await self.app(scope, receive, send_wrapper)

    async def _save(self, data: Dict[str, Any], state: SessionState, loaded: str) -> Optional[str]:
        """Write the session back. Returns the Set-Cookie value, if any."""
        had_session = state.token is not None

        if state.renewed and state.token is not None:
            await self.store.delete(state.token)
            state.token = None

        if not data:
            if state.token is not None:
                await self.store.delete(state.token)
            return self._cookie("", 0) if had_session else None

        if state.token is not None and _fingerprint(data) == loaded:
            return None

        now = datetime.now(timezone.utc)
        if state.token is None:
            state.token = secrets.token_urlsafe(32)
            state.expiry = now + timedelta(seconds=self.max_age)

        await self.store.commit(state.token, data, state.expiry)
        remaining = int((state.expiry - now).total_seconds())
        return self._cookie(self.signer.sign(state.token).decode("ascii"), max(remaining, 0))

    def _unsign(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            return self.signer.unsign(value).decode("ascii")
        except BadSignature:
            return None

    def _cookie(self, value: str, max_age: int) -> str:
        parts = [
            f"{self.cookie_name}={value}",
            "Path=/",
            f"Max-Age={max_age}",
            "HttpOnly",
            "SameSite=Lax",
        ]
        if self.https_only:
            parts.append("Secure")
        return "; ".join(parts)
