"""
Snippetbox — Route Dependencies
================================

What:  Per-route request processing that needs the session or the database:
       CSRF validation, authentication lookup, and the authentication gate.
How:   FastAPI dependencies attached at router level, in two stacks:

           DYNAMIC   = [csrf_protect, authenticate]
           PROTECTED = DYNAMIC + [require_authentication]

       Router dependencies run in list order before the endpoint, so CSRF
       is checked before any database work happens.

Session keys used across the application are defined here.
"""

import logging
import secrets

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.database import get_db_session
from snippetbox.exceptions import AuthenticationRequired, CSRFError
from snippetbox.middleware.session import renew
from snippetbox.services.user_service import user_service

logger = logging.getLogger(__name__)

# ── Session keys ──────────────────────────────────────────────────────────
AUTH_USER_KEY = "authenticated_user_id"
CSRF_TOKEN_KEY = "csrf_token"
FLASH_KEY = "flash"
REDIRECT_AFTER_LOGIN_KEY = "redirect_after_login"

CSRF_FORM_FIELD = "csrf_token"
SAFE_METHODS = {"GET", "HEAD", "OPTIONS", "TRACE"}


def renew_session(request: Request) -> None:
    """
    Rotate the session token on a privilege change (login, logout).

    The session keeps its data under a fresh token and the old row is
    deleted, so a cookie captured earlier stops working. The CSRF token is
    dropped as well; `csrf_protect` mints a new one on the next request.
    """
    renew(request)
    request.session.pop(CSRF_TOKEN_KEY, None)


def put_flash(request: Request, message: str) -> None:
    request.session[FLASH_KEY] = message


def pop_flash(request: Request) -> str:
    return request.session.pop(FLASH_KEY, "")


def authenticated_user_id(request: Request) -> int:
    """The user ID stored at login, or 0 when nobody is logged in."""
    return int(request.session.get(AUTH_USER_KEY, 0) or 0)


async def csrf_protect(request: Request) -> str:
    """
    Synchronizer-token CSRF protection.

    1. Ensure the session holds a token (minted on first use)
    2. Expose it on request.state for the templates' hidden input
    3. For unsafe methods, require the posted `csrf_token` to match,
       compared in constant time

    The parsed form is cached on the Request, so handlers that call
    `await request.form()` afterwards do not re-read the body.

    Raises:
        CSRFError: Token missing or mismatched (→ 400)
    """
    token = request.session.get(CSRF_TOKEN_KEY)
    if not token:
        token = secrets.token_urlsafe(32)
        request.session[CSRF_TOKEN_KEY] = token
    request.state.csrf_token = token

    if request.method not in SAFE_METHODS:
        form = await request.form()
        submitted = form.get(CSRF_FORM_FIELD)
        if not isinstance(submitted, str) or not secrets.compare_digest(submitted, token):
            logger.warning("CSRF check failed for %s %s", request.method, request.url.path)
            raise CSRFError(context={"path": request.url.path})

    return token


async def authenticate(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> bool:
    """
    Mark the request as authenticated if the session's user still exists.

    A session can outlive its user (account removed while logged in); such
    a session is treated as anonymous rather than as an error.
    """
    request.state.is_authenticated = False

    user_id = authenticated_user_id(request)
    if user_id == 0:
        return False

    if await user_service.exists(db, user_id):
        request.state.is_authenticated = True
    return request.state.is_authenticated


async def require_authentication(request: Request) -> None:
    """
    Gate for protected routes. Must run after `authenticate`.

    Anonymous requests are sent to the login page. For GET requests the
    path is remembered in the session and the login handler redirects back
    there once; other methods cannot be replayed by a redirect.
    """
    if not getattr(request.state, "is_authenticated", False):
        if request.method == "GET":
            request.session[REDIRECT_AFTER_LOGIN_KEY] = request.url.path
        raise AuthenticationRequired()

    # Pages behind login must not be stored by browser or shared caches;
    # SecureHeadersMiddleware turns this flag into Cache-Control: no-store
    request.state.no_store = True


DYNAMIC = [Depends(csrf_protect), Depends(authenticate)]
PROTECTED = DYNAMIC + [Depends(require_authentication)]
