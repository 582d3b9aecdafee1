"""
Snippetbox — FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn snippetbox.main:app),
       or through the `snippetbox` console script (run()).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                     FastAPI App                          │
    │                                                          │
    │  Middleware Chain:                                       │
    │  Request ID → Logging → Secure Headers → Recover → Session│
    │                                                          │
    │  Route Chains:                                           │
    │  ┌──────────┐ ┌─────────────────────┐ ┌────────────────┐ │
    │  │ /ping    │ │ dynamic: CSRF, auth │ │ protected:     │ │
    │  │ (bare)   │ │ lookup              │ │ dynamic + gate │ │
    │  └──────────┘ └─────────────────────┘ └────────────────┘ │
    │                                                          │
    │  Exception Handlers:                                     │
    │  NotFound→404 │ Form/CSRF→400 │ AuthRequired→303 │ else→500│
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (abort unless debug mode)
    3. Create missing tables
    4. Compile all templates (abort on a broken template)
    5. Start the expired-session purge task

    Shutdown:
    1. Stop the purge task
    2. Dispose database engine (close all connections)
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from snippetbox.config import settings
from snippetbox.database import async_session_factory, dispose_engine, init_db
from snippetbox.exceptions import (
    AuthenticationRequired,
    CSRFError,
    FormDecodeError,
    NotFoundError,
    SnippetboxError,
)
from snippetbox.middleware.logging import RequestLoggingMiddleware
from snippetbox.middleware.recover import RecoverMiddleware
from snippetbox.middleware.request_id import RequestIDMiddleware, request_id_var
from snippetbox.middleware.secure_headers import SecureHeadersMiddleware
from snippetbox.middleware.session import ServerSessionMiddleware
from snippetbox.responses import client_error, not_found, server_error
from snippetbox.routes import account, health, pages, snippets, users
from snippetbox.services.session_store import SessionStore
from snippetbox.templating import load_templates

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
    """
    log_format = (
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Our own access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

async def purge_expired_sessions(store: SessionStore, interval: int) -> None:
    """Delete expired session rows every `interval` seconds until cancelled."""
    while True:
        try:
            await store.delete_expired()
        except SnippetboxError as e:
            logger.warning("Session purge failed: %s | Context: %s", e.message, e.context)
        await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage application lifecycle: startup and shutdown procedures.

    Code before yield runs on startup, code after yield on shutdown.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Snippetbox starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        if not settings.debug:
            raise
        logger.warning("Continuing with insecure configuration (debug mode)")

    await init_db()
    load_templates()

    purge_task = asyncio.create_task(
        purge_expired_sessions(app.state.session_store, settings.session_cleanup_interval_seconds)
    )

    scheme = "https" if settings.tls_enabled else "http"
    logger.info("Server ready at %s://%s:%d", scheme, settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Snippetbox shutting down...")
    purge_task.cancel()
    try:
        await purge_task
    except asyncio.CancelledError:
        pass
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to responses.

    Handler hierarchy:
        StarletteHTTPException  → its status phrase (404 unknown path, 405 + Allow)
        RequestValidationError  → 400 Bad Request
        NotFoundError           → 404 Not Found
        FormDecodeError         → 400 Bad Request
        CSRFError               → 400 Bad Request
        AuthenticationRequired  → 303 redirect to the login page
        SnippetboxError (base)  → 500, logged once by server_error
                                  (DatabaseError included)

    Anything else is caught by RecoverMiddleware.
    """

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return client_error(exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return client_error(400)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return not_found()

    @app.exception_handler(FormDecodeError)
    async def handle_form_decode(request: Request, exc: FormDecodeError):
        rid = request_id_var.get("")
        logger.warning("[%s] Undecodable form: %s | Context: %s", rid, exc.message, exc.context)
        return client_error(400)

    @app.exception_handler(CSRFError)
    async def handle_csrf(request: Request, exc: CSRFError):
        return client_error(400)

    @app.exception_handler(AuthenticationRequired)
    async def handle_authentication_required(request: Request, exc: AuthenticationRequired):
        return RedirectResponse(exc.login_url, status_code=303)

    @app.exception_handler(SnippetboxError)
    async def handle_snippetbox_error(request: Request, exc: SnippetboxError):
        return server_error(exc)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        session_factory: Database sessions for the session store. Defaults
                         to the application's engine; tests pass their own.

    Returns: Fully configured FastAPI instance ready to receive requests.
    A fresh instance per call, so tests can override dependencies freely.
    """
    app = FastAPI(
        title="Snippetbox",
        description="Create and share short-lived text snippets.",
        version="1.0.0",
        # Server-rendered site: no interactive API docs
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    store = SessionStore(session_factory or async_session_factory)
    app.state.session_store = store

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = outermost).
    # Recover stays inside Request ID, Logging and Secure Headers: a recovered
    # 500 is logged, tagged and gets the security headers like any response.

    app.add_middleware(
        ServerSessionMiddleware,
        store=store,
        secret_key=settings.secret_key,
        cookie_name=settings.session_cookie_name,
        max_age=settings.session_max_age,
        https_only=settings.session_cookie_secure,
    )
    app.add_middleware(RecoverMiddleware)
    app.add_middleware(SecureHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(pages.router)
    app.include_router(snippets.public_router)
    app.include_router(snippets.protected_router)
    app.include_router(users.public_router)
    app.include_router(users.protected_router)
    app.include_router(account.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn, over TLS when configured."""
    import uvicorn

    uvicorn.run(
        "snippetbox.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        timeout_keep_alive=60,
        ssl_certfile=settings.tls_cert_file if settings.tls_enabled else None,
        ssl_keyfile=settings.tls_key_file if settings.tls_enabled else None,
        log_level=settings.log_level.lower(),
    )
