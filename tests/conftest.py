"""
Snippetbox — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own in-memory SQLite database (aiosqlite). The
       application's `get_db_session` dependency is overridden to use it,
       and requests go through httpx's ASGITransport (no server needed).

Fixture Hierarchy:
    engine            fresh in-memory database with all tables
    ├── session_factory
    │   ├── db_session     one AsyncSession for service-level tests
    │   └── app            create_app() wired to this database
    │       └── client     HTTPS AsyncClient with a cookie jar
"""

import os
import re
from html import unescape

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from snippetbox.database import Base, get_db_session
from snippetbox.main import create_app
import snippetbox.models.session  # noqa: F401
import snippetbox.models.snippet  # noqa: F401
import snippetbox.models.user  # noqa: F401
from snippetbox.services.user_service import user_service

CSRF_TOKEN_RX = re.compile(r'<input type="hidden" name="csrf_token" value="(.+)">')

TEST_USER = {
    "name": "Alice",
    "email": "alice@example.com",
    "password": "pa$$word",
}


def extract_csrf_token(body: str) -> str:
    """Pull the CSRF token out of a rendered form."""
    match = CSRF_TOKEN_RX.search(body)
    if match is None:
        raise AssertionError("no csrf token found in page")
    return unescape(match.group(1))


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """
    In-memory SQLite engine. StaticPool keeps the single connection (and
    therefore the database) alive for the whole test.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(session_factory):
    """A fresh application whose requests and sessions use the test database."""
    application = create_app(session_factory=session_factory)

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_get_db_session
    return application


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient talking to the app over ASGITransport.

    HTTPS base URL so the Secure session cookie is stored and sent back.
    Redirects are not followed, so tests can assert on 303s.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def registered_user(session_factory):
    """TEST_USER stored in the database; returns its ID."""
    async with session_factory() as session:
        user_id = await user_service.insert(
            session, TEST_USER["name"], TEST_USER["email"], TEST_USER["password"]
        )
        await session.commit()
    return user_id


async def login(client: AsyncClient, email: str = TEST_USER["email"], password: str = TEST_USER["password"]):
    """Log in through the real form, CSRF token included."""
    page = await client.get("/user/login")
    token = extract_csrf_token(page.text)
    return await client.post(
        "/user/login",
        data={"csrf_token": token, "email": email, "password": password},
    )


@pytest_asyncio.fixture
async def logged_in_client(client, registered_user):
    response = await login(client)
    assert response.status_code == 303
    return client
