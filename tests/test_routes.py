"""
Snippetbox — Route Tests
=========================

What:  End-to-end tests of every route through the full middleware stack.
How:   httpx AsyncClient over ASGITransport, real templates, in-memory
       SQLite. Forms are posted exactly as a browser would: fetch the page,
       lift the CSRF token from the hidden input, post it back.

What we test:
    ✅ Public pages render; unknown/expired/malformed snippet IDs are 404
    ✅ Signup, login and logout flows with their flash messages
    ✅ Protected routes redirect anonymous users and remember where they were
    ✅ Form errors re-render with 422; undecodable forms are 400
    ✅ CSRF tokens are required and rotated on login
    ✅ Account page and password change
"""

from datetime import datetime, timedelta, timezone
from html import unescape

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete, update

from snippetbox.models.snippet import Snippet
from snippetbox.models.user import User
from snippetbox.services.snippet_service import snippet_service
from snippetbox.services.user_service import user_service
from tests.conftest import TEST_USER, extract_csrf_token, login


async def csrf_token_from(client, path: str) -> str:
    page = await client.get(path)
    assert page.status_code == 200
    return extract_csrf_token(page.text)


async def create_snippet(session_factory, title="O snail", content="Climb Mount Fuji", days=7) -> int:
    async with session_factory() as session:
        snippet_id = await snippet_service.insert(session, title, content, days)
        await session.commit()
    return snippet_id


# ══════════════════════════════════════════════════════════════════════════
# Public Pages
# ══════════════════════════════════════════════════════════════════════════

class TestPublicPages:

    @pytest.mark.asyncio
    async def test_ping(self, client):
        response = await client.get("/ping")
        assert response.status_code == 200
        assert response.text == "OK"
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_home_empty(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert "nothing to see here" in unescape(response.text)

    @pytest.mark.asyncio
    async def test_home_lists_snippets(self, client, session_factory):
        await create_snippet(session_factory, title="An old silent pond")
        response = await client.get("/")
        assert "An old silent pond" in response.text
        assert 'href="/snippet/view/1"' in response.text

    @pytest.mark.asyncio
    async def test_about(self, client):
        response = await client.get("/about")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_anonymous_nav(self, client):
        response = await client.get("/")
        assert 'href="/user/signup"' in response.text
        assert "/user/logout" not in response.text

    @pytest.mark.asyncio
    async def test_unknown_path(self, client):
        response = await client.get("/missing")
        assert response.status_code == 404
        assert response.text == "Not Found"

    @pytest.mark.asyncio
    async def test_wrong_method(self, client):
        response = await client.get("/user/logout")
        assert response.status_code == 405
        assert response.headers["allow"] == "POST"
        assert response.text == "Method Not Allowed"


class TestSnippetView:

    @pytest.mark.asyncio
    async def test_view(self, client, session_factory):
        snippet_id = await create_snippet(session_factory)
        response = await client.get(f"/snippet/view/{snippet_id}")
        assert response.status_code == 200
        assert "O snail" in response.text
        assert "Climb Mount Fuji" in response.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "snippet_id",
        ["99", "-1", "abc", "1.5", "0", "99999999999999999999", "2147483648", "1_0", "%201", "%EF%BC%91", "1" * 5000],
    )
    async def test_bad_ids_are_not_found(self, client, snippet_id):
        response = await client.get(f"/snippet/view/{snippet_id}")
        assert response.status_code == 404
        assert response.text == "Not Found"

    @pytest.mark.asyncio
    async def test_plus_sign_and_leading_zeros_accepted(self, client, session_factory):
        snippet_id = await create_snippet(session_factory)
        for path in (f"/snippet/view/+{snippet_id}", f"/snippet/view/000{snippet_id}"):
            response = await client.get(path)
            assert response.status_code == 200
            assert "O snail" in response.text

    @pytest.mark.asyncio
    async def test_underscore_digits_not_read_as_number(self, client, session_factory):
        for i in range(10):
            await create_snippet(session_factory, title=f"snippet {i + 1}")

        assert (await client.get("/snippet/view/10")).status_code == 200
        assert (await client.get("/snippet/view/1_0")).status_code == 404

    @pytest.mark.asyncio
    async def test_expired_is_not_found(self, client, session_factory):
        snippet_id = await create_snippet(session_factory)
        async with session_factory() as session:
            await session.execute(
                update(Snippet)
                .where(Snippet.id == snippet_id)
                .values(expires=datetime.now(timezone.utc) - timedelta(seconds=1))
            )
            await session.commit()

        response = await client.get(f"/snippet/view/{snippet_id}")
        assert response.status_code == 404


# ══════════════════════════════════════════════════════════════════════════
# Signup / Login / Logout
# ══════════════════════════════════════════════════════════════════════════

class TestSignup:

    @pytest.mark.asyncio
    async def test_signup_success(self, client, session_factory):
        token = await csrf_token_from(client, "/user/signup")
        response = await client.post("/user/signup", data={"csrf_token": token, **TEST_USER})

        assert response.status_code == 303
        assert response.headers["location"] == "/user/login"

        page = await client.get("/user/login")
        assert "Your signup was successful. Please log in." in page.text

        async with session_factory() as session:
            user_id = await user_service.authenticate(session, TEST_USER["email"], TEST_USER["password"])
        assert user_id == 1

    @pytest.mark.asyncio
    async def test_flash_shown_once(self, client):
        token = await csrf_token_from(client, "/user/signup")
        await client.post("/user/signup", data={"csrf_token": token, **TEST_USER})

        first = await client.get("/user/login")
        second = await client.get("/user/login")
        assert "Your signup was successful" in first.text
        assert "Your signup was successful" not in second.text

    @pytest.mark.asyncio
    async def test_signup_duplicate_email(self, client, registered_user):
        token = await csrf_token_from(client, "/user/signup")
        response = await client.post(
            "/user/signup",
            data={"csrf_token": token, "name": "Alice Again", "email": "ALICE@example.com", "password": "another-pass"},
        )
        assert response.status_code == 422
        assert "Email address is already in use" in response.text
        assert 'value="Alice Again"' in response.text

    @pytest.mark.asyncio
    async def test_signup_invalid_fields(self, client):
        token = await csrf_token_from(client, "/user/signup")
        response = await client.post(
            "/user/signup",
            data={"csrf_token": token, "name": "", "email": "bob@", "password": "short"},
        )
        assert response.status_code == 422
        assert "This field cannot be blank" in response.text
        assert "This field must be a valid email address" in response.text
        assert "This field must be at least 8 characters long" in response.text


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_redirects_to_create(self, client, registered_user):
        response = await login(client)
        assert response.status_code == 303
        assert response.headers["location"] == "/snippet/create"

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, registered_user):
        response = await login(client, password="wrong-password")
        assert response.status_code == 422
        assert "Email or password is incorrect" in response.text
        assert 'value="alice@example.com"' in response.text

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client):
        response = await login(client, email="nobody@example.com")
        assert response.status_code == 422
        assert "Email or password is incorrect" in response.text

    @pytest.mark.asyncio
    async def test_login_blank_fields(self, client):
        response = await login(client, email="", password="")
        assert response.status_code == 422
        assert "This field cannot be blank" in response.text

    @pytest.mark.asyncio
    async def test_login_rotates_csrf_token(self, client, registered_user):
        before = await csrf_token_from(client, "/user/login")
        await client.post(
            "/user/login",
            data={"csrf_token": before, "email": TEST_USER["email"], "password": TEST_USER["password"]},
        )
        after = await csrf_token_from(client, "/")
        assert before != after

    @pytest.mark.asyncio
    async def test_authenticated_nav(self, logged_in_client):
        response = await logged_in_client.get("/")
        assert 'action="/user/logout"' in response.text
        assert 'href="/snippet/create"' in response.text

    @pytest.mark.asyncio
    async def test_returns_to_requested_page_once(self, client, registered_user):
        bounced = await client.get("/account/view")
        assert bounced.status_code == 303
        assert bounced.headers["location"] == "/user/login"

        response = await login(client)
        assert response.headers["location"] == "/account/view"

        # Consumed: a second login goes to the default page
        response = await login(client)
        assert response.headers["location"] == "/snippet/create"


class TestLogout:

    @pytest.mark.asyncio
    async def test_anonymous_post_not_remembered(self, client, registered_user):
        """Only GET requests are replayed after login."""
        token = await csrf_token_from(client, "/")
        await client.post("/user/logout", data={"csrf_token": token})

        response = await login(client)
        assert response.headers["location"] == "/snippet/create"

    @pytest.mark.asyncio
    async def test_logout(self, logged_in_client):
        token = await csrf_token_from(logged_in_client, "/")
        response = await logged_in_client.post("/user/logout", data={"csrf_token": token})

        assert response.status_code == 303
        assert response.headers["location"] == "/"

        home = await logged_in_client.get("/")
        assert "You've been logged out successfully!" in unescape(home.text)

        protected = await logged_in_client.get("/snippet/create")
        assert protected.status_code == 303

    @pytest.mark.asyncio
    async def test_logout_requires_login(self, client):
        token = await csrf_token_from(client, "/")
        response = await client.post("/user/logout", data={"csrf_token": token})
        assert response.status_code == 303
        assert response.headers["location"] == "/user/login"


class TestSessionRenewal:
    """Login and logout move the session to a new token and retire the old one."""

    @pytest.mark.asyncio
    async def test_login_changes_session_token(self, client, registered_user):
        await client.get("/user/login")
        before = client.cookies.get("session")

        await login(client)

        after = client.cookies.get("session")
        assert before and after
        assert before != after

    @pytest.mark.asyncio
    async def test_cookie_from_before_logout_is_dead(self, app, logged_in_client):
        old_cookie = logged_in_client.cookies.get("session")
        token = await csrf_token_from(logged_in_client, "/")
        response = await logged_in_client.post("/user/logout", data={"csrf_token": token})
        assert response.status_code == 303

        transport = ASGITransport(app=app)
        async with AsyncClient(
            transport=transport, base_url="https://test", cookies={"session": old_cookie}
        ) as replay:
            response = await replay.get("/account/view")

        assert response.status_code == 303
        assert response.headers["location"] == "/user/login"

    @pytest.mark.asyncio
    async def test_cookie_from_before_login_is_dead(self, app, client, registered_user):
        await client.get("/user/login")
        anonymous_cookie = client.cookies.get("session")
        await login(client)

        transport = ASGITransport(app=app)
        async with AsyncClient(
            transport=transport, base_url="https://test", cookies={"session": anonymous_cookie}
        ) as replay:
            response = await replay.get("/account/view")

        assert response.status_code == 303

    @pytest.mark.asyncio
    async def test_tampered_cookie_ignored(self, app, logged_in_client):
        token = logged_in_client.cookies.get("session").split(".")[0]

        transport = ASGITransport(app=app)
        async with AsyncClient(
            transport=transport, base_url="https://test", cookies={"session": f"{token}.forged"}
        ) as replay:
            response = await replay.get("/account/view")

        assert response.status_code == 303

    @pytest.mark.asyncio
    async def test_session_cookie_attributes(self, client):
        response = await client.get("/")
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("session=")
        assert "HttpOnly" in cookie
        assert "Secure" in cookie
        assert "SameSite=Lax" in cookie
        assert "Max-Age=43200" in cookie


# ══════════════════════════════════════════════════════════════════════════
# CSRF
# ══════════════════════════════════════════════════════════════════════════

class TestCSRF:

    @pytest.mark.asyncio
    async def test_missing_token(self, client, registered_user):
        await client.get("/user/login")
        response = await client.post(
            "/user/login",
            data={"email": TEST_USER["email"], "password": TEST_USER["password"]},
        )
        assert response.status_code == 400
        assert response.text == "Bad Request"

    @pytest.mark.asyncio
    async def test_wrong_token(self, client, registered_user):
        await client.get("/user/login")
        response = await client.post(
            "/user/login",
            data={"csrf_token": "forged", "email": TEST_USER["email"], "password": TEST_USER["password"]},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_token_without_session(self, client):
        """A token is only valid together with the session that issued it."""
        token = await csrf_token_from(client, "/user/login")
        client.cookies.clear()
        response = await client.post(
            "/user/login",
            data={"csrf_token": token, "email": TEST_USER["email"], "password": TEST_USER["password"]},
        )
        assert response.status_code == 400


# ══════════════════════════════════════════════════════════════════════════
# Snippet Creation (protected)
# ══════════════════════════════════════════════════════════════════════════

class TestSnippetCreate:

    @pytest.mark.asyncio
    async def test_anonymous_redirected(self, client):
        response = await client.get("/snippet/create")
        assert response.status_code == 303
        assert response.headers["location"] == "/user/login"

    @pytest.mark.asyncio
    async def test_form_defaults_to_one_week(self, logged_in_client):
        response = await logged_in_client.get("/snippet/create")
        assert response.status_code == 200
        assert 'value="7" checked' in response.text

    @pytest.mark.asyncio
    async def test_protected_page_not_cached(self, logged_in_client):
        response = await logged_in_client.get("/snippet/create")
        assert response.headers["cache-control"] == "no-store"

        public = await logged_in_client.get("/about")
        assert "cache-control" not in public.headers

    @pytest.mark.asyncio
    async def test_create_success(self, logged_in_client):
        token = await csrf_token_from(logged_in_client, "/snippet/create")
        response = await logged_in_client.post(
            "/snippet/create",
            data={"csrf_token": token, "title": "O snail", "content": "Climb Mount Fuji", "expires": "365"},
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/snippet/view/1"

        page = await logged_in_client.get("/snippet/view/1")
        assert "Snippet successfully created!" in page.text
        assert "Climb Mount Fuji" in page.text

    @pytest.mark.asyncio
    async def test_expires_not_permitted(self, logged_in_client):
        token = await csrf_token_from(logged_in_client, "/snippet/create")
        response = await logged_in_client.post(
            "/snippet/create",
            data={"csrf_token": token, "title": "t", "content": "c", "expires": "30"},
        )
        assert response.status_code == 422
        assert "This field must equal 1, 7 or 365" in response.text

    @pytest.mark.asyncio
    async def test_blank_title_keeps_content(self, logged_in_client):
        token = await csrf_token_from(logged_in_client, "/snippet/create")
        response = await logged_in_client.post(
            "/snippet/create",
            data={"csrf_token": token, "title": "", "content": "Keep me", "expires": "1"},
        )
        assert response.status_code == 422
        assert "This field cannot be blank" in response.text
        assert "Keep me" in response.text

    @pytest.mark.asyncio
    async def test_undecodable_form(self, logged_in_client):
        token = await csrf_token_from(logged_in_client, "/snippet/create")
        response = await logged_in_client.post(
            "/snippet/create",
            data={"csrf_token": token, "title": "t", "content": "c", "expires": "soon"},
        )
        assert response.status_code == 400
        assert response.text == "Bad Request"

    @pytest.mark.asyncio
    async def test_anonymous_post_redirected(self, client):
        token = await csrf_token_from(client, "/")
        response = await client.post(
            "/snippet/create",
            data={"csrf_token": token, "title": "t", "content": "c", "expires": "7"},
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/user/login"


# ══════════════════════════════════════════════════════════════════════════
# Account
# ══════════════════════════════════════════════════════════════════════════

class TestAccount:

    @pytest.mark.asyncio
    async def test_view(self, logged_in_client):
        response = await logged_in_client.get("/account/view")
        assert response.status_code == 200
        assert TEST_USER["name"] in response.text
        assert TEST_USER["email"] in response.text

    @pytest.mark.asyncio
    async def test_deleted_user_treated_as_anonymous(self, logged_in_client, session_factory, registered_user):
        async with session_factory() as session:
            await session.execute(delete(User).where(User.id == registered_user))
            await session.commit()

        response = await logged_in_client.get("/account/view")
        assert response.status_code == 303
        assert response.headers["location"] == "/user/login"

    @pytest.mark.asyncio
    async def test_password_update(self, logged_in_client, session_factory, registered_user):
        token = await csrf_token_from(logged_in_client, "/account/password/update")
        response = await logged_in_client.post(
            "/account/password/update",
            data={
                "csrf_token": token,
                "current_password": TEST_USER["password"],
                "new_password": "brand-new-pass",
                "confirm_password": "brand-new-pass",
            },
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/account/view"

        page = await logged_in_client.get("/account/view")
        assert "Your password has been updated!" in page.text

        async with session_factory() as session:
            user_id = await user_service.authenticate(session, TEST_USER["email"], "brand-new-pass")
        assert user_id == registered_user

    @pytest.mark.asyncio
    async def test_password_update_wrong_current(self, logged_in_client):
        token = await csrf_token_from(logged_in_client, "/account/password/update")
        response = await logged_in_client.post(
            "/account/password/update",
            data={
                "csrf_token": token,
                "current_password": "not-my-password",
                "new_password": "brand-new-pass",
                "confirm_password": "brand-new-pass",
            },
        )
        assert response.status_code == 422
        assert "Current password is incorrect" in response.text

    @pytest.mark.asyncio
    async def test_password_update_mismatch_leaves_password(self, logged_in_client, session_factory):
        token = await csrf_token_from(logged_in_client, "/account/password/update")
        response = await logged_in_client.post(
            "/account/password/update",
            data={
                "csrf_token": token,
                "current_password": TEST_USER["password"],
                "new_password": "brand-new-pass",
                "confirm_password": "different-pass",
            },
        )
        assert response.status_code == 422
        assert "Passwords do not match" in response.text

        async with session_factory() as session:
            assert await user_service.authenticate(session, TEST_USER["email"], TEST_USER["password"])
