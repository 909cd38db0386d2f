"""
Snippetbox - End-to-End Handler Tests
======================================

What:  Full requests through the app: standard chain, router, per-route
       chains, handlers, templates and a real (SQLite) database.

What we test:
    ✅ Standard chain: security headers, 404/405, static files, /ping
    ✅ Snippets: view 404s, creation validation, insert only on valid input
    ✅ Users: signup, login (right/wrong password), logout, account pages
    ✅ Guard: protected pages 403 until login, then reachable
    ✅ Recovery: an unexpected handler failure is a 500, never a crash
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import update

from snippetbox.database import create_session_factory
from snippetbox.exceptions import DatabaseError
from snippetbox.middleware import SECURITY_HEADERS
from snippetbox.models import Snippet

from helpers import TEST_USER, extract_csrf_token, login, post_form


def assert_security_headers(response):
    for name, value in SECURITY_HEADERS.items():
        assert response.headers[name] == value


class TestStandardChain:

    @pytest.mark.asyncio
    async def test_ping(self, client):
        response = await client.get("/ping")

        assert response.status_code == 200
        assert response.text == "OK"
        assert_security_headers(response)
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_unknown_path(self, client):
        response = await client.get("/no/such/page")

        assert response.status_code == 404
        assert response.text == "Not Found"
        assert_security_headers(response)

    @pytest.mark.asyncio
    async def test_wrong_method(self, client):
        response = await client.delete("/snippet/create")

        assert response.status_code == 405
        assert response.text == "Method Not Allowed"
        assert "GET" in response.headers["allow"]

    @pytest.mark.asyncio
    async def test_static_file(self, client):
        response = await client.get("/static/css/main.css")

        assert response.status_code == 200
        assert "text/css" in response.headers["content-type"]
        assert_security_headers(response)

    @pytest.mark.asyncio
    async def test_missing_static_file(self, client):
        response = await client.get("/static/css/nope.css")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_recovered(self, client, deps):
        with patch.object(deps.snippets, "latest", AsyncMock(side_effect=RuntimeError("boom"))):
            response = await client.get("/")

        assert response.status_code == 500
        assert response.text == "Internal Server Error"
        assert response.headers["connection"] == "close"
        assert_security_headers(response)

    @pytest.mark.asyncio
    async def test_database_failure_is_500(self, client, deps):
        with patch.object(deps.snippets, "latest", AsyncMock(side_effect=DatabaseError("down"))):
            response = await client.get("/")

        assert response.status_code == 500
        assert response.text == "Internal Server Error"


class TestSnippetPages:

    @pytest.mark.asyncio
    async def test_home_lists_snippets(self, client, deps):
        await deps.snippets.insert("First snippet", "Body", 365)

        response = await client.get("/")

        assert response.status_code == 200
        assert "First snippet" in response.text
        assert_security_headers(response)

    @pytest.mark.asyncio
    async def test_home_empty(self, client):
        response = await client.get("/")
        assert "nothing to see here" in response.text

    @pytest.mark.asyncio
    async def test_about(self, client):
        response = await client.get("/about")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_view_existing(self, client, deps):
        snippet_id = await deps.snippets.insert("An old silent pond", "A frog jumps in", 7)

        response = await client.get(f"/snippet/view/{snippet_id}")

        assert response.status_code == 200
        assert "A frog jumps in" in response.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_id", ["abc", "0", "-1", "1.5", "999"])
    async def test_view_not_found(self, client, raw_id):
        response = await client.get(f"/snippet/view/{raw_id}")

        assert response.status_code == 404
        assert response.text == "Not Found"

    @pytest.mark.asyncio
    async def test_view_expired(self, client, deps):
        snippet_id = await deps.snippets.insert("Gone soon", "Body", 1)
        async with create_session_factory(deps.engine)() as session:
            async with session.begin():
                await session.execute(
                    update(Snippet).where(Snippet.id == snippet_id).values(expires=Snippet.created)
                )

        response = await client.get(f"/snippet/view/{snippet_id}")

        assert response.status_code == 404


class TestSnippetCreate:

    @pytest.mark.asyncio
    async def test_requires_login(self, client):
        response = await client.get("/snippet/create")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_form_defaults(self, auth_client):
        response = await auth_client.get("/snippet/create")

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        assert 'value="365" checked' in response.text

    @pytest.mark.asyncio
    async def test_blank_title_never_inserts(self, auth_client, deps):
        with patch.object(deps.snippets, "insert", wraps=deps.snippets.insert) as insert:
            response = await post_form(
                auth_client,
                "/snippet/create",
                "/snippet/create",
                {"title": "", "content": "Body", "expires": "7"},
            )

        assert response.status_code == 422
        assert "This field cannot be blank" in response.text
        insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_undecodable_form_is_400(self, auth_client, deps):
        with patch.object(deps.snippets, "insert", wraps=deps.snippets.insert) as insert:
            response = await post_form(
                auth_client,
                "/snippet/create",
                "/snippet/create",
                {"title": "T", "content": "Body", "expires": "forever"},
            )

        assert response.status_code == 400
        insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_valid_creates_and_redirects(self, auth_client, deps):
        with patch.object(deps.snippets, "insert", wraps=deps.snippets.insert) as insert:
            response = await post_form(
                auth_client,
                "/snippet/create",
                "/snippet/create",
                {"title": "Haiku", "content": "Over the wintry forest", "expires": "7"},
            )

        insert.assert_called_once_with("Haiku", "Over the wintry forest", 7)
        assert response.status_code == 303
        location = response.headers["location"]
        assert location.startswith("/snippet/view/")

        page = await auth_client.get(location)
        assert page.status_code == 200
        assert "Snippet successfully created!" in page.text

        # Flash is shown once
        again = await auth_client.get(location)
        assert "Snippet successfully created!" not in again.text

    @pytest.mark.asyncio
    async def test_missing_csrf_token_rejected(self, auth_client, deps):
        with patch.object(deps.snippets, "insert", wraps=deps.snippets.insert) as insert:
            response = await auth_client.post(
                "/snippet/create", data={"title": "T", "content": "C", "expires": "7"}
            )

        assert response.status_code == 400
        insert.assert_not_called()


class TestSignup:

    @pytest.mark.asyncio
    async def test_signup_success(self, client, deps):
        response = await post_form(
            client,
            "/user/signup",
            "/user/signup",
            {"name": "Bob", "email": "bob@example.com", "password": "correct-horse"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/user/login"
        assert await deps.users.authenticate("bob@example.com", "correct-horse")

        page = await client.get("/user/login")
        assert "Your signup was successful. Please log in." in page.text

    @pytest.mark.asyncio
    async def test_signup_duplicate_email(self, client, user_id):
        response = await post_form(
            client,
            "/user/signup",
            "/user/signup",
            {"name": "Imposter", "email": TEST_USER["email"], "password": "correct-horse"},
        )

        assert response.status_code == 422
        assert "Email address is already in use" in response.text

    @pytest.mark.asyncio
    async def test_signup_invalid(self, client):
        response = await post_form(
            client, "/user/signup", "/user/signup", {"name": "", "email": "nope", "password": "x"}
        )

        assert response.status_code == 422
        assert "This field must be a valid email address" in response.text
        # Passwords are never echoed back
        assert 'value="x"' not in response.text


class TestLogin:

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, user_id):
        response = await login(client, TEST_USER["email"], "wrong-password")

        assert response.status_code == 422
        assert "Email or password is incorrect" in response.text

        guarded = await client.get("/account/view")
        assert guarded.status_code == 403

    @pytest.mark.asyncio
    async def test_correct_password(self, client, user_id):
        response = await login(client, TEST_USER["email"], TEST_USER["password"])

        assert response.status_code == 303
        assert response.headers["location"] == "/snippet/create"

        guarded = await client.get("/snippet/create")
        assert guarded.status_code == 200
        assert "Logout" in guarded.text

    @pytest.mark.asyncio
    async def test_login_renews_session_token(self, client, user_id):
        await client.get("/snippet/create")
        before = client.cookies.get("session")

        await login(client, TEST_USER["email"], TEST_USER["password"])

        assert before
        assert client.cookies.get("session") != before

    @pytest.mark.asyncio
    async def test_returns_to_requested_page(self, client, user_id):
        await client.get("/account/view")

        response = await login(client, TEST_USER["email"], TEST_USER["password"])

        assert response.status_code == 303
        assert response.headers["location"] == "/account/view"


class TestAccount:

    @pytest.mark.asyncio
    async def test_logout(self, auth_client):
        page = await auth_client.get("/snippet/create")
        response = await auth_client.post(
            "/user/logout", data={"csrf_token": extract_csrf_token(page.text)}
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/"

        home = await auth_client.get("/")
        assert "logged out successfully" in home.text
        assert (await auth_client.get("/snippet/create")).status_code == 403

    @pytest.mark.asyncio
    async def test_account_view(self, auth_client):
        response = await auth_client.get("/account/view")

        assert response.status_code == 200
        assert TEST_USER["name"] in response.text
        assert TEST_USER["email"] in response.text

    @pytest.mark.asyncio
    async def test_deleted_user_is_logged_out(self, auth_client, deps, user_id):
        with patch.object(deps.users, "exists", AsyncMock(return_value=False)):
            response = await auth_client.get("/account/view")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_password_update_wrong_current(self, auth_client):
        response = await post_form(
            auth_client,
            "/account/password/update",
            "/account/password/update",
            {
                "current_password": "not-my-password",
                "new_password": "brand-new-pass",
                "new_password_confirmation": "brand-new-pass",
            },
        )

        assert response.status_code == 422
        assert "Current password is incorrect" in response.text

    @pytest.mark.asyncio
    async def test_password_update_success(self, auth_client, deps, user_id):
        response = await post_form(
            auth_client,
            "/account/password/update",
            "/account/password/update",
            {
                "current_password": TEST_USER["password"],
                "new_password": "brand-new-pass",
                "new_password_confirmation": "brand-new-pass",
            },
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/account/view"
        assert await deps.users.authenticate(TEST_USER["email"], "brand-new-pass") == user_id

        page = await auth_client.get("/account/view")
        assert "Your password has been updated!" in page.text
