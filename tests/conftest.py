"""
Snippetbox - Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (throwaway database, app,
       HTTP client, bare requests for middleware tests).
How:   Every test gets its own SQLite file under tmp_path, so tests never
       share rows or sessions.

Fixture Hierarchy:
    settings → deps (tables created) → app → client
    make_request: factory for bare Starlette requests (no app involved)

Helpers (tests/helpers.py):
    extract_csrf_token, login, post_form
"""

from typing import Any, Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

from snippetbox.config import Settings
from snippetbox.database import Base
from snippetbox.dependencies import build_dependencies
from snippetbox.main import create_app
from snippetbox.models import SessionRecord, Snippet, User  # noqa: F401

from helpers import TEST_USER, login


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings(tmp_path):
    """
    Settings pointed at a per-test SQLite file.

    cookie_secure is off because the test client talks plain HTTP and would
    otherwise never send the session cookie back.
    """
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'snippetbox.db'}",
        cookie_secure=False,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def deps(settings):
    deps = build_dependencies(settings)
    async with deps.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield deps
    await deps.engine.dispose()


@pytest.fixture
def app(deps):
    return create_app(deps=deps)


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    Redirects are not followed, so tests can assert on 303 responses.
    """
    transport = ASGITransport(app=app, client=("127.0.0.1", 54321))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def user_id(deps) -> int:
    return await deps.users.insert(TEST_USER["name"], TEST_USER["email"], TEST_USER["password"])


@pytest_asyncio.fixture
async def auth_client(client, user_id):
    """A client that has logged in as TEST_USER."""
    response = await login(client, TEST_USER["email"], TEST_USER["password"])
    assert response.status_code == 303
    return client


# ══════════════════════════════════════════════════════════════════════════
# Bare Requests
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_request():
    """
    Factory for Starlette requests built straight from an ASGI scope.

    Usage:
        request = make_request("POST", "/snippet/create", query="a=1")
    """

    def _make(
        method: str = "GET",
        path: str = "/",
        query: str = "",
        headers: Optional[Dict[str, str]] = None,
        body: bytes = b"",
    ) -> Request:
        scope: Dict[str, Any] = {
            "type": "http",
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "path": path,
            "raw_path": path.encode(),
            "query_string": query.encode(),
            "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
            "client": ("10.0.0.1", 40000),
            "server": ("test", 80),
        }

        async def receive():
            return {"type": "http.request", "body": body, "more_body": False}

        return Request(scope, receive)

    return _make
