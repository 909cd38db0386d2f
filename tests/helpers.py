"""Helpers shared by the HTTP-level tests."""

import re

from httpx import AsyncClient

CSRF_FIELD_RX = re.compile(r'name="csrf_token" value="([^"]+)"')

TEST_USER = {"name": "Alice", "email": "alice@example.com", "password": "pa$$word"}


def extract_csrf_token(html: str) -> str:
    match = CSRF_FIELD_RX.search(html)
    assert match is not None, "no CSRF token in page"
    return match.group(1)


async def login(client: AsyncClient, email: str, password: str):
    """GET the login form for a fresh token, then POST the credentials."""
    page = await client.get("/user/login")
    return await client.post(
        "/user/login",
        data={"email": email, "password": password, "csrf_token": extract_csrf_token(page.text)},
    )


async def post_form(client: AsyncClient, form_page: str, action: str, data: dict):
    """POST `data` to `action` with a CSRF token taken from `form_page`."""
    page = await client.get(form_page)
    return await client.post(action, data={**data, "csrf_token": extract_csrf_token(page.text)})
