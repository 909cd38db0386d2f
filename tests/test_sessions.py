"""
Snippetbox - Session Manager & Store Tests
===========================================

What we test:
    ✅ Store: commit/find round trip, expiry respected, sweep of expired rows
    ✅ load_and_save: untouched sessions write nothing and set no cookie
    ✅ load_and_save: modified sessions are committed and the cookie is set
    ✅ renew_token moves values to a new token and drops the old row
    ✅ destroy clears the row and expires the cookie
    ✅ Cleanup loop survives a failing sweep
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.responses import PlainTextResponse

from snippetbox.exceptions import DatabaseError
from snippetbox.sessions import FLASH, SessionManager


def past(**kwargs):
    return datetime.now(timezone.utc) - timedelta(**kwargs)


def future(**kwargs):
    return datetime.now(timezone.utc) + timedelta(**kwargs)


class TestSqlSessionStore:

    @pytest.mark.asyncio
    async def test_commit_then_find(self, deps):
        store = deps.sessions.store
        expiry = future(hours=1)

        await store.commit("tok", {"flash": "hi", "authenticated_user_id": 3}, expiry)
        stored = await store.find("tok")

        assert stored.values == {"flash": "hi", "authenticated_user_id": 3}
        assert stored.expiry.tzinfo is not None
        assert abs(stored.expiry - expiry) < timedelta(seconds=1)

    @pytest.mark.asyncio
    async def test_expired_not_found(self, deps):
        store = deps.sessions.store
        await store.commit("old", {}, past(minutes=1))

        assert await store.find("old") is None

    @pytest.mark.asyncio
    async def test_commit_replaces(self, deps):
        store = deps.sessions.store
        await store.commit("tok", {"a": 1}, future(hours=1))
        await store.commit("tok", {"a": 2}, future(hours=1))

        assert (await store.find("tok")).values == {"a": 2}

    @pytest.mark.asyncio
    async def test_delete_expired(self, deps):
        store = deps.sessions.store
        await store.commit("old", {}, past(minutes=1))
        await store.commit("new", {}, future(hours=1))

        assert await store.delete_expired() == 1
        assert await store.find("new") is not None


class TestLoadAndSave:

    @pytest.mark.asyncio
    async def test_untouched_session_sets_no_cookie(self, deps, make_request):
        sessions = deps.sessions

        async def handler(request):
            sessions.get(request, FLASH)
            return PlainTextResponse("ok")

        response = await sessions.load_and_save(handler)(make_request())

        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_modified_session_committed(self, deps, make_request):
        sessions = deps.sessions

        async def handler(request):
            sessions.put(request, FLASH, "Saved!")
            return PlainTextResponse("ok")

        response = await sessions.load_and_save(handler)(make_request())

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("session=")
        assert "HttpOnly" in cookie
        assert "Cookie" in response.headers["vary"]

        token = cookie.split(";")[0].split("=", 1)[1]
        assert (await sessions.store.find(token)).values == {FLASH: "Saved!"}

    @pytest.mark.asyncio
    async def test_existing_session_loaded(self, deps, make_request):
        sessions = deps.sessions
        await sessions.store.commit("known", {FLASH: "Hello"}, future(hours=1))
        seen = []

        async def handler(request):
            seen.append(sessions.pop_str(request, FLASH))
            return PlainTextResponse("ok")

        await sessions.load_and_save(handler)(make_request(headers={"cookie": "session=known"}))

        assert seen == ["Hello"]
        assert (await sessions.store.find("known")).values == {}

    @pytest.mark.asyncio
    async def test_renew_token(self, deps, make_request):
        sessions = deps.sessions
        await sessions.store.commit("before", {"redirect_path_after_login": "/x"}, future(hours=1))

        async def handler(request):
            await sessions.renew_token(request)
            return PlainTextResponse("ok")

        response = await sessions.load_and_save(handler)(make_request(headers={"cookie": "session=before"}))

        token = response.headers["set-cookie"].split(";")[0].split("=", 1)[1]
        assert token != "before"
        assert await sessions.store.find("before") is None
        assert (await sessions.store.find(token)).values == {"redirect_path_after_login": "/x"}

    @pytest.mark.asyncio
    async def test_destroy(self, deps, make_request):
        sessions = deps.sessions
        await sessions.store.commit("doomed", {FLASH: "x"}, future(hours=1))

        async def handler(request):
            sessions.destroy(request)
            return PlainTextResponse("ok")

        response = await sessions.load_and_save(handler)(make_request(headers={"cookie": "session=doomed"}))

        assert await sessions.store.find("doomed") is None
        assert 'session="";' in response.headers["set-cookie"] or "Max-Age=0" in response.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_store_failure_is_500(self, make_request):
        store = MagicMock()
        store.find = AsyncMock(side_effect=DatabaseError("down"))
        handler = AsyncMock(return_value=PlainTextResponse("ok"))

        response = await SessionManager(store).load_and_save(handler)(
            make_request(headers={"cookie": "session=abc"})
        )

        assert response.status_code == 500
        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_plain_accessors(self, deps, make_request):
        sessions = deps.sessions
        await sessions.store.commit("plain", {"redirect_path_after_login": "/x"}, future(hours=1))
        seen = []

        async def handler(request):
            seen.append(sessions.get(request, "redirect_path_after_login"))
            seen.append(sessions.get(request, "absent", "fallback"))
            seen.append(sessions.exists(request, "redirect_path_after_login"))
            sessions.remove(request, "redirect_path_after_login")
            seen.append(sessions.exists(request, "redirect_path_after_login"))
            return PlainTextResponse("ok")

        await sessions.load_and_save(handler)(make_request(headers={"cookie": "session=plain"}))

        assert seen == ["/x", "fallback", True, False]
        assert (await sessions.store.find("plain")).values == {}

    @pytest.mark.asyncio
    async def test_typed_accessors_tolerate_wrong_types(self, deps, make_request):
        sessions = deps.sessions
        await sessions.store.commit("typed", {"n": "not-int", "s": 5}, future(hours=1))
        seen = []

        async def handler(request):
            seen.append((sessions.get_int(request, "n"), sessions.get_str(request, "s")))
            return PlainTextResponse("ok")

        await sessions.load_and_save(handler)(make_request(headers={"cookie": "session=typed"}))

        assert seen == [(0, "")]


class TestCleanup:

    @pytest.mark.asyncio
    async def test_loop_survives_failures(self):
        store = MagicMock()
        calls = []

        async def sweep():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("database went away")
            return 0

        store.delete_expired = sweep
        manager = SessionManager(store)

        manager.start_cleanup(0.01)
        for _ in range(100):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)
        await manager.stop_cleanup()

        assert len(calls) >= 2
