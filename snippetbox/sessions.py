"""
Snippetbox - Session Manager
=============================

What:  Server-side sessions keyed by a random token carried in a cookie.
Why:   Flash messages, the logged-in user and the post-login redirect must
       survive across requests without trusting the client with the values.
How:   `load_and_save` is a per-route middleware: it loads the session into
       the request context before the handler runs and commits it (and the
       cookie) after the handler returns. Handlers read and write values
       through the accessors on SessionManager.

Lifecycle of one request:
    1. Cookie token → store.find() → SessionData (or a fresh, empty one)
    2. Handler calls get / put / pop_str / renew_token / destroy
    3. MODIFIED  → store.commit() under a (possibly new) token, cookie set
       DESTROYED → store.delete(), cookie expired
       UNMODIFIED → nothing written

Concurrency:
    SessionData lives in the request scope only. The store is the single
    shared resource and every write replaces a whole row.
"""

import asyncio
import enum
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from starlette.requests import Request
from starlette.responses import Response

from snippetbox.exceptions import DatabaseError
from snippetbox.pipeline.chain import Handler
from snippetbox.pipeline.context import SESSION
from snippetbox.responders import server_error
from snippetbox.services.session_store import SqlSessionStore

logger = logging.getLogger(__name__)

# ── Well-known session keys ───────────────────────────────────────────────
AUTHENTICATED_USER_ID = "authenticated_user_id"
FLASH = "flash"
REDIRECT_PATH_AFTER_LOGIN = "redirect_path_after_login"


class SessionStatus(enum.Enum):
    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    DESTROYED = "destroyed"


def new_token() -> str:
    return secrets.token_urlsafe(32)


@dataclass
class SessionData:
    """Values of one client session, as loaded for the current request."""

    token: Optional[str]
    deadline: datetime
    values: Dict[str, Any] = field(default_factory=dict)
    status: SessionStatus = SessionStatus.UNMODIFIED

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def put(self, key: str, value: Any) -> None:
        self.values[key] = value
        self.status = SessionStatus.MODIFIED

    def pop(self, key: str, default: Any = None) -> Any:
        if key not in self.values:
            return default
        self.status = SessionStatus.MODIFIED
        return self.values.pop(key)

    def remove(self, key: str) -> None:
        if key in self.values:
            del self.values[key]
            self.status = SessionStatus.MODIFIED

    def exists(self, key: str) -> bool:
        return key in self.values


class SessionManager:
    """
    Loads, exposes and persists sessions.

    Attributes:
        store:        persistence for session rows
        lifetime:     absolute lifetime of a session from creation/renewal
        cookie_name:  name of the cookie carrying the token
        secure:       send the cookie over HTTPS only
    """

    def __init__(
        self,
        store: SqlSessionStore,
        lifetime: timedelta = timedelta(hours=12),
        cookie_name: str = "session",
        secure: bool = True,
        same_site: str = "lax",
    ):
        self.store = store
        self.lifetime = lifetime
        self.cookie_name = cookie_name
        self.secure = secure
        self.same_site = same_site
        self._cleanup_task: Optional[asyncio.Task] = None

    # ── Middleware ────────────────────────────────────────────────────────

    def load_and_save(self, next: Handler) -> Handler:
        async def load_and_save_session(request: Request) -> Response:
            try:
                data = await self._load(request.cookies.get(self.cookie_name))
            except DatabaseError as exc:
                return server_error(request, exc)

            SESSION.set(request, data)
            response = await next(request)

            try:
                await self._save(data, response)
            except DatabaseError as exc:
                return server_error(request, exc)
            return response

        return load_and_save_session

    async def _load(self, token: Optional[str]) -> SessionData:
        now = datetime.now(timezone.utc)
        if token:
            stored = await self.store.find(token)
            if stored is not None:
                return SessionData(token=token, deadline=stored.expiry, values=stored.values)
        return SessionData(token=None, deadline=now + self.lifetime)

    async def _save(self, data: SessionData, response: Response) -> None:
        if data.status is SessionStatus.DESTROYED:
            if data.token:
                await self.store.delete(data.token)
            response.delete_cookie(
                self.cookie_name,
                path="/",
                secure=self.secure,
                httponly=True,
                samesite=self.same_site,
            )
            self._add_cookie_headers(response)
            return

        if data.status is not SessionStatus.MODIFIED:
            return

        if data.token is None:
            data.token = new_token()
        await self.store.commit(data.token, data.values, data.deadline)

        max_age = max(int((data.deadline - datetime.now(timezone.utc)).total_seconds()), 0)
        response.set_cookie(
            self.cookie_name,
            data.token,
            max_age=max_age,
            expires=max_age,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite=self.same_site,
        )
        self._add_cookie_headers(response)

    @staticmethod
    def _add_cookie_headers(response: Response) -> None:
        # Shared caches must not store a response carrying someone's cookie
        response.headers.add_vary_header("Cookie")
        # A stricter policy set further in (no-store on protected pages) wins
        if "cache-control" not in response.headers:
            response.headers["Cache-Control"] = 'no-cache="Set-Cookie"'

    # ── Accessors ─────────────────────────────────────────────────────────

    def _data(self, request: Request) -> SessionData:
        return SESSION.get(request)

    def get(self, request: Request, key: str, default: Any = None) -> Any:
        return self._data(request).get(key, default)

    def get_str(self, request: Request, key: str) -> str:
        value = self._data(request).get(key)
        return value if isinstance(value, str) else ""

    def get_int(self, request: Request, key: str) -> int:
        value = self._data(request).get(key)
        return value if isinstance(value, int) and not isinstance(value, bool) else 0

    def put(self, request: Request, key: str, value: Any) -> None:
        self._data(request).put(key, value)

    def pop_str(self, request: Request, key: str) -> str:
        value = self._data(request).pop(key)
        return value if isinstance(value, str) else ""

    def remove(self, request: Request, key: str) -> None:
        self._data(request).remove(key)

    def exists(self, request: Request, key: str) -> bool:
        return self._data(request).exists(key)

    async def renew_token(self, request: Request) -> None:
        """
        Move the session to a fresh token.

        Called on every privilege change (login, logout) so a token planted
        before authentication is worthless afterwards.
        """
        data = self._data(request)
        if data.token:
            await self.store.delete(data.token)
        data.token = new_token()
        data.deadline = datetime.now(timezone.utc) + self.lifetime
        data.status = SessionStatus.MODIFIED

    def destroy(self, request: Request) -> None:
        data = self._data(request)
        data.values.clear()
        data.status = SessionStatus.DESTROYED

    # ── Expired-row cleanup ───────────────────────────────────────────────

    def start_cleanup(self, interval: float) -> None:
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop(interval))

    async def stop_cleanup(self) -> None:
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None

    async def _cleanup_loop(self, interval: float) -> None:
        # Runs outside any request, so request recovery does not cover it
        while True:
            await asyncio.sleep(interval)
            try:
                deleted = await self.store.delete_expired()
                if deleted:
                    logger.debug("Deleted %d expired sessions", deleted)
            except Exception:
                logger.exception("Expired session cleanup failed; retrying in %ss", interval)
