"""
Snippetbox - Authentication Middleware
=======================================

What:  `authenticate` works out whether the request belongs to a logged-in
       user; `require_authentication` guards protected routes.
Why:   Handlers and templates read one typed flag (IS_AUTHENTICATED) instead
       of poking at the session and the database themselves.

Chain placement:
    dynamic   = Chain(sessions.load_and_save, csrf.protect, authenticate(...))
    protected = dynamic.append(require_authentication)

    `authenticate` needs a loaded session; `require_authentication` needs
    `authenticate` to have run. It is applied per route, never globally.

Why check the database on every request:
    A user deleted while logged in still has `authenticated_user_id` in
    their session. Checking `users.exists()` makes the deletion effective
    immediately.
"""

import logging
from http import HTTPStatus

from starlette.requests import Request
from starlette.responses import Response

from snippetbox.exceptions import DatabaseError
from snippetbox.pipeline.chain import Handler, Middleware
from snippetbox.pipeline.context import IS_AUTHENTICATED, SESSION
from snippetbox.responders import client_error, server_error
from snippetbox.services.user_service import UserService
from snippetbox.sessions import AUTHENTICATED_USER_ID, REDIRECT_PATH_AFTER_LOGIN, SessionManager

logger = logging.getLogger(__name__)


def authenticate(sessions: SessionManager, users: UserService) -> Middleware:
    """Build the middleware that sets IS_AUTHENTICATED for every request."""

    def middleware(next: Handler) -> Handler:
        async def authenticate_request(request: Request) -> Response:
            user_id = sessions.get_int(request, AUTHENTICATED_USER_ID)
            if not user_id:
                IS_AUTHENTICATED.set(request, False)
                return await next(request)

            try:
                exists = await users.exists(user_id)
            except DatabaseError as exc:
                return server_error(request, exc)

            if not exists:
                logger.info("Session refers to missing user %d; treating as anonymous", user_id)
            IS_AUTHENTICATED.set(request, exists)
            return await next(request)

        return authenticate_request

    return middleware


def require_authentication(next: Handler) -> Handler:
    async def guard(request: Request) -> Response:
        if not IS_AUTHENTICATED.get(request, False):
            # Remember where the visitor was heading so login can send them back
            session = SESSION.get(request, None)
            if session is not None and request.method == "GET":
                session.put(REDIRECT_PATH_AFTER_LOGIN, request.url.path)
            return client_error(HTTPStatus.FORBIDDEN)

        response = await next(request)
        # Pages behind the guard must not linger in browser or proxy caches
        response.headers["Cache-Control"] = "no-store"
        return response

    return guard
