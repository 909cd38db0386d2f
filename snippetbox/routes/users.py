"""
Snippetbox - User & Account Handlers
=====================================

Endpoints:
    GET/POST /user/signup               → create an account
    GET/POST /user/login                → start an authenticated session
    POST     /user/logout               → end it                   [protected]
    GET      /account/view              → account details          [protected]
    GET/POST /account/password/update   → change password          [protected]

Session handling:
    The session token is renewed on login and logout, before the user id is
    written or removed, so a token captured earlier is of no further use.
"""

import logging
from http import HTTPStatus

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from snippetbox.exceptions import (
    DatabaseError,
    DuplicateEmailError,
    FormDecodeError,
    InvalidCredentialsError,
    NoRecordError,
)
from snippetbox.responders import client_error, server_error
from snippetbox.routes.base import BaseHandlers
from snippetbox.schemas.forms import PasswordUpdateForm, UserLoginForm, UserSignupForm
from snippetbox.sessions import AUTHENTICATED_USER_ID, FLASH, REDIRECT_PATH_AFTER_LOGIN

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_REDIRECT = "/snippet/create"


def _see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=HTTPStatus.SEE_OTHER)


def _safe_local_path(path: str) -> bool:
    # Only same-site absolute paths; "//host" would be protocol-relative
    return path.startswith("/") and not path.startswith("//") and "\\" not in path


class UserHandlers(BaseHandlers):

    # ── Signup ────────────────────────────────────────────────────────────

    async def signup_form(self, request: Request) -> Response:
        data = self.new_template_data(request)
        data.form = UserSignupForm()
        return self.render(request, "signup.html", HTTPStatus.OK, data)

    async def signup(self, request: Request) -> Response:
        try:
            form = await self.decode_post_form(request, UserSignupForm)
        except FormDecodeError:
            return client_error(HTTPStatus.BAD_REQUEST)

        if form.validate_form():
            try:
                await self.users.insert(form.name, form.email, form.password)
            except DuplicateEmailError:
                form.add_field_error("email", "Email address is already in use")
            except DatabaseError as exc:
                return server_error(request, exc)
            else:
                self.sessions.put(request, FLASH, "Your signup was successful. Please log in.")
                return _see_other("/user/login")

        data = self.new_template_data(request)
        data.form = form
        return self.render(request, "signup.html", HTTPStatus.UNPROCESSABLE_ENTITY, data)

    # ── Login / logout ────────────────────────────────────────────────────

    async def login_form(self, request: Request) -> Response:
        data = self.new_template_data(request)
        data.form = UserLoginForm()
        return self.render(request, "login.html", HTTPStatus.OK, data)

    async def login(self, request: Request) -> Response:
        try:
            form = await self.decode_post_form(request, UserLoginForm)
        except FormDecodeError:
            return client_error(HTTPStatus.BAD_REQUEST)

        if form.validate_form():
            try:
                user_id = await self.users.authenticate(form.email, form.password)
            except InvalidCredentialsError:
                logger.info("Failed login attempt from %s", request.client.host if request.client else "unknown")
                form.add_non_field_error("Email or password is incorrect")
            except DatabaseError as exc:
                return server_error(request, exc)
            else:
                try:
                    await self.sessions.renew_token(request)
                except DatabaseError as exc:
                    return server_error(request, exc)
                self.sessions.put(request, AUTHENTICATED_USER_ID, user_id)

                path = self.sessions.pop_str(request, REDIRECT_PATH_AFTER_LOGIN)
                if path and _safe_local_path(path):
                    return _see_other(path)
                return _see_other(DEFAULT_LOGIN_REDIRECT)

        data = self.new_template_data(request)
        data.form = form
        return self.render(request, "login.html", HTTPStatus.UNPROCESSABLE_ENTITY, data)

    async def logout(self, request: Request) -> Response:
        try:
            await self.sessions.renew_token(request)
        except DatabaseError as exc:
            return server_error(request, exc)

        self.sessions.remove(request, AUTHENTICATED_USER_ID)
        self.sessions.put(request, FLASH, "You've been logged out successfully!")
        return _see_other("/")

    # ── Account ───────────────────────────────────────────────────────────

    async def account_view(self, request: Request) -> Response:
        user_id = self.sessions.get_int(request, AUTHENTICATED_USER_ID)
        try:
            user = await self.users.get(user_id)
        except NoRecordError:
            return _see_other("/user/login")
        except DatabaseError as exc:
            return server_error(request, exc)

        data = self.new_template_data(request)
        data.user = user
        return self.render(request, "account.html", HTTPStatus.OK, data)

    async def password_update_form(self, request: Request) -> Response:
        data = self.new_template_data(request)
        data.form = PasswordUpdateForm()
        return self.render(request, "password.html", HTTPStatus.OK, data)

    async def password_update(self, request: Request) -> Response:
        try:
            form = await self.decode_post_form(request, PasswordUpdateForm)
        except FormDecodeError:
            return client_error(HTTPStatus.BAD_REQUEST)

        if form.validate_form():
            user_id = self.sessions.get_int(request, AUTHENTICATED_USER_ID)
            try:
                await self.users.update_password(user_id, form.current_password, form.new_password)
            except InvalidCredentialsError:
                form.add_field_error("current_password", "Current password is incorrect")
            except NoRecordError:
                return _see_other("/user/login")
            except DatabaseError as exc:
                return server_error(request, exc)
            else:
                self.sessions.put(request, FLASH, "Your password has been updated!")
                return _see_other("/account/view")

        data = self.new_template_data(request)
        data.form = form
        return self.render(request, "password.html", HTTPStatus.UNPROCESSABLE_ENTITY, data)
