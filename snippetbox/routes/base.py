"""
Snippetbox - Handler Base
==========================

What:  Helpers shared by every HTML handler group.
Why:   Rendering, template data and form decoding must behave the same on
       every page; handlers stay focused on their own flow.
"""

from typing import Type, TypeVar

from jinja2 import TemplateError
from pydantic import BaseModel
from starlette.requests import Request
from starlette.responses import Response

from snippetbox.dependencies import Dependencies
from snippetbox.exceptions import TemplateNotFoundError
from snippetbox.pipeline.context import IS_AUTHENTICATED
from snippetbox.responders import server_error
from snippetbox.schemas.forms import decode_form
from snippetbox.sessions import FLASH
from snippetbox.templating import TemplateData

F = TypeVar("F", bound=BaseModel)


class BaseHandlers:
    def __init__(self, deps: Dependencies):
        self.snippets = deps.snippets
        self.users = deps.users
        self.sessions = deps.sessions
        self.csrf = deps.csrf
        self.templates = deps.templates

    def is_authenticated(self, request: Request) -> bool:
        return IS_AUTHENTICATED.get(request, False)

    def new_template_data(self, request: Request) -> TemplateData:
        # Popping the flash means it is shown exactly once
        return TemplateData(
            flash=self.sessions.pop_str(request, FLASH),
            is_authenticated=self.is_authenticated(request),
            csrf_token=self.csrf.token(request),
        )

    def render(self, request: Request, page: str, status: int, data: TemplateData) -> Response:
        try:
            return self.templates.render(page, status, data)
        except (TemplateNotFoundError, TemplateError) as exc:
            return server_error(request, exc)

    async def decode_post_form(self, request: Request, target: Type[F]) -> F:
        """
        Decode the request body into `target`.

        FormDecodeError (bad input) is for the caller to turn into a 400.
        InvalidDecodeTargetError is a defect and is left to propagate.
        """
        form_data = await request.form()
        return decode_form(form_data, target)
