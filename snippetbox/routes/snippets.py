"""
Snippetbox - Snippet Handlers
==============================

Endpoints:
    GET  /                    → latest snippets
    GET  /about               → about page
    GET  /snippet/view/{id}   → one snippet (404 when missing or expired)
    GET  /snippet/create      → empty creation form       [protected]
    POST /snippet/create      → create and redirect       [protected]

Failure mapping:
    - non-numeric / non-positive id, NoRecordError → 404
    - body that cannot be decoded (expires=abc)    → 400
    - broken field rules                           → 422 with the form re-rendered
    - DatabaseError                                → 500
"""

import logging
from http import HTTPStatus

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from snippetbox.exceptions import DatabaseError, FormDecodeError, NoRecordError
from snippetbox.responders import client_error, not_found, server_error
from snippetbox.routes.base import BaseHandlers
from snippetbox.schemas.forms import SnippetCreateForm
from snippetbox.sessions import FLASH

logger = logging.getLogger(__name__)


class SnippetHandlers(BaseHandlers):

    async def home(self, request: Request) -> Response:
        try:
            snippets = await self.snippets.latest()
        except DatabaseError as exc:
            return server_error(request, exc)

        data = self.new_template_data(request)
        data.snippets = snippets
        return self.render(request, "home.html", HTTPStatus.OK, data)

    async def about(self, request: Request) -> Response:
        return self.render(request, "about.html", HTTPStatus.OK, self.new_template_data(request))

    async def view(self, request: Request) -> Response:
        try:
            snippet_id = int(request.path_params["id"])
        except ValueError:
            return not_found()
        if snippet_id < 1:
            return not_found()

        try:
            snippet = await self.snippets.get(snippet_id)
        except NoRecordError:
            return not_found()
        except DatabaseError as exc:
            return server_error(request, exc)

        data = self.new_template_data(request)
        data.snippet = snippet
        return self.render(request, "view.html", HTTPStatus.OK, data)

    async def create_form(self, request: Request) -> Response:
        data = self.new_template_data(request)
        data.form = SnippetCreateForm(expires=365)
        return self.render(request, "create.html", HTTPStatus.OK, data)

    async def create(self, request: Request) -> Response:
        try:
            form = await self.decode_post_form(request, SnippetCreateForm)
        except FormDecodeError as exc:
            logger.info("Rejected snippet form: %s", exc.errors)
            return client_error(HTTPStatus.BAD_REQUEST)

        if not form.validate_form():
            data = self.new_template_data(request)
            data.form = form
            return self.render(request, "create.html", HTTPStatus.UNPROCESSABLE_ENTITY, data)

        try:
            snippet_id = await self.snippets.insert(form.title, form.content, form.expires)
        except DatabaseError as exc:
            return server_error(request, exc)

        self.sessions.put(request, FLASH, "Snippet successfully created!")
        return RedirectResponse(f"/snippet/view/{snippet_id}", status_code=HTTPStatus.SEE_OTHER)
