"""
Snippetbox - Router & Outer-Chain Bridge
=========================================

What:  Maps method + path to a composed handler, and runs the process-wide
       chain around the whole routing table.
Why:   Route-specific middleware belongs to routes (Router); behaviour every
       request needs (recovery, access log, security headers) wraps the
       router itself (ChainMiddleware), so it also covers 404s, 405s and
       static files.
How:   Router produces Starlette `Route`/`Mount` objects for FastAPI.
       ChainMiddleware is a pure ASGI middleware: it turns the downstream
       application into a terminal Handler whose output is captured in a
       single Response object, lets the chain mutate that object, and writes
       it to the transport once.

Why not BaseHTTPMiddleware:
    Starlette's BaseHTTPMiddleware re-raises a downstream exception after
    the dispatch function has already produced a response for it, which
    would turn every recovered failure into a second, unhandled one.
"""

import logging
from typing import List, Optional

from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import BaseRoute, Mount, Route
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from snippetbox.pipeline.chain import Chain, Handler

logger = logging.getLogger(__name__)


class Router:
    """
    Collects the application's routes.

    Each registration binds one HTTP method; Starlette answers 405 (with an
    Allow header) when the path matches but the method does not, and 404
    when nothing matches.
    """

    def __init__(self) -> None:
        self.routes: List[BaseRoute] = []

    def handle(self, method: str, path: str, handler: Handler, name: Optional[str] = None) -> None:
        # Composed handlers are plain async functions, which Starlette treats
        # as request -> response endpoints
        self.routes.append(
            Route(path, endpoint=handler, methods=[method.upper()], name=name)
        )

    def mount_static(self, path: str, directory: str, name: str = "static") -> None:
        self.routes.append(Mount(path, app=StaticFiles(directory=directory), name=name))


class ChainMiddleware:
    """Pure ASGI middleware running a Chain around the downstream app."""

    def __init__(self, app: ASGIApp, chain: Chain) -> None:
        self.app = app
        self.chain = chain

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        handler = self.chain.then(self._forward)
        request = Request(scope, receive)
        response = await handler(request)
        await response(scope, receive, send)

    async def _forward(self, request: Request) -> Response:
        """
        Terminal handler: run the downstream app and capture its response.

        The body is buffered in full, streamed responses included, so the
        outer chain can replace the response after the app has finished.
        That suits the small pages and bundled CSS/JS served here; large
        downloads would need a pass-through path instead.
        """
        start: Optional[Message] = None
        body: List[bytes] = []

        async def capture(message: Message) -> None:
            nonlocal start
            if message["type"] == "http.response.start":
                start = message
            elif message["type"] == "http.response.body":
                body.append(message.get("body", b""))

        await self.app(request.scope, request.receive, capture)

        if start is None:
            raise RuntimeError("No response returned.")

        response = Response(content=b"".join(body), status_code=start["status"])
        response.raw_headers = [(bytes(k), bytes(v)) for k, v in start.get("headers", [])]
        return response
