"""
Snippetbox - Centralized Error Responders
==========================================

What:  The only sanctioned ways to turn a failure into an HTTP response.
Why:   Consistent bodies across every handler, and internal details (SQL,
       file paths, exception text) never reach the client.

    server_error(request, exc)  → 500, traceback logged at ERROR
    client_error(status)        → status, body = standard reason phrase
    not_found()                 → 404
"""

import logging
from http import HTTPStatus
from typing import Mapping, Optional

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

logger = logging.getLogger(__name__)


def server_error(request: Request, exc: BaseException) -> Response:
    """
    Log an internal failure with its traceback and answer a generic 500.

    The log line names the request so the trace can be correlated with the
    access log; the response body is always the plain reason phrase.
    """
    uri = request.url.path
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    logger.error(
        "%s %s: %s",
        request.method,
        uri,
        exc,
        exc_info=(type(exc), exc, exc.__traceback__),
        extra={"method": request.method, "uri": uri},
    )
    return client_error(HTTPStatus.INTERNAL_SERVER_ERROR)


def client_error(status: int, headers: Optional[Mapping[str, str]] = None) -> Response:
    """Answer `status` with its standard human-readable text."""
    return PlainTextResponse(HTTPStatus(status).phrase, status_code=int(status), headers=headers)


def not_found() -> Response:
    return client_error(HTTPStatus.NOT_FOUND)
