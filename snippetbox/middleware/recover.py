"""
Snippetbox - Panic Recovery Middleware
=======================================

What:  Converts any exception escaping later middleware or the handler into
       a generic 500 response.
Why:   An unexpected fault in one request must not reach the server loop,
       and its connection state can no longer be trusted.
How:   Catches `Exception` around the rest of the chain, reports it through
       `server_error` (traceback logged at ERROR) and marks the response
       with `Connection: close` so the server drops the connection after
       writing it. Headers staged by stages that had already run (see
       secure_headers) are copied onto the replacement response.
When:  Outermost middleware of the standard chain, so it covers every stage
       after it.

Scope:
    Only the current request task is covered. Tasks started with
    asyncio.create_task() run outside this frame and must install their own
    handling (see SessionManager._cleanup_loop). Task cancellation
    (asyncio.CancelledError is a BaseException) is never swallowed.
"""

from starlette.requests import Request
from starlette.responses import Response

from snippetbox.pipeline.chain import Handler
from snippetbox.pipeline.context import STAGED_HEADERS
from snippetbox.responders import server_error


def recover_panic(next: Handler) -> Handler:
    async def recover(request: Request) -> Response:
        try:
            return await next(request)
        except Exception as exc:
            response = server_error(request, exc)
            response.headers.update(STAGED_HEADERS.get(request, {}))
            response.headers["Connection"] = "close"
            return response

    return recover
