"""
Snippetbox - Request Logging Middleware
========================================

What:  One access log line per incoming request.
Why:   Shows who asked for what, before any later stage can fail or
       short-circuit.
How:   Logs remote address, protocol, method and full request URI on the
       `snippetbox.access` logger, then delegates unconditionally.
When:  After recovery (a logging failure is still recovered) and before the
       security headers.

Log Format:
    127.0.0.1:54321 - HTTP/1.1 GET /snippet/view/1?ref=home

    The same values are attached as `extra` fields (remote_addr, proto,
    method, uri) for structured handlers.

What we log vs what we DON'T log (privacy):
    ✅ Log: address, protocol, method, path and query
    ❌ Don't log: request body (passwords), cookies (session tokens)
"""

import logging

from starlette.requests import Request
from starlette.responses import Response

from snippetbox.pipeline.chain import Handler

logger = logging.getLogger("snippetbox.access")


def log_request(next: Handler) -> Handler:
    async def log(request: Request) -> Response:
        if request.client:
            remote_addr = f"{request.client.host}:{request.client.port}"
        else:
            remote_addr = "unknown"
        proto = f"HTTP/{request.scope.get('http_version', '1.1')}"
        uri = request.url.path
        if request.url.query:
            uri = f"{uri}?{request.url.query}"

        logger.info(
            "%s - %s %s %s",
            remote_addr,
            proto,
            request.method,
            uri,
            extra={
                "remote_addr": remote_addr,
                "proto": proto,
                "method": request.method,
                "uri": uri,
            },
        )
        return await next(request)

    return log
