"""
Snippetbox - Request Pipeline
==============================

What:  The composition primitives every request flows through.

    chain.py    Chain / Handler / Middleware (ordered, immutable composition)
    context.py  ContextKey (typed request-scoped values)
    router.py   Router (method + path → handler), ChainMiddleware (outer chain)
"""

from snippetbox.pipeline.chain import Chain, Handler, Middleware
from snippetbox.pipeline.context import CSRF_TOKEN, IS_AUTHENTICATED, SESSION, ContextKey
from snippetbox.pipeline.router import ChainMiddleware, Router

__all__ = [
    "CSRF_TOKEN",
    "Chain",
    "ChainMiddleware",
    "ContextKey",
    "Handler",
    "IS_AUTHENTICATED",
    "Middleware",
    "Router",
    "SESSION",
]
