# Middleware package init
"""
Snippetbox - Middleware Package
================================

What:  Cross-cutting behaviour composed with `snippetbox.pipeline.Chain`.

Standard chain (wraps the whole router, every request):
    Request → [Recover] → [Log] → [Security headers] → Router

    1. Recover FIRST: covers faults raised by every later stage
    2. Log: records the request even if a later stage short-circuits
    3. Security headers: applied to every response the router produces

Per-route chains:
    dynamic   = [Session load/save] → [CSRF] → [Authenticate]
    protected = dynamic + [Require authentication]

Responses unwind in exact reverse order.
"""

from snippetbox.middleware.auth import authenticate, require_authentication
from snippetbox.middleware.csrf import CsrfProtect
from snippetbox.middleware.logging import log_request
from snippetbox.middleware.recover import recover_panic
from snippetbox.middleware.security_headers import SECURITY_HEADERS, secure_headers
from snippetbox.pipeline.chain import Chain


def standard_chain() -> Chain:
    """The process-wide chain, outermost first."""
    return Chain(recover_panic, log_request, secure_headers)


__all__ = [
    "CsrfProtect",
    "SECURITY_HEADERS",
    "authenticate",
    "log_request",
    "recover_panic",
    "require_authentication",
    "secure_headers",
    "standard_chain",
]
