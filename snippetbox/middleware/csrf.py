"""
Snippetbox - CSRF Protection
=============================

What:  Double-submit CSRF protection for HTML forms.
Why:   A third-party page must not be able to make a logged-in browser
       submit forms to us.
How:   A random 32-byte base token lives in an HttpOnly cookie. Every
       response gets a masked copy (one-time pad XOR token) to embed in
       forms; state-changing requests must send a masked token that unmasks
       to the cookie's token.

Why mask the form token:
    The value in the page changes on every response while the secret stays
    the same, so compression side channels (BREACH) cannot recover it.

Verification rules (non-safe methods only):
    - token read from the X-CSRF-Token header, else the `csrf_token` form field
    - missing cookie, missing token, or mismatch → 400 Bad Request
    - GET/HEAD/OPTIONS/TRACE are never checked
"""

import base64
import binascii
import logging
import secrets
from http import HTTPStatus
from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

from snippetbox.pipeline.chain import Handler
from snippetbox.pipeline.context import CSRF_TOKEN
from snippetbox.responders import client_error

logger = logging.getLogger(__name__)

TOKEN_LENGTH = 32
SAFE_METHODS = {"GET", "HEAD", "OPTIONS", "TRACE"}


def _xor(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


def mask_token(token: bytes) -> str:
    """Return a fresh masked, base64url-encoded form of `token`."""
    pad = secrets.token_bytes(TOKEN_LENGTH)
    return base64.urlsafe_b64encode(pad + _xor(pad, token)).decode("ascii")


def unmask_token(masked: str) -> Optional[bytes]:
    """Recover the base token from `masked`, or None if it is malformed."""
    try:
        raw = base64.urlsafe_b64decode(masked.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError, ValueError):
        return None
    if len(raw) != TOKEN_LENGTH * 2:
        return None
    return _xor(raw[:TOKEN_LENGTH], raw[TOKEN_LENGTH:])


def verify_token(real: bytes, submitted: Optional[str]) -> bool:
    if not submitted:
        return False
    unmasked = unmask_token(submitted)
    if unmasked is None:
        return False
    return secrets.compare_digest(real, unmasked)


class CsrfProtect:
    """
    CSRF middleware plus the token accessor used by templates.

    Attributes:
        secure:       mark the cookie Secure (HTTPS only)
        cookie_name:  cookie holding the base token
        field_name:   hidden form field carrying the masked token
        header_name:  header alternative for scripted requests
    """

    def __init__(
        self,
        secure: bool = True,
        cookie_name: str = "csrf_token",
        field_name: str = "csrf_token",
        header_name: str = "X-CSRF-Token",
        max_age: int = 365 * 24 * 60 * 60,
    ):
        self.secure = secure
        self.cookie_name = cookie_name
        self.field_name = field_name
        self.header_name = header_name
        self.max_age = max_age

    def protect(self, next: Handler) -> Handler:
        async def verify_csrf(request: Request) -> Response:
            real = self._cookie_token(request)
            issue_cookie = real is None
            if real is None:
                real = secrets.token_bytes(TOKEN_LENGTH)

            CSRF_TOKEN.set(request, mask_token(real))

            if request.method not in SAFE_METHODS:
                submitted = await self._submitted_token(request)
                if issue_cookie or not verify_token(real, submitted):
                    logger.warning(
                        "CSRF verification failed for %s %s", request.method, request.url.path
                    )
                    response = client_error(HTTPStatus.BAD_REQUEST)
                    self._set_cookie(response, real)
                    return response

            response = await next(request)
            if issue_cookie:
                self._set_cookie(response, real)
            response.headers.add_vary_header("Cookie")
            return response

        return verify_csrf

    def token(self, request: Request) -> str:
        """Masked token for embedding in a form rendered for this request."""
        return CSRF_TOKEN.get(request)

    def _cookie_token(self, request: Request) -> Optional[bytes]:
        value = request.cookies.get(self.cookie_name)
        if not value:
            return None
        try:
            token = base64.urlsafe_b64decode(value.encode("ascii"))
        except (binascii.Error, UnicodeEncodeError, ValueError):
            return None
        return token if len(token) == TOKEN_LENGTH else None

    async def _submitted_token(self, request: Request) -> Optional[str]:
        header = request.headers.get(self.header_name)
        if header:
            return header
        form = await request.form()
        value = form.get(self.field_name)
        return value if isinstance(value, str) else None

    def _set_cookie(self, response: Response, token: bytes) -> None:
        response.set_cookie(
            self.cookie_name,
            base64.urlsafe_b64encode(token).decode("ascii"),
            max_age=self.max_age,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )
