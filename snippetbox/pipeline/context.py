"""
Snippetbox - Request-Scoped Context
====================================

What:  Typed key/value entries that live exactly as long as one request.
Why:   Middleware hands values to later stages (authentication flag, CSRF
       token, loaded session) without globals and without untyped lookups.
How:   Values are stored in a dict inside the ASGI scope, which Starlette
       shares between every Request object built for the same request.

Invariant:
    A key must be set by an earlier stage before anything reads it. Reading
    an unset key without a default is a wiring defect and raises
    MissingContextValueError.

Usage:
    IS_AUTHENTICATED.set(request, True)
    if IS_AUTHENTICATED.get(request, False): ...
"""

from typing import Any, Dict, Generic, TypeVar, Union

from starlette.requests import HTTPConnection

from snippetbox.exceptions import MissingContextValueError

T = TypeVar("T")

SCOPE_KEY = "snippetbox.context"


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


_MISSING: Any = _Missing()


def _values(request: HTTPConnection) -> Dict["ContextKey[Any]", Any]:
    return request.scope.setdefault(SCOPE_KEY, {})


class ContextKey(Generic[T]):
    """A named, typed slot in the request context."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def set(self, request: HTTPConnection, value: T) -> None:
        _values(request)[self] = value

    def get(self, request: HTTPConnection, default: Union[T, Any] = _MISSING) -> T:
        try:
            return _values(request)[self]
        except KeyError:
            if default is _MISSING:
                raise MissingContextValueError(self.name) from None
            return default

    def is_set(self, request: HTTPConnection) -> bool:
        return self in _values(request)

    def __repr__(self) -> str:
        return f"ContextKey({self.name!r})"


IS_AUTHENTICATED: ContextKey[bool] = ContextKey("is_authenticated")
CSRF_TOKEN: ContextKey[str] = ContextKey("csrf_token")
# Holds a snippetbox.sessions.SessionData; typed loosely to avoid an import cycle
SESSION: ContextKey[Any] = ContextKey("session")
# Headers a stage has committed to before delegating; recovery copies them
# onto any response it has to build in place of the real one
STAGED_HEADERS: ContextKey[Dict[str, str]] = ContextKey("staged_headers")


def stage_headers(request: HTTPConnection, headers: Dict[str, str]) -> None:
    if not STAGED_HEADERS.is_set(request):
        STAGED_HEADERS.set(request, {})
    STAGED_HEADERS.get(request).update(headers)
