"""
Snippetbox - Middleware Chain
==============================

What:  Ordered, immutable composition of middleware around a terminal handler.
Why:   Every route declares exactly which cross-cutting behaviour wraps it,
       and the order is visible in one place instead of spread over nested
       calls.
How:   A middleware is a callable taking the next handler and returning a
       handler. `Chain(m1, m2, m3).then(h)` is `m1(m2(m3(h)))`:

           request → m1 → m2 → m3 → h
           response ← m1 ← m2 ← m3 ← h

Value Semantics:
    Chains store their middleware in a tuple. `append()` and `extend()`
    return new chains; the receiver never changes, so a base chain can be
    shared by many routes and specialised per route:

        dynamic = Chain(sessions.load_and_save, csrf.protect, authenticate)
        protected = dynamic.append(require_authentication)
"""

from typing import Awaitable, Callable, Iterator, Tuple

from starlette.requests import Request
from starlette.responses import Response

# The terminal unit of request logic
Handler = Callable[[Request], Awaitable[Response]]

# A transformation wrapping a handler with cross-cutting behaviour
Middleware = Callable[[Handler], Handler]


class Chain:
    """Immutable ordered sequence of middleware."""

    __slots__ = ("_middleware",)

    def __init__(self, *middleware: Middleware) -> None:
        for m in middleware:
            if not callable(m):
                raise TypeError(f"middleware must be callable, got {m!r}")
        self._middleware: Tuple[Middleware, ...] = tuple(middleware)

    def append(self, *middleware: Middleware) -> "Chain":
        """Return a new chain with `middleware` placed after the existing ones."""
        return Chain(*self._middleware, *middleware)

    def extend(self, other: "Chain") -> "Chain":
        """Return a new chain running this chain's middleware, then `other`'s."""
        return Chain(*self._middleware, *other._middleware)

    def then(self, handler: Handler) -> Handler:
        """
        Bind the terminal handler and return the composed handler.

        An empty chain returns `handler` itself, unwrapped.
        """
        if handler is None:
            raise TypeError("Chain.then() requires a handler")
        for m in reversed(self._middleware):
            handler = m(handler)
        return handler

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middleware)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Chain):
            return NotImplemented
        return self._middleware == other._middleware

    def __hash__(self) -> int:
        return hash(self._middleware)

    def __repr__(self) -> str:
        names = ", ".join(getattr(m, "__qualname__", repr(m)) for m in self._middleware)
        return f"Chain({names})"
