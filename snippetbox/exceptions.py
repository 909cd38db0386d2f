"""
Snippetbox - Custom Exception Hierarchy
========================================

What:  Application-specific exceptions for the different failure scenarios.
Why:   Lower layers return typed conditions instead of raw driver errors, so
       the request pipeline never depends on datastore-specific error shapes.
How:   Each exception carries a message and optional context dict. Handlers
       turn them into responses through `snippetbox.responders`.

Exception Hierarchy:
    SnippetboxError (base, recoverable)
    ├── ModelError                     expected persistence outcomes
    │   ├── NoRecordError              → 404 Not Found
    │   ├── InvalidCredentialsError    → 422 form re-render
    │   └── DuplicateEmailError        → 422 form re-render
    ├── DatabaseError                  → 500 Internal Server Error
    ├── FormDecodeError                → 400 Bad Request
    └── TemplateNotFoundError          → 500 Internal Server Error

    DefectError (programmer errors, fatal to the request)
    ├── InvalidDecodeTargetError
    └── MissingContextValueError

Design Decision:
    DefectError deliberately does NOT inherit from SnippetboxError. Handlers
    catch SnippetboxError subclasses to pick a response; a defect must never
    be mistaken for bad user input, so it escapes every handler and ends in
    the recovery middleware (500, connection closed, traceback logged).
"""

from typing import Any, Dict, Optional


class SnippetboxError(Exception):
    """
    Base exception for all recoverable Snippetbox errors.

    Attributes:
        message:  Description of the failure (logged, never sent to clients)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ModelError(SnippetboxError):
    """Expected, non-exceptional outcome of a persistence call."""


class NoRecordError(ModelError):
    """
    Raised when a requested record does not exist (or has expired).

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so handlers can answer 404 instead of 500.
    """

    def __init__(
        self,
        resource: str = "record",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"no matching {resource} found"
        ctx = dict(context or {})
        ctx["resource"] = resource
        if resource_id is not None:
            message = f"no {resource} with ID '{resource_id}'"
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class InvalidCredentialsError(ModelError):
    """Raised when an email/password pair does not match a user."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="invalid credentials", context=context)


class DuplicateEmailError(ModelError):
    """Raised when signing up with an email address that is already taken."""

    def __init__(self, email: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        ctx = dict(context or {})
        if email:
            ctx["email"] = email
        super().__init__(message="duplicate email", context=ctx)


class DatabaseError(SnippetboxError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        Details (SQL, constraint names) live in `context` and the log only.
    """

    def __init__(
        self,
        message: str = "A database error occurred.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FormDecodeError(SnippetboxError):
    """
    Raised when a submitted form cannot be converted into its form model.

    Ordinary bad input (wrong types, unparsable numbers): the caller answers
    400 Bad Request.
    """

    def __init__(
        self,
        message: str = "the submitted form could not be decoded",
        errors: Optional[list] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(context or {})
        if errors:
            ctx["errors"] = errors
        super().__init__(message=message, context=ctx)
        self.errors = errors or []


class TemplateNotFoundError(SnippetboxError):
    """Raised when rendering a page key that was never registered."""

    def __init__(self, page: str, context: Optional[Dict[str, Any]] = None):
        ctx = dict(context or {})
        ctx["page"] = page
        super().__init__(message=f"the template {page} does not exist", context=ctx)
        self.page = page


class DefectError(Exception):
    """
    Root of programmer errors.

    A DefectError signals a deployment or coding defect rather than bad
    input. It is never converted into a client error; it aborts the request
    and is reported by the recovery middleware.
    """


class InvalidDecodeTargetError(DefectError):
    """Raised when a form is decoded into something that is not a form model."""

    def __init__(self, target: Any):
        self.target = target
        super().__init__(
            f"cannot decode a form into {target!r}: target must be a pydantic BaseModel subclass"
        )


class MissingContextValueError(DefectError):
    """Raised when a request-scoped value is read before any stage set it."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"request context value {key!r} was read before being set")
