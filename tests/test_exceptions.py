"""
Snippetbox - Exception Hierarchy Tests
=======================================

What we test:
    ✅ Subclasses add their identifying fields to the context
    ✅ A caller's context dict is copied, never written to
"""

import pytest

from snippetbox.exceptions import (
    DuplicateEmailError,
    FormDecodeError,
    NoRecordError,
    SnippetboxError,
    TemplateNotFoundError,
)


def test_no_record_context():
    exc = NoRecordError("snippet", 42)

    assert isinstance(exc, SnippetboxError)
    assert exc.context == {"resource": "snippet", "resource_id": 42}
    assert "42" in exc.message


@pytest.mark.parametrize(
    "build, added",
    [
        (lambda ctx: NoRecordError("snippet", 42, context=ctx), "resource_id"),
        (lambda ctx: DuplicateEmailError("a@example.com", context=ctx), "email"),
        (lambda ctx: FormDecodeError(errors=["bad"], context=ctx), "errors"),
        (lambda ctx: TemplateNotFoundError("x.html", context=ctx), "page"),
    ],
)
def test_caller_context_is_not_mutated(build, added):
    caller_ctx = {"query": "select"}

    exc = build(caller_ctx)

    assert caller_ctx == {"query": "select"}
    assert exc.context["query"] == "select"
    assert added in exc.context
