"""
Snippetbox - ORM Models
========================

What:  SQLAlchemy models for the `snippets`, `users` and `sessions` tables.
Why:   Imported together so Alembic and `Base.metadata` see every table.
"""

from snippetbox.models.session import SessionRecord
from snippetbox.models.snippet import Snippet
from snippetbox.models.user import User

__all__ = ["SessionRecord", "Snippet", "User"]
