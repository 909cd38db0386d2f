"""
Snippetbox - Snippet SQLAlchemy Model
======================================

What:  ORM model representing the `snippets` table.
How:   Inherits from the shared DeclarativeBase; Alembic reads it for migrations.
Who:   Used by SnippetService for inserts and lookups.

Table Design Rationale:
    - Integer primary key: snippet URLs are /snippet/view/{id}
    - expires: absolute UTC deadline; expired rows are never served but are
      kept in the table (no background deletion)
    - Index on created: the home page lists the latest snippets first
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Snippet(Base):
    """
    A short piece of text with an expiry date.

    Lifecycle:
        1. Created by an authenticated user with expires = now + N days
        2. Served by /snippet/view/{id} while expires > now
        3. Never updated; invisible once expired
    """

    __tablename__ = "snippets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Why 100: matches the form validation limit on titles
    title: Mapped[str] = mapped_column(String(100), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    expires: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_snippets_created", "created"),
    )

    def __repr__(self) -> str:
        return f"<Snippet(id={self.id}, title='{self.title}', expires='{self.expires}')>"
