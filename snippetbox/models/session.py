"""
Snippetbox - Session SQLAlchemy Model
======================================

What:  Server-side storage for client sessions.
How:   The client only holds a random token in a cookie; the session values
       live here, JSON encoded, until `expiry`.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base


class SessionRecord(Base):
    __tablename__ = "sessions"

    # 43 chars = base64url of 32 random bytes
    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[str] = mapped_column(Text, nullable=False)
    expiry: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_sessions_expiry", "expiry"),
    )
