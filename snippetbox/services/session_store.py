"""
Snippetbox - SQL Session Store
===============================

What:  Persists session values keyed by the token carried in the cookie.
Why:   Server-side sessions can be revoked (logout, token renewal) and never
       expose their values to the client.
How:   One `sessions` row per token; `data` is a JSON object; rows past
       `expiry` are ignored by `find()` and swept by `delete_expired()`.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from snippetbox.database import with_deadline
from snippetbox.exceptions import DatabaseError
from snippetbox.models.session import SessionRecord

logger = logging.getLogger(__name__)


class StoredSession(NamedTuple):
    values: Dict[str, Any]
    expiry: datetime


class SqlSessionStore:
    """Session store backed by the application database."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        query_timeout: float = 5.0,
    ):
        self._session_factory = session_factory
        self._query_timeout = query_timeout

    async def find(self, token: str) -> Optional[StoredSession]:
        """Return the stored session for `token`, or None if missing or expired."""
        return await with_deadline(self._find(token), self._query_timeout, "session find")

    async def _find(self, token: str) -> Optional[StoredSession]:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(SessionRecord.data, SessionRecord.expiry).where(
                        SessionRecord.token == token,
                        SessionRecord.expiry > now,
                    )
                )
                row = result.one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error loading session: %s", str(e))
            raise DatabaseError(message="could not load session") from e

        if row is None:
            return None
        data, expiry = row
        # SQLite hands back naive datetimes; everything is stored in UTC
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return StoredSession(values=json.loads(data), expiry=expiry)

    async def commit(self, token: str, values: Dict[str, Any], expiry: datetime) -> None:
        """Insert or replace the row for `token`."""
        await with_deadline(self._commit(token, values, expiry), self._query_timeout, "session commit")

    async def _commit(self, token: str, values: Dict[str, Any], expiry: datetime) -> None:
        record = SessionRecord(token=token, data=json.dumps(values), expiry=expiry)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.merge(record)
        except SQLAlchemyError as e:
            logger.error("Database error saving session: %s", str(e))
            raise DatabaseError(message="could not save session") from e

    async def delete(self, token: str) -> None:
        await with_deadline(self._delete(token), self._query_timeout, "session delete")

    async def _delete(self, token: str) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(delete(SessionRecord).where(SessionRecord.token == token))
        except SQLAlchemyError as e:
            logger.error("Database error deleting session: %s", str(e))
            raise DatabaseError(message="could not delete session") from e

    async def delete_expired(self) -> int:
        """Remove every expired row. Returns the number of rows deleted."""
        return await with_deadline(self._delete_expired(), self._query_timeout, "session sweep")

    async def _delete_expired(self) -> int:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        delete(SessionRecord).where(SessionRecord.expiry < now)
                    )
                    return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error("Database error sweeping sessions: %s", str(e))
            raise DatabaseError(message="could not sweep sessions") from e
