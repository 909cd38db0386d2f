"""
Snippetbox - Snippet Service (persistence collaborator)
========================================================

What:  Insert, fetch and list snippets.
Why:   Handlers never touch SQLAlchemy directly; they get plain rows or the
       typed conditions from `snippetbox.exceptions`.
How:   Each call opens a short-lived session from the shared pool and runs
       under the configured deadline.

Query plans:
    get():    SELECT ... WHERE id = :id AND expires > :now        (primary key)
    latest(): SELECT ... WHERE expires > :now ORDER BY id DESC LIMIT :n
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from snippetbox.database import with_deadline
from snippetbox.exceptions import DatabaseError, NoRecordError
from snippetbox.models.snippet import Snippet

logger = logging.getLogger(__name__)


class SnippetService:
    """
    Persistence operations for snippets.

    Error Handling Strategy:
        Missing or expired rows → NoRecordError (404 upstream).
        Driver failures and deadline expiry → DatabaseError (500 upstream).
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        query_timeout: float = 5.0,
    ):
        self._session_factory = session_factory
        self._query_timeout = query_timeout

    async def insert(self, title: str, content: str, expires_days: int) -> int:
        """
        Store a new snippet that expires `expires_days` from now.

        Returns:
            The new snippet's ID.
        """
        return await with_deadline(
            self._insert(title, content, expires_days),
            self._query_timeout,
            "snippet insert",
        )

    async def _insert(self, title: str, content: str, expires_days: int) -> int:
        now = datetime.now(timezone.utc)
        snippet = Snippet(
            title=title,
            content=content,
            created=now,
            expires=now + timedelta(days=expires_days),
        )
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(snippet)
                    await session.flush()
                    snippet_id = snippet.id
        except SQLAlchemyError as e:
            logger.error("Database error inserting snippet: %s", str(e))
            raise DatabaseError(
                message="could not insert snippet",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Snippet %d created (expires in %d days)", snippet_id, expires_days)
        return snippet_id

    async def get(self, snippet_id: int) -> Snippet:
        """
        Fetch one unexpired snippet.

        Raises:
            NoRecordError: no snippet with this ID, or it has expired.
            DatabaseError: query execution failed.
        """
        return await with_deadline(self._get(snippet_id), self._query_timeout, "snippet get")

    async def _get(self, snippet_id: int) -> Snippet:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Snippet).where(Snippet.id == snippet_id, Snippet.expires > now)
                )
                snippet = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching snippet %s: %s", snippet_id, str(e))
            raise DatabaseError(
                message="could not retrieve snippet",
                context={"snippet_id": snippet_id},
            ) from e

        if snippet is None:
            raise NoRecordError(resource="snippet", resource_id=snippet_id)
        return snippet

    async def latest(self, limit: int = 10) -> List[Snippet]:
        """Return up to `limit` unexpired snippets, most recently created first."""
        return await with_deadline(self._latest(limit), self._query_timeout, "snippet latest")

    async def _latest(self, limit: int) -> List[Snippet]:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Snippet)
                    .where(Snippet.expires > now)
                    .order_by(Snippet.id.desc())
                    .limit(limit)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing snippets: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="could not list snippets",
                context={"error_type": type(e).__name__},
            ) from e
