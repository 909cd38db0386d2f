"""
Snippetbox - User Service (persistence collaborator)
=====================================================

What:  Signup, credential checks, existence checks and password changes.
Why:   Keeps password hashing and unique-email handling out of handlers.
How:   passlib CryptContext hashes passwords; hashing runs in a worker
       thread so a slow hash does not stall other requests on the loop.

Error Contract:
    insert()            → DuplicateEmailError when the email is taken
    authenticate()      → InvalidCredentialsError for unknown email or bad password
    get()               → NoRecordError when the user does not exist
    update_password()   → InvalidCredentialsError when the current password is wrong
    any driver failure  → DatabaseError
"""

import asyncio
import logging
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from snippetbox.database import with_deadline
from snippetbox.exceptions import (
    DatabaseError,
    DuplicateEmailError,
    InvalidCredentialsError,
    NoRecordError,
)
from snippetbox.models.user import User

logger = logging.getLogger(__name__)

# pbkdf2_sha256 is pure Python in passlib, no native backend to pin
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class UserService:
    """Persistence operations for user accounts."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        query_timeout: float = 5.0,
        password_context: Optional[CryptContext] = None,
    ):
        self._session_factory = session_factory
        self._query_timeout = query_timeout
        self._pwd_context = password_context or pwd_context

    async def insert(self, name: str, email: str, password: str) -> int:
        """
        Create a user with a hashed password.

        Raises:
            DuplicateEmailError: the email address is already registered.
        """
        return await with_deadline(
            self._insert(name, email, password), self._query_timeout, "user insert"
        )

    async def _insert(self, name: str, email: str, password: str) -> int:
        hashed = await asyncio.to_thread(self._pwd_context.hash, password)
        user = User(name=name, email=email, hashed_password=hashed)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(user)
                    await session.flush()
                    user_id = user.id
        except IntegrityError as e:
            # Both PostgreSQL ("users_uc_email") and SQLite ("users.email")
            # name the column or constraint in the driver message
            if "email" in str(e.orig):
                raise DuplicateEmailError(email=email) from e
            logger.error("Integrity error inserting user: %s", str(e))
            raise DatabaseError(message="could not insert user") from e
        except SQLAlchemyError as e:
            logger.error("Database error inserting user: %s", str(e))
            raise DatabaseError(message="could not insert user") from e

        logger.info("User %d signed up", user_id)
        return user_id

    async def authenticate(self, email: str, password: str) -> int:
        """
        Check an email/password pair.

        Returns:
            The matching user's ID.

        Raises:
            InvalidCredentialsError: unknown email or wrong password.
        """
        return await with_deadline(
            self._authenticate(email, password), self._query_timeout, "user authenticate"
        )

    async def _authenticate(self, email: str, password: str) -> int:
        user = await self._find_by_email(email)
        if user is None:
            raise InvalidCredentialsError()

        matches = await asyncio.to_thread(self._pwd_context.verify, password, user.hashed_password)
        if not matches:
            raise InvalidCredentialsError(context={"user_id": user.id})
        return user.id

    async def exists(self, user_id: int) -> bool:
        """Return True when a user with this ID exists."""
        return await with_deadline(self._exists(user_id), self._query_timeout, "user exists")

    async def _exists(self, user_id: int) -> bool:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(User.id).where(User.id == user_id))
                return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            logger.error("Database error checking user %s: %s", user_id, str(e))
            raise DatabaseError(message="could not check user", context={"user_id": user_id}) from e

    async def get(self, user_id: int) -> User:
        """
        Fetch one user for the account page.

        Raises:
            NoRecordError: no user with this ID.
        """
        return await with_deadline(self._get(user_id), self._query_timeout, "user get")

    async def _get(self, user_id: int) -> User:
        try:
            async with self._session_factory() as session:
                user = await session.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(message="could not retrieve user", context={"user_id": user_id}) from e

        if user is None:
            raise NoRecordError(resource="user", resource_id=user_id)
        return user

    async def update_password(self, user_id: int, current_password: str, new_password: str) -> None:
        """
        Replace a user's password after checking the current one.

        Raises:
            InvalidCredentialsError: current password does not match.
            NoRecordError: no user with this ID.
        """
        await with_deadline(
            self._update_password(user_id, current_password, new_password),
            self._query_timeout,
            "user update password",
        )

    async def _update_password(self, user_id: int, current_password: str, new_password: str) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    user = await session.get(User, user_id)
                    if user is None:
                        raise NoRecordError(resource="user", resource_id=user_id)

                    matches = await asyncio.to_thread(
                        self._pwd_context.verify, current_password, user.hashed_password
                    )
                    if not matches:
                        raise InvalidCredentialsError(context={"user_id": user_id})

                    user.hashed_password = await asyncio.to_thread(self._pwd_context.hash, new_password)
        except SQLAlchemyError as e:
            logger.error("Database error updating password for user %s: %s", user_id, str(e))
            raise DatabaseError(message="could not update password", context={"user_id": user_id}) from e

        logger.info("User %d changed their password", user_id)

    async def _find_by_email(self, email: str) -> Optional[User]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(User).where(User.email == email))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up user by email: %s", str(e))
            raise DatabaseError(message="could not look up user") from e
