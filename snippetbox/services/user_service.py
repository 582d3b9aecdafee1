"""
Snippetbox — User Service (Data Access)
========================================

What:  Signup, credential checks, lookups and password changes for users.
Who:   Called by the user/account route handlers and the authenticate dependency.

Email handling:
    Addresses are trimmed and lower-cased before they are stored or looked
    up, so "Alice@Example.com" and "alice@example.com" are the same account.

Error Handling Strategy:
    Expected outcomes (duplicate email, bad credentials, missing user) are
    raised as their own exception types so handlers can turn them into form
    errors or redirects. Anything else from SQLAlchemy becomes DatabaseError.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.auth_utils import hash_password, verify_password
from snippetbox.exceptions import (
    DatabaseError,
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
)
from snippetbox.models.user import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Data access for users. Stateless; receives the db session per call."""

    async def insert(self, db: AsyncSession, name: str, email: str, password: str) -> int:
        """
        Create a user with a hashed password.

        Returns:
            The new user's ID

        Raises:
            DuplicateEmailError: The email address is already registered
            DatabaseError: Any other database failure
        """
        email = normalize_email(email)
        user = User(
            name=name,
            email=email,
            hashed_password=hash_password(password),
        )
        try:
            db.add(user)
            await db.flush()
        except IntegrityError as e:
            # The failed flush leaves the transaction unusable until rolled back
            await db.rollback()
            if "users_uc_email" in str(e.orig) or "users.email" in str(e.orig):
                logger.info("Signup rejected: duplicate email")
                raise DuplicateEmailError(email=email)
            raise DatabaseError(
                message="Could not create the account.",
                context={"error_type": type(e).__name__},
            ) from e
        except SQLAlchemyError as e:
            raise DatabaseError(
                message="Could not create the account.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("User %d signed up", user.id)
        return user.id

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> int:
        """
        Check an email/password pair.

        Returns:
            The matching user's ID

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
        """
        user = await self._get_by_email(db, normalize_email(email))
        if user is None or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError()
        return user.id

    async def exists(self, db: AsyncSession, user_id: int) -> bool:
        try:
            result = await db.execute(select(User.id).where(User.id == user_id))
            return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            raise DatabaseError(context={"user_id": user_id}) from e

    async def get(self, db: AsyncSession, user_id: int) -> User:
        """
        Fetch a user by ID.

        Raises:
            NotFoundError: No such user (e.g. deleted while logged in)
        """
        try:
            result = await db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseError(context={"user_id": user_id}) from e

        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        return user

    async def update_password(
        self,
        db: AsyncSession,
        user_id: int,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Replace a user's password after verifying the current one.

        Raises:
            NotFoundError: No such user
            InvalidCredentialsError: `current_password` is wrong
        """
        user = await self.get(db, user_id)
        if not verify_password(current_password, user.hashed_password):
            raise InvalidCredentialsError(context={"user_id": user_id})

        user.hashed_password = hash_password(new_password)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            raise DatabaseError(context={"user_id": user_id}) from e
        logger.info("Password updated for user %d", user_id)

    async def _get_by_email(self, db: AsyncSession, email: str):
        try:
            result = await db.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseError(context={"error_type": type(e).__name__}) from e


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
