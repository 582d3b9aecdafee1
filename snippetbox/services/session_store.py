"""
Snippetbox — Session Store (Data Access)
=========================================

What:  Persists session data in the `sessions` table, keyed by token.
Who:   Called by ServerSessionMiddleware once when a request arrives (find) and
       once before the response goes out (commit / delete). The lifespan
       runs `delete_expired` periodically.
How:   Every call opens its own short AsyncSession and commits it, so the
       session is saved even when the request's own transaction rolls back.

Expired rows are never returned by `find`; `delete_expired` only reclaims
the space.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from snippetbox.exceptions import DatabaseError
from snippetbox.models.session import SessionRecord

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Data access for server-side sessions.

    Responsibilities:
        - find(): data and expiry for a live token
        - commit(): insert or replace a session
        - delete(): end a session immediately
        - delete_expired(): purge rows past their expiry
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def find(self, token: str) -> Optional[Tuple[Dict[str, Any], datetime]]:
        """
        Look up an unexpired session.

        Returns:
            (data, expiry), or None for unknown and expired tokens
        """
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(SessionRecord).where(
                        SessionRecord.token == token,
                        SessionRecord.expiry > datetime.now(timezone.utc),
                    )
                )
                record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseError(
                message="Could not load the session.",
                context={"error_type": type(e).__name__},
            ) from e

        if record is None:
            return None

        expiry = record.expiry
        # SQLite hands back naive datetimes
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return json.loads(record.data), expiry

    async def commit(self, token: str, data: Dict[str, Any], expiry: datetime) -> None:
        try:
            async with self.session_factory() as db:
                await db.merge(
                    SessionRecord(token=token, data=json.dumps(data), expiry=expiry)
                )
                await db.commit()
        except SQLAlchemyError as e:
            raise DatabaseError(
                message="Could not save the session.",
                context={"error_type": type(e).__name__},
            ) from e

    async def delete(self, token: str) -> None:
        try:
            async with self.session_factory() as db:
                await db.execute(delete(SessionRecord).where(SessionRecord.token == token))
                await db.commit()
        except SQLAlchemyError as e:
            raise DatabaseError(
                message="Could not delete the session.",
                context={"error_type": type(e).__name__},
            ) from e

    async def delete_expired(self) -> int:
        """Remove every expired session. Returns the number of rows deleted."""
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    delete(SessionRecord).where(
                        SessionRecord.expiry <= datetime.now(timezone.utc)
                    )
                )
                await db.commit()
        except SQLAlchemyError as e:
            raise DatabaseError(
                message="Could not purge expired sessions.",
                context={"error_type": type(e).__name__},
            ) from e

        if result.rowcount:
            logger.info("Purged %d expired sessions", result.rowcount)
        return result.rowcount
