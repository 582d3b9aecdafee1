"""
Snippetbox — Snippet Service (Data Access)
===========================================

What:  Inserts and reads snippets.
Who:   Called by the home and snippet route handlers.

Expiry:
    A snippet is stored with an absolute `expires` timestamp. Every read
    filters on `expires > now`, so an expired snippet behaves exactly like a
    missing one. Nothing ever deletes rows.

Design Decision:
    SnippetService is stateless: it receives the db session for each call,
    so a single module-level instance is shared by all requests.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.exceptions import DatabaseError, NotFoundError
from snippetbox.models.snippet import Snippet

logger = logging.getLogger(__name__)

# Number of snippets shown on the home page
LATEST_LIMIT = 10


class SnippetService:
    """
    Data access for snippets.

    Responsibilities:
        - insert(): store a new snippet, returning its ID
        - get(): fetch one unexpired snippet
        - latest(): the most recent unexpired snippets
    """

    async def insert(
        self,
        db: AsyncSession,
        title: str,
        content: str,
        expires_days: int,
    ) -> int:
        """
        Store a snippet that expires `expires_days` days from now.

        Returns:
            The new snippet's ID

        Raises:
            DatabaseError: The insert failed
        """
        now = datetime.now(timezone.utc)
        snippet = Snippet(
            title=title,
            content=content,
            created=now,
            expires=now + timedelta(days=expires_days),
        )
        try:
            db.add(snippet)
            await db.flush()  # Assigns the ID without committing
        except SQLAlchemyError as e:
            raise DatabaseError(
                message="Could not save the snippet.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Snippet %d created, expires in %d days", snippet.id, expires_days)
        return snippet.id

    async def get(self, db: AsyncSession, snippet_id: int) -> Snippet:
        """
        Fetch a snippet by ID.

        Raises:
            NotFoundError: No snippet with that ID, or it has expired
            DatabaseError: Query execution failed
        """
        try:
            result = await db.execute(
                select(Snippet).where(
                    Snippet.id == snippet_id,
                    Snippet.expires > datetime.now(timezone.utc),
                )
            )
            snippet = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseError(
                message="Could not retrieve the snippet.",
                context={"snippet_id": snippet_id},
            ) from e

        if snippet is None:
            raise NotFoundError(resource="snippet", resource_id=snippet_id)
        return snippet

    async def latest(self, db: AsyncSession, limit: int = LATEST_LIMIT) -> List[Snippet]:
        """Return up to `limit` unexpired snippets, newest first."""
        try:
            result = await db.execute(
                select(Snippet)
                .where(Snippet.expires > datetime.now(timezone.utc))
                .order_by(desc(Snippet.id))
                .limit(limit)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseError(
                message="Could not retrieve snippets.",
                context={"error_type": type(e).__name__},
            ) from e


# ── Singleton Instance ────────────────────────────────────────────────────
snippet_service = SnippetService()
