"""
Snippetbox — Snippet SQLAlchemy Model
======================================

What:  ORM model representing the `snippets` table.
Who:   Used by SnippetService for inserts and reads.

Table Design Rationale:
    - Integer primary key: snippet URLs are /snippet/view/<id>
    - title: VARCHAR(100), matching the form's 100-character limit
    - expires: absolute UTC timestamp computed at insert time; rows past it
      are never returned, which is the only "deletion" snippets get
    - created index: the home page lists the latest snippets
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base


class Snippet(Base):
    """
    A stored piece of text content with an expiry.

    Lifecycle:
        1. Created by an authenticated user with a lifetime of 1, 7 or 365 days
        2. Readable by anyone until `expires`
        3. Invisible afterwards (rows are left in place)
    """

    __tablename__ = "snippets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(100), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    # All timestamps are stored in UTC
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    expires: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_snippets_created", "created"),
    )

    def __repr__(self) -> str:
        return f"<Snippet(id={self.id}, title='{self.title}', expires='{self.expires}')>"
