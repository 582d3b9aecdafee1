"""
Snippetbox — Session SQLAlchemy Model
======================================

What:  ORM model representing the `sessions` table.
Who:   Used only by SessionStore; handlers see the session as a plain dict.

Each row is one browser session: an opaque random token, the session data
as JSON, and an absolute expiry. The token in the browser's cookie is the
only link to the row, so deleting the row ends the session no matter who
still holds a copy of the cookie.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base


class SessionRecord(Base):
    __tablename__ = "sessions"

    # secrets.token_urlsafe(32) is always 43 characters
    token: Mapped[str] = mapped_column(String(43), primary_key=True)

    data: Mapped[str] = mapped_column(Text, nullable=False)

    expiry: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_sessions_expiry", "expiry"),
    )

    def __repr__(self) -> str:
        return f"<SessionRecord(expiry={self.expiry})>"
