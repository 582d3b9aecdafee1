"""
Snippetbox — User SQLAlchemy Model
===================================

What:  ORM model representing the `users` table.
Who:   Used by UserService for signup, login and password changes.

Email uniqueness is enforced by the database (constraint `users_uc_email`),
not by a read-before-write check, so two concurrent signups with the same
address cannot both succeed.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base


class User(Base):
    """A registered account. Passwords are only ever stored as hashes."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Stored trimmed and lower-cased (see UserService)
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # argon2 encoded hash, including algorithm parameters and salt
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("email", name="users_uc_email"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
