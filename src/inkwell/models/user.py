# src/inkwell/models/user.py
"""SQLAlchemy model for registered accounts."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inkwell.db.session import Base
from inkwell.db.time import as_utc, utcnow

if TYPE_CHECKING:
    from .post import Post


class User(Base):
    """An account that can log in and own blog posts."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Stored lower-cased so uniqueness is case-insensitive.
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    posts: Mapped[list[Post]] = relationship(
        "Post",
        back_populates="owner",
        passive_deletes=True,
    )

    @property
    def member_since(self) -> str:
        """Return the registration month, e.g. ``June 2025``."""
        return f"{as_utc(self.created_at):%B %Y}"
