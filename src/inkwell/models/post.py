# src/inkwell/models/post.py
"""SQLAlchemy model for blog posts."""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inkwell.core.settings import settings
from inkwell.db.session import Base
from inkwell.db.time import as_utc, utcnow

if TYPE_CHECKING:
    from .user import User

POST_STATUS_DRAFT = "draft"
POST_STATUS_PUBLISHED = "published"
POST_STATUS_ARCHIVED = "archived"
POST_STATUSES = (POST_STATUS_DRAFT, POST_STATUS_PUBLISHED, POST_STATUS_ARCHIVED)
SLUG_MAX_LENGTH = 255

_TAG_RE = re.compile(r"<[^>]+>")
_WORD_RE = re.compile(r"[A-Za-z'-]+")


class Post(Base):
    """A blog entry owned by exactly one account.

    The slug is unique across all posts and stays fixed once assigned so that
    URLs remain stable. ``published_at`` is only meaningful while the post is
    published or archived; unpublishing clears it.
    """

    __tablename__ = "blog_posts"
    __table_args__ = (
        CheckConstraint(
            f"status IN ({', '.join(repr(s) for s in POST_STATUSES)})",
            name="ck_blog_posts_status",
        ),
        Index("ix_blog_posts_user_id_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Owner is set once at creation; no update path writes it.
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(
        String(SLUG_MAX_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=POST_STATUS_DRAFT,
        server_default=POST_STATUS_DRAFT,
        index=True,
    )
    featured_image: Mapped[str | None] = mapped_column(String(255), nullable=True)
    meta_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )
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

    owner: Mapped[User] = relationship("User", back_populates="posts")

    @property
    def is_published(self) -> bool:
        """Return True if the post is publicly visible right now."""
        return (
            self.status == POST_STATUS_PUBLISHED
            and self.published_at is not None
            and as_utc(self.published_at) <= utcnow()
        )

    @property
    def reading_time(self) -> str:
        """Estimate reading time from the tag-stripped word count."""
        words = len(_WORD_RE.findall(_TAG_RE.sub(" ", self.content or "")))
        minutes = math.ceil(words / settings.reading_words_per_minute)
        return "1 min read" if minutes == 1 else f"{minutes} min read"

    @property
    def published_date(self) -> str:
        """Return the publication date formatted for display."""
        if self.published_at is None:
            return "Not published"
        published = as_utc(self.published_at)
        return f"{published:%B} {published.day}, {published.year}"

    @property
    def author_name(self) -> str | None:
        """Return the owner's display name when the relationship is loaded."""
        return self.owner.name if self.owner is not None else None
