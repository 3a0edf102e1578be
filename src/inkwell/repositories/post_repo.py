"""Data access helpers for working with posts."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.orm import Session, selectinload

from inkwell.models.post import POST_STATUS_DRAFT, POST_STATUS_PUBLISHED, Post

__all__ = ["PostRepository", "visible_clause", "ORDERINGS", "MAX_POST_ID"]

# Largest value a signed 64-bit INTEGER primary key can hold.
MAX_POST_ID = 2**63 - 1

# Explicit orderings accepted by listing queries; every list names one.
ORDERINGS: dict[str, tuple[ColumnElement, ...]] = {
    "published_desc": (Post.published_at.desc(), Post.id.desc()),
    "published_asc": (Post.published_at.asc(), Post.id.asc()),
    "created_desc": (Post.created_at.desc(), Post.id.desc()),
    "created_asc": (Post.created_at.asc(), Post.id.asc()),
    "title_asc": (Post.title.asc(), Post.id.asc()),
}


def _escape_like(term: str) -> str:
    """Escape LIKE wildcards so ``term`` matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def visible_clause(as_of: datetime) -> ColumnElement[bool]:
    """Return the SQL form of the public visibility predicate."""
    return (
        (Post.status == POST_STATUS_PUBLISHED)
        & Post.published_at.is_not(None)
        & (Post.published_at <= as_of)
    )


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, post_id: int) -> Post | None:
        """Return a post by identifier."""
        if not 1 <= post_id <= MAX_POST_ID:
            return None
        return self.session.get(Post, post_id)

    def get_by_slug(self, slug: str) -> Post | None:
        """Return the post holding ``slug``."""
        result = self.session.execute(select(Post).where(Post.slug == slug))
        return result.scalars().first()

    def slug_exists(self, slug: str, exclude_post_id: int | None = None) -> bool:
        """Return True if another post already holds ``slug``."""
        stmt = select(Post.id).where(Post.slug == slug)
        if exclude_post_id is not None:
            stmt = stmt.where(Post.id != exclude_post_id)
        return self.session.execute(stmt.limit(1)).first() is not None

    def list_visible(
        self,
        *,
        as_of: datetime,
        order: str,
        offset: int,
        limit: int,
        search: str | None = None,
    ) -> tuple[list[Post], int]:
        """Return one page of visible posts and the total number of matches."""
        conditions = [visible_clause(as_of)]
        if search:
            pattern = f"%{_escape_like(search)}%"
            conditions.append(
                or_(
                    Post.title.ilike(pattern, escape="\\"),
                    Post.content.ilike(pattern, escape="\\"),
                    Post.excerpt.ilike(pattern, escape="\\"),
                )
            )
        return self._page(conditions, order=order, offset=offset, limit=limit)

    def list_by_owner(
        self,
        owner_id: int,
        *,
        order: str,
        offset: int,
        limit: int,
    ) -> tuple[list[Post], int]:
        """Return one page of an owner's posts in every status."""
        return self._page([Post.user_id == owner_id], order=order, offset=offset, limit=limit)

    def list_related(self, post: Post, *, as_of: datetime, limit: int) -> list[Post]:
        """Return other visible posts written by the same owner."""
        stmt = (
            select(Post)
            .where(visible_clause(as_of), Post.user_id == post.user_id, Post.id != post.id)
            .order_by(*ORDERINGS["published_desc"])
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars())

    def count_for_owner(self, owner_id: int, *, as_of: datetime) -> dict[str, int]:
        """Return total, published (visible) and draft counts for an owner."""
        total = self.session.scalar(
            select(func.count()).select_from(Post).where(Post.user_id == owner_id)
        )
        published = self.session.scalar(
            select(func.count())
            .select_from(Post)
            .where(Post.user_id == owner_id, visible_clause(as_of))
        )
        drafts = self.session.scalar(
            select(func.count())
            .select_from(Post)
            .where(Post.user_id == owner_id, Post.status == POST_STATUS_DRAFT)
        )
        return {
            "total_posts": int(total or 0),
            "published_posts": int(published or 0),
            "draft_posts": int(drafts or 0),
        }

    def delete_for_owner(self, owner_id: int) -> int:
        """Delete every post owned by ``owner_id`` and return how many went."""
        posts = self.session.execute(select(Post).where(Post.user_id == owner_id)).scalars().all()
        for post in posts:
            self.session.delete(post)
        return len(posts)

    def _page(
        self,
        conditions: list[ColumnElement[bool]],
        *,
        order: str,
        offset: int,
        limit: int,
    ) -> tuple[list[Post], int]:
        total = self.session.scalar(select(func.count()).select_from(Post).where(*conditions))
        stmt = (
            select(Post)
            .options(selectinload(Post.owner))
            .where(*conditions)
            .order_by(*ORDERINGS[order])
            .offset(offset)
            .limit(limit)
        )
        items = list(self.session.execute(stmt).scalars())
        return items, int(total or 0)
