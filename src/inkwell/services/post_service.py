"""Post lifecycle: slugs, publication state transitions and listings.

This module owns every invariant of the post entity:

- slugs are unique, derived from the title once, and never silently
  regenerated afterwards;
- ``published_at`` is set by :func:`publish`, cleared by :func:`unpublish`
  and left alone by :func:`archive`;
- the owner is fixed at creation and is the only account allowed to change
  the post.

Write helpers commit the session. A slug uniqueness violation at commit time
is treated as a lost check-then-write race and retried with a fresh slug.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inkwell.core.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from inkwell.core.settings import settings
from inkwell.db.time import as_utc, utcnow
from inkwell.models.post import (
    POST_STATUS_ARCHIVED,
    POST_STATUS_DRAFT,
    POST_STATUS_PUBLISHED,
    Post,
)
from inkwell.models.user import User
from inkwell.repositories.post_repo import ORDERINGS, PostRepository
from inkwell.schemas.post import PostCreate, PostUpdate
from inkwell.services.slugs import assign_slug

logger = logging.getLogger(__name__)

FALLBACK_SLUG = "post"

# Fields copied verbatim from create/update payloads.
_DESCRIPTIVE_FIELDS = ("excerpt", "featured_image", "meta_title", "meta_description")


@dataclass(frozen=True)
class Page:
    """A page of posts and its pagination metadata."""

    items: list[Post]
    total: int
    page: int
    per_page: int

    @property
    def pages(self) -> int:
        """Return the number of pages (at least one)."""
        return max(1, math.ceil(self.total / self.per_page)) if self.per_page else 1


# --- Entity operations -----------------------------------------------------


def set_title(repo: PostRepository, post: Post, new_title: str) -> None:
    """Set the title, deriving a slug only if the post has none yet.

    Raises:
        ValidationError: If the title is empty or blank.
    """
    title = (new_title or "").strip()
    if not title:
        raise ValidationError.for_field("title", "The title field is required.")
    post.title = title
    if not post.slug:
        slug = assign_slug(repo, title, post.id)
        post.slug = slug or assign_slug(repo, FALLBACK_SLUG, post.id)


def publish(post: Post, at: datetime | None = None) -> None:
    """Mark the post published and stamp ``published_at``.

    The timestamp is always overwritten, so publishing an already published
    post refreshes it. ``at`` may lie in the future to schedule the post.
    """
    post.status = POST_STATUS_PUBLISHED
    post.published_at = as_utc(at) if at is not None else utcnow()


def unpublish(post: Post) -> None:
    """Return the post to draft and clear its publication time."""
    post.status = POST_STATUS_DRAFT
    post.published_at = None


def archive(post: Post) -> None:
    """Archive the post, keeping whatever ``published_at`` it had."""
    post.status = POST_STATUS_ARCHIVED


def is_visible(post: Post, as_of: datetime | None = None) -> bool:
    """Return True if the post is publicly readable at ``as_of``."""
    if post.status != POST_STATUS_PUBLISHED or post.published_at is None:
        return False
    as_of = as_utc(as_of) if as_of is not None else utcnow()
    return as_utc(post.published_at) <= as_of


def can_edit(post: Post, account_id: int | None) -> bool:
    """Return True if ``account_id`` owns the post."""
    return account_id is not None and post.user_id == account_id


def ensure_can_edit(post: Post, account: User) -> None:
    """Raise PermissionDeniedError unless ``account`` owns the post."""
    if not can_edit(post, account.id):
        raise PermissionDeniedError("You are not authorized to modify this post.")


# --- Persistence -----------------------------------------------------------


def _is_slug_violation(exc: IntegrityError) -> bool:
    return "slug" in str(exc.orig).lower()


def commit_with_slug_retry(db: Session, apply: Callable[[], Post]) -> Post:
    """Run ``apply`` and commit, recovering from a lost slug uniqueness race.

    ``apply`` must perform the whole mutation, slug assignment included, and
    return the post. A rollback discards in-memory changes, so on a slug
    constraint violation the transaction is rolled back and ``apply`` runs
    again; the competing row is then visible to the slug check and a fresh
    suffix is chosen. After ``settings.slug_write_attempts`` failures a
    ConflictError is raised. Other integrity errors propagate unchanged.
    """
    attempts = settings.slug_write_attempts
    post: Post | None = None
    for attempt in range(1, attempts + 1):
        post = apply()
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if not _is_slug_violation(exc):
                raise
            logger.warning(
                "Slug %r was taken concurrently (attempt %d/%d)",
                post.slug,
                attempt,
                attempts,
            )
            continue
        db.refresh(post)
        return post

    logger.error("Giving up on a unique slug after %d attempts", attempts)
    title = post.title if post is not None else ""
    raise ConflictError(f"Could not assign a unique slug for '{title}'.")


# --- Use cases -------------------------------------------------------------


def get_post(db: Session, post_id: int) -> Post:
    """Return the post with ``post_id`` or raise NotFoundError."""
    post = PostRepository(db).get_by_id(post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


def resolve_post(db: Session, segment: str) -> Post:
    """Resolve a path segment that is either a numeric id or a slug.

    Only ASCII decimal segments are treated as ids; ids outside the key range
    resolve to nothing.
    """
    repo = PostRepository(db)
    if segment.isascii() and segment.isdecimal():
        post = repo.get_by_id(int(segment))
    else:
        post = repo.get_by_slug(segment)
    if post is None:
        raise NotFoundError("Post not found")
    return post


def get_viewable_post(db: Session, segment: str, viewer: User | None) -> Post:
    """Resolve a post and hide it unless it is visible or owned by ``viewer``.

    Hidden posts are reported as missing so their existence is not disclosed.
    """
    post = resolve_post(db, segment)
    if not is_visible(post) and not can_edit(post, viewer.id if viewer else None):
        raise NotFoundError("Post not found")
    return post


def create_post(db: Session, owner: User, data: PostCreate) -> Post:
    """Create a post owned by ``owner`` from a validated payload."""
    repo = PostRepository(db)
    owner_id = owner.id

    def apply() -> Post:
        post = Post(user_id=owner_id, content=data.content)
        for field in _DESCRIPTIVE_FIELDS:
            setattr(post, field, getattr(data, field))
        if data.slug:
            post.slug = assign_slug(repo, data.slug)
        set_title(repo, post, data.title)
        if data.status == POST_STATUS_PUBLISHED:
            publish(post, at=data.published_at)
        else:
            unpublish(post)
        db.add(post)
        return post

    post = commit_with_slug_retry(db, apply)
    logger.info(
        "Post %d (%s) created by account %d as %s",
        post.id,
        post.slug,
        owner_id,
        post.status,
    )
    return post


def update_post(db: Session, post: Post, account: User, data: PostUpdate) -> Post:
    """Apply a partial update to ``post`` on behalf of its owner.

    A title change keeps the existing slug; only an explicit slug replaces
    it. Status changes go through the transition functions.
    """
    ensure_can_edit(post, account)
    repo = PostRepository(db)
    changes: dict[str, Any] = data.model_dump(exclude_unset=True)

    def apply() -> Post:
        if changes.get("title") is not None:
            set_title(repo, post, changes["title"])
        if changes.get("content") is not None:
            post.content = changes["content"]
        for field in _DESCRIPTIVE_FIELDS:
            if field in changes:
                setattr(post, field, changes[field])

        if changes.get("slug") and changes["slug"] != post.slug:
            post.slug = assign_slug(repo, changes["slug"], post.id)

        status = changes.get("status")
        published_at = changes.get("published_at")
        if status is not None and status != post.status:
            if status == POST_STATUS_PUBLISHED:
                publish(post, at=published_at)
            elif status == POST_STATUS_DRAFT:
                unpublish(post)
            else:
                archive(post)
        elif published_at is not None and post.status == POST_STATUS_PUBLISHED:
            # Rescheduling an already published post.
            post.published_at = as_utc(published_at)
        return post

    return commit_with_slug_retry(db, apply)


def delete_post(db: Session, post: Post, account: User) -> None:
    """Delete ``post`` on behalf of its owner."""
    ensure_can_edit(post, account)
    post_id = post.id
    db.delete(post)
    db.commit()
    logger.info("Post %d deleted by account %d", post_id, account.id)


def publish_post(db: Session, post: Post, account: User) -> Post:
    """Publish ``post`` now on behalf of its owner."""
    ensure_can_edit(post, account)
    publish(post)
    db.commit()
    db.refresh(post)
    logger.info("Post %d published", post.id)
    return post


def unpublish_post(db: Session, post: Post, account: User) -> Post:
    """Return ``post`` to draft on behalf of its owner."""
    ensure_can_edit(post, account)
    unpublish(post)
    db.commit()
    db.refresh(post)
    return post


def archive_post(db: Session, post: Post, account: User) -> Post:
    """Archive ``post`` on behalf of its owner."""
    ensure_can_edit(post, account)
    archive(post)
    db.commit()
    db.refresh(post)
    return post


def _validate_paging(page: int, per_page: int, order: str) -> None:
    if page < 1:
        raise ValidationError.for_field("page", "Page must be at least 1.")
    if not 1 <= per_page <= settings.max_posts_per_page:
        raise ValidationError.for_field(
            "per_page",
            f"Per page must be between 1 and {settings.max_posts_per_page}.",
        )
    if order not in ORDERINGS:
        raise ValidationError.for_field(
            "order",
            f"Order must be one of: {', '.join(sorted(ORDERINGS))}.",
        )


def list_published(
    db: Session,
    *,
    page: int = 1,
    per_page: int | None = None,
    search: str | None = None,
    as_of: datetime | None = None,
    order: str = "published_desc",
) -> Page:
    """Return visible posts, optionally filtered by a free-text search."""
    per_page = per_page or settings.posts_per_page
    _validate_paging(page, per_page, order)
    search = search.strip() if search else None
    items, total = PostRepository(db).list_visible(
        as_of=as_utc(as_of) if as_of is not None else utcnow(),
        order=order,
        offset=(page - 1) * per_page,
        limit=per_page,
        search=search or None,
    )
    return Page(items=items, total=total, page=page, per_page=per_page)


def list_owned(
    db: Session,
    owner_id: int,
    *,
    page: int = 1,
    per_page: int | None = None,
    order: str = "created_desc",
) -> Page:
    """Return an owner's posts in every status."""
    per_page = per_page or settings.manage_posts_per_page
    _validate_paging(page, per_page, order)
    items, total = PostRepository(db).list_by_owner(
        owner_id,
        order=order,
        offset=(page - 1) * per_page,
        limit=per_page,
    )
    return Page(items=items, total=total, page=page, per_page=per_page)


def related_posts(db: Session, post: Post, limit: int | None = None) -> list[Post]:
    """Return other visible posts by the same owner."""
    return PostRepository(db).list_related(
        post,
        as_of=utcnow(),
        limit=limit if limit is not None else settings.related_posts_limit,
    )


def author_stats(db: Session, owner_id: int) -> dict[str, int]:
    """Return total, published and draft counts for ``owner_id``."""
    return PostRepository(db).count_for_owner(owner_id, as_of=utcnow())
