"""Slug normalization and uniqueness assignment for posts."""
from __future__ import annotations

import re

from inkwell.models.post import SLUG_MAX_LENGTH
from inkwell.repositories.post_repo import PostRepository

__all__ = ["slugify", "assign_slug"]

_DISALLOWED_RE = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_HYPHENS_RE = re.compile(r"-{2,}")


def slugify(text: str) -> str:
    """Normalize ``text`` into a URL-safe slug.

    Lowercases and trims, drops anything outside ``[a-z0-9\\s-]``, turns
    whitespace runs into single hyphens and collapses repeated hyphens.
    An empty result is returned as-is; callers decide how to handle it.
    """
    slug = (text or "").lower().strip()
    slug = _DISALLOWED_RE.sub("", slug)
    slug = _WHITESPACE_RE.sub("-", slug)
    slug = _HYPHENS_RE.sub("-", slug)
    return slug.strip("-")


def _fit(slug: str, limit: int) -> str:
    return slug[:limit].rstrip("-")


def assign_slug(
    repo: PostRepository,
    candidate_base: str,
    exclude_post_id: int | None = None,
) -> str:
    """Return a slug derived from ``candidate_base`` that no other post holds.

    Collisions are resolved by appending ``-2``, ``-3`` and so on to the
    normalized base, which is shortened as needed so the result never exceeds
    the slug column length. The post identified by ``exclude_post_id`` is
    ignored so that re-saving a post keeps its own slug.

    The result is only unique at the time of the check; the write path must
    still handle a uniqueness violation from the store.
    """
    base = _fit(slugify(candidate_base), SLUG_MAX_LENGTH)
    slug = base
    suffix = 2
    while repo.slug_exists(slug, exclude_post_id):
        tail = f"-{suffix}"
        slug = _fit(base, SLUG_MAX_LENGTH - len(tail)) + tail
        suffix += 1
    return slug
