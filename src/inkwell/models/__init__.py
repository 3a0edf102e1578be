# src/inkwell/models/__init__.py
"""SQLAlchemy models for the Inkwell application."""

from .post import (
    POST_STATUS_ARCHIVED,
    POST_STATUS_DRAFT,
    POST_STATUS_PUBLISHED,
    POST_STATUSES,
    Post,
)
from .user import User

__all__ = [
    "Post",
    "POST_STATUS_ARCHIVED", "POST_STATUS_DRAFT", "POST_STATUS_PUBLISHED", "POST_STATUSES",
    "User",
]
