# src/inkwell/services/__init__.py
"""Business logic services for the Inkwell application."""

from . import account_service, post_service
from .slugs import assign_slug, slugify

__all__ = [
    "account_service",
    "post_service",
    "assign_slug",
    "slugify",
]
