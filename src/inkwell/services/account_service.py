"""Account registration, credentials and profile management."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from inkwell.core import security
from inkwell.core.errors import AuthenticationError, ValidationError
from inkwell.core.settings import settings
from inkwell.models.post import Post
from inkwell.models.user import User
from inkwell.repositories.post_repo import PostRepository
from inkwell.schemas.user import (
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RegisterRequest,
)
from inkwell.services.post_service import author_stats

__all__ = [
    "register",
    "authenticate",
    "update_profile",
    "change_password",
    "delete_account",
    "profile_summary",
    "dashboard",
]

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "These credentials do not match our records."


def _email_taken(db: Session, email: str, exclude_user_id: int | None = None) -> bool:
    stmt = select(User.id).where(func.lower(User.email) == email.lower())
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    return db.execute(stmt.limit(1)).first() is not None


def register(db: Session, data: RegisterRequest) -> User:
    """Persist a new account with a hashed password."""
    if _email_taken(db, data.email):
        raise ValidationError.for_field("email", "The email has already been taken.")
    user = User(
        name=data.name.strip(),
        email=data.email,
        password_hash=security.hash_password(data.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered account %d", user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Return the account matching ``email`` and ``password``.

    Raises:
        AuthenticationError: If no account matches.
    """
    user = db.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    ).scalars().first()
    if user is None or not security.verify_password(password, user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS)
    if security.needs_rehash(user.password_hash):
        user.password_hash = security.hash_password(password)
        db.commit()
    return user


def update_profile(db: Session, user: User, data: ProfileUpdateRequest) -> User:
    """Update name and email; the email must stay unique."""
    if _email_taken(db, data.email, exclude_user_id=user.id):
        raise ValidationError.for_field("email", "The email has already been taken.")
    user.name = data.name.strip()
    user.email = data.email
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, data: PasswordChangeRequest) -> User:
    """Replace the password after verifying the current one."""
    if not security.verify_password(data.current_password, user.password_hash):
        raise ValidationError.for_field(
            "current_password",
            "The current password you provided is incorrect.",
        )
    user.password_hash = security.hash_password(data.password)
    db.commit()
    db.refresh(user)
    logger.info("Password changed for account %d", user.id)
    return user


def delete_account(db: Session, user: User, password: str) -> None:
    """Delete the account and every post it owns.

    Raises:
        ValidationError: If ``password`` does not match.
    """
    if not security.verify_password(password, user.password_hash):
        raise ValidationError.for_field(
            "password",
            "The password is incorrect. Please try again.",
        )
    user_id = user.id
    removed = PostRepository(db).delete_for_owner(user_id)
    db.delete(user)
    db.commit()
    logger.info("Deleted account %d and %d posts", user_id, removed)


def profile_summary(db: Session, user: User) -> dict[str, Any]:
    """Return the account together with its author statistics."""
    return {"user": user, "stats": author_stats(db, user.id)}


def dashboard(db: Session, user: User) -> dict[str, Any]:
    """Return statistics and the most recently created posts."""
    recent = db.execute(
        select(Post)
        .where(Post.user_id == user.id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(settings.dashboard_recent_posts)
    ).scalars().all()
    return {
        "user": user,
        "stats": author_stats(db, user.id),
        "recent_posts": list(recent),
    }
