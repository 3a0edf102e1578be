"""Create the schema and load demo accounts and posts for local development."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from inkwell.core.errors import InkwellError
from inkwell.db.session import SessionLocal, create_tables
from inkwell.db.time import utcnow
from inkwell.models import Post, User
from inkwell.schemas.post import PostCreate
from inkwell.schemas.user import RegisterRequest
from inkwell.services import account_service, post_service

logger = logging.getLogger(__name__)

DEMO_ACCOUNT = {
    "name": "Demo User",
    "email": "demo@example.com",
    "password": "password123",
}

# (title, excerpt, content, status, days since publication)
DEMO_POSTS: tuple[tuple[str, str, str, str, int | None], ...] = (
    (
        "Getting Started with FastAPI",
        "Learn how to build your first API with FastAPI.",
        "FastAPI builds request validation and interactive documentation on top "
        "of standard type hints. This guide walks through routers, dependencies "
        "and response models for a small but complete service.",
        "published",
        5,
    ),
    (
        "SQLAlchemy 2.0 in Practice",
        "A tour of typed mappings and the unified query API.",
        "SQLAlchemy 2.0 brings Mapped annotations, select() everywhere and a "
        "cleaner session model. We look at how these fit a layered application "
        "with repositories and services.",
        "published",
        3,
    ),
    (
        "Settings with pydantic-settings",
        "Keep configuration in the environment without the boilerplate.",
        "Environment variables, .env files and typed defaults all come together "
        "in a single settings class that the rest of the code can import.",
        "published",
        1,
    ),
    (
        "Designing Slug Rules",
        "Stable URLs for posts that change their titles.",
        "Slugs are derived once from the title and then left alone. This draft "
        "covers normalization, collision suffixes and what happens on a race.",
        "draft",
        None,
    ),
    (
        "Testing with an In-Memory Database",
        "Fast, isolated tests against a real SQL engine.",
        "An in-memory SQLite engine per test keeps the suite quick while still "
        "exercising constraints. This draft collects the fixtures we rely on.",
        "draft",
        None,
    ),
    (
        "Release Notes for the Old Blog",
        "Kept for reference only.",
        "These notes describe the previous version of the blog and are no "
        "longer maintained.",
        "archived",
        30,
    ),
)


def _demo_account(db: Session) -> tuple[User, bool]:
    user = db.execute(
        select(User).where(User.email == DEMO_ACCOUNT["email"])
    ).scalars().first()
    if user is not None:
        return user, False
    payload = RegisterRequest(
        name=DEMO_ACCOUNT["name"],
        email=DEMO_ACCOUNT["email"],
        password=DEMO_ACCOUNT["password"],
        password_confirmation=DEMO_ACCOUNT["password"],
    )
    return account_service.register(db, payload), True


def seed(db: Session) -> dict[str, Any]:
    """Load the demo account and its posts; running it again changes nothing.

    Returns:
        Summary with the demo ``email`` and the number of posts created.
    """
    user, created = _demo_account(db)
    owned = db.scalar(select(func.count()).select_from(Post).where(Post.user_id == user.id))
    if not created and owned:
        logger.info("Demo data already present for %s", user.email)
        return {"email": user.email, "posts_created": 0}

    now = utcnow()
    for title, excerpt, content, status, days_ago in DEMO_POSTS:
        data = PostCreate(
            title=title,
            excerpt=excerpt,
            content=content,
            status="draft" if status == "draft" else "published",
            published_at=now - timedelta(days=days_ago) if days_ago is not None else None,
        )
        post = post_service.create_post(db, user, data)
        if status == "archived":
            post_service.archive_post(db, post, user)

    logger.info("Seeded %d demo posts for %s", len(DEMO_POSTS), user.email)
    return {"email": user.email, "posts_created": len(DEMO_POSTS)}


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Create tables and load demo data")
    parser.add_argument(
        "--skip-create-tables",
        action="store_true",
        help="Assume the schema exists already (for example after alembic upgrade).",
    )
    args = parser.parse_args(argv)

    try:
        if not args.skip_create_tables:
            create_tables()
        with SessionLocal() as db:
            summary = seed(db)
    except InkwellError as exc:
        print(f"[seed] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    print(f"[seed] {summary['posts_created']} posts created")
    print(f"[seed] log in as {summary['email']} (password: {DEMO_ACCOUNT['password']})")


if __name__ == "__main__":
    main()
