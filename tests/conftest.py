# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from datetime import datetime
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from inkwell.core.security import create_access_token, hash_password
from inkwell.core.settings import Settings
from inkwell.db.session import Base, enable_sqlite_foreign_keys
from inkwell.db.session import get_db as app_get_session
from inkwell.main import app as fastapi_app
from inkwell.models import Post, User
from inkwell.schemas.post import PostCreate
from inkwell.services import post_service

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "secret123"

_POST_COUNTER = count(1)
_TEST_SETTINGS_INSTANCE = Settings()


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    # A fresh in-memory database per test; services commit for real.
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return _TEST_SETTINGS_INSTANCE


def _create_user(db_session: Session, name: str, email: str) -> User:
    user = User(name=name, email=email, password_hash=hash_password(TEST_PASSWORD))
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """Create and return a persisted test user."""
    return _create_user(db_session, "Test User", "test@example.com")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second persisted user."""
    return _create_user(db_session, "Other User", "other@example.com")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    token = create_access_token(test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    token = create_access_token(other_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def post_factory(db_session: Session, test_user: User) -> Callable[..., Post]:
    """Return a helper that creates posts through the service layer."""

    def _make(
        title: str | None = None,
        *,
        owner: User | None = None,
        status: str = "draft",
        published_at: datetime | None = None,
        **fields: Any,
    ) -> Post:
        data = PostCreate(
            title=title or f"Test Post {next(_POST_COUNTER)}",
            content=fields.pop("content", "Some test content for the post body."),
            status=status,
            published_at=published_at,
            **fields,
        )
        return post_service.create_post(db_session, owner or test_user, data)

    return _make


@pytest.fixture()
def test_post(post_factory: Callable[..., Post]) -> Post:
    """Create a baseline published post for tests."""
    return post_factory("Hello World", status="published")


@pytest.fixture()
def draft_post(post_factory: Callable[..., Post]) -> Post:
    """Create a draft post owned by the primary test user."""
    return post_factory("Work In Progress")


@pytest.fixture(scope="session")
def test_password() -> str:
    """Return the plaintext password shared by the test users."""
    return TEST_PASSWORD
