"""Tests for the post lifecycle service."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.orm import Session

from inkwell.core.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from inkwell.db.time import as_utc, utcnow
from inkwell.models import Post, User
from inkwell.repositories.post_repo import PostRepository
from inkwell.schemas.post import PostCreate, PostUpdate
from inkwell.services import post_service


class TestCreatePost:
    """Creating posts assigns slugs, owners and publication state."""

    def test_draft_by_default(self, db_session: Session, test_user: User) -> None:
        post = post_service.create_post(
            db_session,
            test_user,
            PostCreate(title="First Steps", content="Body"),
        )

        assert post.id is not None
        assert post.slug == "first-steps"
        assert post.status == "draft"
        assert post.published_at is None
        assert post.user_id == test_user.id

    def test_publish_on_create_stamps_now(self, db_session: Session, test_user: User) -> None:
        before = utcnow()
        post = post_service.create_post(
            db_session,
            test_user,
            PostCreate(title="Launch", content="Body", status="published"),
        )

        assert post.status == "published"
        assert post.published_at is not None
        assert as_utc(post.published_at) >= before
        assert post_service.is_visible(post)

    def test_explicit_slug_is_normalized_and_deduplicated(
        self, db_session: Session, test_user: User, post_factory: Callable[..., Post]
    ) -> None:
        post_factory("Something", slug="custom-slug")
        post = post_factory("Something else", slug="custom-slug")

        assert post.slug == "custom-slug-2"

    def test_title_without_slug_characters_falls_back(
        self, post_factory: Callable[..., Post]
    ) -> None:
        first = post_factory("???")
        second = post_factory("!!!")

        assert first.slug == "post"
        assert second.slug == "post-2"

    def test_blank_title_rejected(self, db_session: Session, test_user: User) -> None:
        repo = PostRepository(db_session)
        post = Post(user_id=test_user.id, content="Body")

        with pytest.raises(ValidationError) as exc_info:
            post_service.set_title(repo, post, "   ")

        assert "title" in exc_info.value.errors
        assert post.slug is None

    def test_status_defaults_to_draft_in_the_database(self, db_session: Session, test_user: User) -> None:
        db_session.execute(
            text(
                "INSERT INTO blog_posts (user_id, title, slug, content, created_at, updated_at) "
                "VALUES (:user_id, 'Raw', 'raw', 'Body', :now, :now)"
            ),
            {"user_id": test_user.id, "now": "2025-01-01 00:00:00.000000"},
        )
        db_session.commit()

        post = PostRepository(db_session).get_by_slug("raw")
        assert post is not None
        assert post.status == "draft"


class TestTransitions:
    """State machine over draft, published and archived."""

    def test_publish_unpublish_cycle(self, db_session: Session, test_user: User, draft_post: Post) -> None:
        published = post_service.publish_post(db_session, draft_post, test_user)
        assert published.status == "published"
        assert published.published_at is not None

        drafted = post_service.unpublish_post(db_session, published, test_user)
        assert drafted.status == "draft"
        assert drafted.published_at is None

    def test_republish_refreshes_timestamp(
        self, db_session: Session, test_user: User, test_post: Post, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        later = datetime(2030, 1, 1, 12, 0, tzinfo=UTC)
        monkeypatch.setattr(post_service, "utcnow", lambda: later)

        post = post_service.publish_post(db_session, test_post, test_user)

        assert as_utc(post.published_at) == later

    def test_archive_keeps_published_at(self, db_session: Session, test_user: User, test_post: Post) -> None:
        published_at = as_utc(test_post.published_at)

        post = post_service.archive_post(db_session, test_post, test_user)

        assert post.status == "archived"
        assert as_utc(post.published_at) == published_at
        assert not post_service.is_visible(post)

    def test_archive_draft_leaves_published_at_empty(
        self, db_session: Session, test_user: User, draft_post: Post
    ) -> None:
        post = post_service.archive_post(db_session, draft_post, test_user)

        assert post.status == "archived"
        assert post.published_at is None

    def test_archived_post_can_be_republished(
        self, db_session: Session, test_user: User, test_post: Post
    ) -> None:
        post_service.archive_post(db_session, test_post, test_user)
        post = post_service.publish_post(db_session, test_post, test_user)

        assert post.status == "published"
        assert post_service.is_visible(post)


class TestVisibility:
    """Public visibility depends on status and publication time."""

    def test_draft_is_not_visible(self, draft_post: Post) -> None:
        assert not post_service.is_visible(draft_post)

    def test_future_publication_is_scheduled(self, post_factory: Callable[..., Post]) -> None:
        release = utcnow() + timedelta(days=1)
        post = post_factory("Tomorrow", status="published", published_at=release)

        assert post.status == "published"
        assert not post_service.is_visible(post)
        assert not post.is_published
        assert post_service.is_visible(post, as_of=release)
        assert post_service.is_visible(post, as_of=release + timedelta(seconds=1))

    def test_published_without_timestamp_is_hidden(self, db_session: Session, test_user: User) -> None:
        post = Post(user_id=test_user.id, title="Odd", slug="odd", content="x", status="published")

        assert not post_service.is_visible(post)

    def test_naive_publication_time_is_treated_as_utc(self, post_factory: Callable[..., Post]) -> None:
        naive_past = datetime.now(UTC).replace(tzinfo=None) - timedelta(hours=1)
        post = post_factory("Naive", status="published", published_at=naive_past)

        assert post_service.is_visible(post)


class TestOwnership:
    """Only the owner may change a post."""

    def test_can_edit(self, test_post: Post, test_user: User, other_user: User) -> None:
        assert post_service.can_edit(test_post, test_user.id)
        assert not post_service.can_edit(test_post, other_user.id)
        assert not post_service.can_edit(test_post, None)

    @pytest.mark.parametrize("operation", ["publish_post", "unpublish_post", "archive_post"])
    def test_transitions_require_owner(
        self, db_session: Session, test_post: Post, other_user: User, operation: str
    ) -> None:
        with pytest.raises(PermissionDeniedError):
            getattr(post_service, operation)(db_session, test_post, other_user)

    def test_update_requires_owner(self, db_session: Session, test_post: Post, other_user: User) -> None:
        with pytest.raises(PermissionDeniedError):
            post_service.update_post(db_session, test_post, other_user, PostUpdate(title="Hijack"))

        db_session.refresh(test_post)
        assert test_post.title == "Hello World"

    def test_delete_requires_owner(self, db_session: Session, test_post: Post, other_user: User) -> None:
        with pytest.raises(PermissionDeniedError):
            post_service.delete_post(db_session, test_post, other_user)

        assert post_service.get_post(db_session, test_post.id) is test_post

    def test_owner_cannot_be_mass_assigned(self) -> None:
        with pytest.raises(ValueError):
            PostUpdate.model_validate({"user_id": 99})
        with pytest.raises(ValueError):
            PostCreate.model_validate({"title": "T", "content": "C", "user_id": 99})


class TestUpdatePost:
    """Partial updates keep slugs stable and route status through transitions."""

    def test_title_change_keeps_slug(self, db_session: Session, test_user: User, test_post: Post) -> None:
        post = post_service.update_post(
            db_session, test_post, test_user, PostUpdate(title="A Completely New Title")
        )

        assert post.title == "A Completely New Title"
        assert post.slug == "hello-world"

    def test_resave_keeps_own_slug(self, db_session: Session, test_user: User, test_post: Post) -> None:
        post = post_service.update_post(
            db_session, test_post, test_user, PostUpdate(slug="hello-world", content="New body")
        )

        assert post.slug == "hello-world"
        assert post.content == "New body"

    def test_explicit_slug_change_avoids_collisions(
        self, db_session: Session, test_user: User, test_post: Post, post_factory: Callable[..., Post]
    ) -> None:
        post_factory("Taken")

        post = post_service.update_post(db_session, test_post, test_user, PostUpdate(slug="taken"))

        assert post.slug == "taken-2"

    def test_status_change_uses_transitions(self, db_session: Session, test_user: User, draft_post: Post) -> None:
        post = post_service.update_post(db_session, draft_post, test_user, PostUpdate(status="published"))
        assert post.published_at is not None

        post = post_service.update_post(db_session, post, test_user, PostUpdate(status="draft"))
        assert post.published_at is None

    def test_same_status_is_not_a_transition(
        self, db_session: Session, test_user: User, test_post: Post
    ) -> None:
        published_at = as_utc(test_post.published_at)

        post = post_service.update_post(
            db_session, test_post, test_user, PostUpdate(status="published", content="Edited")
        )

        assert as_utc(post.published_at) == published_at

    def test_reschedule_published_post(self, db_session: Session, test_user: User, test_post: Post) -> None:
        release = utcnow() + timedelta(days=2)

        post = post_service.update_post(db_session, test_post, test_user, PostUpdate(published_at=release))

        assert as_utc(post.published_at) == release
        assert not post_service.is_visible(post)

    def test_omitted_fields_untouched(self, db_session: Session, test_user: User, post_factory: Callable[..., Post]) -> None:
        post = post_factory("Described", excerpt="Short summary", meta_title="Meta")

        post = post_service.update_post(db_session, post, test_user, PostUpdate(content="Changed"))

        assert post.excerpt == "Short summary"
        assert post.meta_title == "Meta"

    def test_explicit_null_clears_optional_field(
        self, db_session: Session, test_user: User, post_factory: Callable[..., Post]
    ) -> None:
        post = post_factory("Described", excerpt="Short summary")

        post = post_service.update_post(db_session, post, test_user, PostUpdate(excerpt=None))

        assert post.excerpt is None


class TestSlugRace:
    """A lost check-then-write race is retried with a fresh slug."""

    def test_retry_recovers_with_next_suffix(
        self,
        db_session: Session,
        test_user: User,
        post_factory: Callable[..., Post],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        post_factory("My Post")
        original = PostRepository.slug_exists
        calls = {"count": 0}

        def stale_once(self: PostRepository, slug: str, exclude_post_id: int | None = None) -> bool:
            calls["count"] += 1
            if calls["count"] == 1:
                return False
            return original(self, slug, exclude_post_id)

        monkeypatch.setattr(PostRepository, "slug_exists", stale_once)

        post = post_service.create_post(db_session, test_user, PostCreate(title="My Post", content="Body"))

        assert post.slug == "my-post-2"
        assert db_session.query(Post).count() == 2

    def test_retry_exhaustion_raises_conflict(
        self,
        db_session: Session,
        test_user: User,
        post_factory: Callable[..., Post],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        post_factory("My Post")
        monkeypatch.setattr(PostRepository, "slug_exists", lambda self, slug, exclude_post_id=None: False)

        with pytest.raises(ConflictError):
            post_service.create_post(db_session, test_user, PostCreate(title="My Post", content="Body"))

        assert db_session.query(Post).count() == 1


class TestLookupAndListing:
    """Resolving posts and listing them."""

    def test_resolve_by_id_or_slug(self, db_session: Session, test_post: Post) -> None:
        assert post_service.resolve_post(db_session, str(test_post.id)) is test_post
        assert post_service.resolve_post(db_session, "hello-world") is test_post

    def test_resolve_missing(self, db_session: Session) -> None:
        with pytest.raises(NotFoundError):
            post_service.resolve_post(db_session, "does-not-exist")
        with pytest.raises(NotFoundError):
            post_service.resolve_post(db_session, "12345")

    @pytest.mark.parametrize("segment", ["99999999999999999999999", str(2**63)])
    def test_resolve_out_of_range_id(self, db_session: Session, segment: str) -> None:
        with pytest.raises(NotFoundError):
            post_service.resolve_post(db_session, segment)

    def test_resolve_non_ascii_digits_as_slug(self, db_session: Session) -> None:
        with pytest.raises(NotFoundError):
            post_service.resolve_post(db_session, "²")
        with pytest.raises(NotFoundError):
            post_service.resolve_post(db_session, "١٢")

    def test_get_post_out_of_range_id(self, db_session: Session) -> None:
        with pytest.raises(NotFoundError):
            post_service.get_post(db_session, 10**30)
        with pytest.raises(NotFoundError):
            post_service.get_post(db_session, 0)

    def test_search_treats_wildcards_literally(
        self, db_session: Session, post_factory: Callable[..., Post]
    ) -> None:
        underscored = post_factory("snake_case names", status="published")
        post_factory("Plain words", status="published")

        assert post_service.list_published(db_session, search="%").total == 0
        assert [p.id for p in post_service.list_published(db_session, search="_").items] == [underscored.id]
        assert post_service.list_published(db_session, search="snake%case").total == 0

    def test_hidden_post_is_missing_for_strangers(
        self, db_session: Session, draft_post: Post, test_user: User, other_user: User
    ) -> None:
        assert post_service.get_viewable_post(db_session, draft_post.slug, test_user) is draft_post
        with pytest.raises(NotFoundError):
            post_service.get_viewable_post(db_session, draft_post.slug, other_user)
        with pytest.raises(NotFoundError):
            post_service.get_viewable_post(db_session, draft_post.slug, None)

    def test_list_published_only_returns_visible(
        self, db_session: Session, post_factory: Callable[..., Post]
    ) -> None:
        visible = post_factory("Visible", status="published")
        post_factory("Draft")
        post_factory("Scheduled", status="published", published_at=utcnow() + timedelta(days=1))

        page = post_service.list_published(db_session)

        assert [post.id for post in page.items] == [visible.id]
        assert page.total == 1
        assert page.pages == 1

    def test_list_published_newest_first_and_paginated(
        self, db_session: Session, post_factory: Callable[..., Post]
    ) -> None:
        now = utcnow()
        posts = [
            post_factory(f"Post {index}", status="published", published_at=now - timedelta(hours=index))
            for index in range(5)
        ]

        first = post_service.list_published(db_session, page=1, per_page=2)
        last = post_service.list_published(db_session, page=3, per_page=2)

        assert [post.id for post in first.items] == [posts[0].id, posts[1].id]
        assert [post.id for post in last.items] == [posts[4].id]
        assert first.total == 5
        assert first.pages == 3

    def test_list_published_search(self, db_session: Session, post_factory: Callable[..., Post]) -> None:
        match = post_factory("Gardening tips", status="published")
        post_factory("Cooking", status="published", content="Nothing relevant")
        post_factory("Draft about gardening")

        page = post_service.list_published(db_session, search="garden")

        assert [post.id for post in page.items] == [match.id]

    def test_list_rejects_unknown_order(self, db_session: Session) -> None:
        with pytest.raises(ValidationError) as exc_info:
            post_service.list_published(db_session, order="random")

        assert "order" in exc_info.value.errors

    def test_list_rejects_oversized_page(self, db_session: Session, test_settings) -> None:
        with pytest.raises(ValidationError):
            post_service.list_published(db_session, per_page=test_settings.max_posts_per_page + 1)

    def test_list_owned_includes_every_status(
        self, db_session: Session, test_user: User, other_user: User, post_factory: Callable[..., Post]
    ) -> None:
        mine = {
            post_factory("Mine draft").id,
            post_factory("Mine published", status="published").id,
        }
        archived = post_factory("Mine archived", status="published")
        post_service.archive_post(db_session, archived, test_user)
        mine.add(archived.id)
        post_factory("Theirs", owner=other_user, status="published")

        page = post_service.list_owned(db_session, test_user.id)

        assert {post.id for post in page.items} == mine

    def test_related_posts_exclude_self_and_hidden(
        self, db_session: Session, test_post: Post, other_user: User, post_factory: Callable[..., Post]
    ) -> None:
        sibling = post_factory("Sibling", status="published")
        post_factory("Sibling draft")
        post_factory("Stranger", owner=other_user, status="published")

        related = post_service.related_posts(db_session, test_post)

        assert [post.id for post in related] == [sibling.id]

    def test_author_stats(self, db_session: Session, test_user: User, post_factory: Callable[..., Post]) -> None:
        post_factory("One", status="published")
        post_factory("Two")
        post_factory("Three")
        post_factory("Later", status="published", published_at=utcnow() + timedelta(days=1))

        stats = post_service.author_stats(db_session, test_user.id)

        assert stats == {"total_posts": 4, "published_posts": 1, "draft_posts": 2}


class TestDisplayHelpers:
    """Derived attributes on the post model."""

    def test_reading_time(self, post_factory: Callable[..., Post]) -> None:
        short = post_factory("Short", content="<p>Just a few words here.</p>")
        long = post_factory("Long", content=" ".join(["word"] * 401))

        assert short.reading_time == "1 min read"
        assert long.reading_time == "3 min read"

    def test_published_date(self, db_session: Session, test_user: User, post_factory: Callable[..., Post]) -> None:
        post = post_factory("Dated", status="published", published_at=datetime(2025, 6, 9, 9, 0, tzinfo=UTC))
        draft = post_factory("Undated")

        assert post.published_date == "June 9, 2025"
        assert draft.published_date == "Not published"
