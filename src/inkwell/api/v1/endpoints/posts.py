"""Blog post endpoints for the Inkwell API."""

from fastapi import APIRouter, Query, status

from inkwell.api.v1.dependencies import CurrentUserDep, OptionalUserDep, SessionDep
from inkwell.models import Post
from inkwell.schemas.post import (
    AuthorStats,
    ManagePostsResponse,
    PostCreate,
    PostDetailResponse,
    PostPage,
    PostResponse,
    PostUpdate,
)
from inkwell.services import post_service

router = APIRouter(prefix="/posts", tags=["posts"])


def _to_response(post: Post) -> PostResponse:
    return PostResponse.model_validate(post)


def _to_page(page: post_service.Page) -> PostPage:
    return PostPage(
        items=[_to_response(post) for post in page.items],
        total=page.total,
        page=page.page,
        per_page=page.per_page,
        pages=page.pages,
    )


@router.get("/", response_model=PostPage)
async def list_posts(
    db: SessionDep,
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    per_page: int | None = Query(None, ge=1, description="Posts per page"),
    search: str | None = Query(None, description="Match against title, content and excerpt"),
    order: str = Query("published_desc", description="Ordering of the listing"),
) -> PostPage:
    """List publicly visible posts, newest publication first by default.

    Args:
        db: Database session
        page: Page number
        per_page: Page size (defaults to the configured listing size)
        search: Optional free-text filter
        order: One of the supported orderings

    Returns:
        One page of visible posts
    """
    result = post_service.list_published(
        db,
        page=page,
        per_page=per_page,
        search=search,
        order=order,
    )
    return _to_page(result)


@router.get("/manage", response_model=ManagePostsResponse)
async def manage_posts(
    current_user: CurrentUserDep,
    db: SessionDep,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    order: str = Query("created_desc"),
) -> ManagePostsResponse:
    """List the caller's own posts in every status, with author statistics."""
    result = post_service.list_owned(
        db,
        current_user.id,
        page=page,
        per_page=per_page,
        order=order,
    )
    return ManagePostsResponse(
        posts=_to_page(result),
        stats=AuthorStats(**post_service.author_stats(db, current_user.id)),
    )


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostResponse:
    """Create a post owned by the caller.

    The slug is derived from the title unless one is supplied; either way it
    is made unique by suffixing ``-2``, ``-3``, ...
    """
    post = post_service.create_post(db, current_user, post_data)
    return _to_response(post)


@router.get("/{slug_or_id}", response_model=PostDetailResponse)
async def get_post(
    slug_or_id: str,
    db: SessionDep,
    viewer: OptionalUserDep,
) -> PostDetailResponse:
    """Get a post by numeric id or by slug.

    Drafts, archived posts and scheduled posts are only returned to their
    owner; everyone else gets a 404.
    """
    post = post_service.get_viewable_post(db, slug_or_id, viewer)
    related = post_service.related_posts(db, post)
    return PostDetailResponse(
        post=_to_response(post),
        related_posts=[_to_response(item) for item in related],
        can_edit=post_service.can_edit(post, viewer.id if viewer else None),
    )


@router.patch("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    post_data: PostUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostResponse:
    """Partially update a post owned by the caller."""
    post = post_service.get_post(db, post_id)
    post = post_service.update_post(db, post, current_user, post_data)
    return _to_response(post)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> None:
    """Delete a post owned by the caller."""
    post = post_service.get_post(db, post_id)
    post_service.delete_post(db, post, current_user)


@router.post("/{post_id}/publish", response_model=PostResponse)
async def publish_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostResponse:
    """Publish a post now; re-publishing refreshes its publication time."""
    post = post_service.get_post(db, post_id)
    return _to_response(post_service.publish_post(db, post, current_user))


@router.post("/{post_id}/unpublish", response_model=PostResponse)
async def unpublish_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostResponse:
    """Return a post to draft and clear its publication time."""
    post = post_service.get_post(db, post_id)
    return _to_response(post_service.unpublish_post(db, post, current_user))


@router.post("/{post_id}/archive", response_model=PostResponse)
async def archive_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostResponse:
    """Archive a post; its publication time is kept."""
    post = post_service.get_post(db, post_id)
    return _to_response(post_service.archive_post(db, post, current_user))
