"""Post-related Pydantic schemas.

Create and update payloads are separate models that forbid unknown fields, so
ownership and system-managed columns can never be mass-assigned.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


def _strip_title(value: str | None) -> str | None:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Title must not be blank")
    return value


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    title: str = Field(..., min_length=1, max_length=255, description="Post title")
    content: str = Field(..., min_length=1, description="Main post body")
    excerpt: str | None = Field(None, max_length=500, description="Short summary")
    status: Literal["draft", "published"] = Field("draft", description="Initial status")
    slug: str | None = Field(
        None,
        max_length=255,
        pattern=SLUG_PATTERN,
        description="Explicit slug; derived from the title when omitted",
    )
    featured_image: str | None = Field(None, max_length=255)
    meta_title: str | None = Field(None, max_length=255)
    meta_description: str | None = Field(None, max_length=500)
    published_at: datetime | None = Field(
        None,
        description="Publication time; a future value schedules the post",
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        """Reject titles that are blank after trimming."""
        return _strip_title(v)


class PostUpdate(BaseModel):
    """Schema for partial post updates; omitted fields are left untouched."""

    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, min_length=1)
    excerpt: str | None = Field(None, max_length=500)
    status: Literal["draft", "published", "archived"] | None = None
    slug: str | None = Field(None, max_length=255, pattern=SLUG_PATTERN)
    featured_image: str | None = Field(None, max_length=255)
    meta_title: str | None = Field(None, max_length=255)
    meta_description: str | None = Field(None, max_length=500)
    published_at: datetime | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        """Reject titles that are blank after trimming."""
        return _strip_title(v)


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    user_id: int
    author_name: str | None = None
    title: str
    slug: str
    content: str
    excerpt: str | None
    status: str
    featured_image: str | None
    meta_title: str | None
    meta_description: str | None
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime
    is_published: bool
    reading_time: str
    published_date: str

    model_config = ConfigDict(from_attributes=True)


class PostPage(BaseModel):
    """One page of posts plus pagination metadata."""

    items: list[PostResponse]
    total: int
    page: int
    per_page: int
    pages: int


class AuthorStats(BaseModel):
    """Post counts for a single author."""

    total_posts: int
    published_posts: int
    draft_posts: int


class PostDetailResponse(BaseModel):
    """A single post with related posts and the caller's edit permission."""

    post: PostResponse
    related_posts: list[PostResponse]
    can_edit: bool


class ManagePostsResponse(BaseModel):
    """The caller's own posts across every status."""

    posts: PostPage
    stats: AuthorStats
