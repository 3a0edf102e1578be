# src/inkwell/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .post import (
    AuthorStats,
    ManagePostsResponse,
    PostCreate,
    PostDetailResponse,
    PostPage,
    PostResponse,
    PostUpdate,
)
from .user import (
    AccountDeleteRequest,
    DashboardResponse,
    LoginRequest,
    PasswordChangeRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserResponse,
)

__all__ = [
    "AuthorStats", "ManagePostsResponse", "PostCreate", "PostDetailResponse",
    "PostPage", "PostResponse", "PostUpdate",
    "AccountDeleteRequest", "DashboardResponse", "LoginRequest",
    "PasswordChangeRequest", "ProfileResponse", "ProfileUpdateRequest",
    "RegisterRequest", "RegisterResponse", "TokenResponse", "UserResponse",
]
