"""Account-related Pydantic schemas."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from inkwell.core.settings import settings

from .post import AuthorStats, PostResponse

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Email must be a valid email address")
    return value


def _check_password_length(value: str) -> str:
    if len(value) < settings.password_min_length:
        raise ValueError(
            f"Password must be at least {settings.password_min_length} characters"
        )
    return value


def _check_password_strength(value: str) -> str:
    _check_password_length(value)
    if not re.search(r"[A-Za-z]", value) or not re.search(r"\d", value):
        raise ValueError("Password must contain both letters and numbers")
    return value


class RegisterRequest(BaseModel):
    """Schema for account registration."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255)
    password: str
    password_confirmation: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Normalize and validate the email address."""
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Enforce the minimum password length."""
        return _check_password_length(v)

    @model_validator(mode="after")
    def check_passwords_match(self) -> "RegisterRequest":
        if self.password != self.password_confirmation:
            raise ValueError("Password confirmation does not match")
        return self


class LoginRequest(BaseModel):
    """Schema for login submissions."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Normalize and validate the email address."""
        return _normalize_email(v)


class TokenResponse(BaseModel):
    """Response returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type")


class UserResponse(BaseModel):
    """Public view of an account."""

    id: int
    name: str
    email: str
    created_at: datetime
    member_since: str

    model_config = ConfigDict(from_attributes=True)


class RegisterResponse(TokenResponse):
    """Registration response carrying the new account and a token."""

    user: UserResponse


class ProfileUpdateRequest(BaseModel):
    """Schema for updating name and email."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Normalize and validate the email address."""
        return _normalize_email(v)


class PasswordChangeRequest(BaseModel):
    """Schema for changing the current account's password."""

    current_password: str = Field(..., min_length=1)
    password: str
    password_confirmation: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Enforce the password length and character policy."""
        return _check_password_strength(v)

    @model_validator(mode="after")
    def check_passwords_match(self) -> "PasswordChangeRequest":
        if self.password != self.password_confirmation:
            raise ValueError("Password confirmation does not match")
        return self


class AccountDeleteRequest(BaseModel):
    """Schema confirming account deletion with the current password."""

    password: str = Field(..., min_length=1)


class ProfileResponse(BaseModel):
    """Profile page payload."""

    user: UserResponse
    stats: AuthorStats


class DashboardResponse(BaseModel):
    """Dashboard payload with the most recent posts."""

    user: UserResponse
    stats: AuthorStats
    recent_posts: list[PostResponse]
