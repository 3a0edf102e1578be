# src/inkwell/api/v1/endpoints/auth.py
"""Authentication endpoints for the Inkwell API."""

from __future__ import annotations

from fastapi import APIRouter, status

from inkwell.api.v1.dependencies import CurrentUserDep, SessionDep
from inkwell.core.security import create_access_token
from inkwell.schemas.post import AuthorStats, PostResponse
from inkwell.schemas.user import (
    DashboardResponse,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserResponse,
)
from inkwell.services import account_service

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/register",
    summary="Create an account",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(payload: RegisterRequest, db: SessionDep) -> RegisterResponse:
    """Register a new account and log it in straight away."""
    user = account_service.register(db, payload)
    return RegisterResponse(
        access_token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", summary="Exchange credentials for a token", response_model=TokenResponse)
async def login(payload: LoginRequest, db: SessionDep) -> TokenResponse:
    """Authenticate with email and password."""
    user = account_service.authenticate(db, payload.email, payload.password)
    return TokenResponse(access_token=create_access_token(user.id))


@router.get("/me", response_model=UserResponse)
async def read_me(current_user: CurrentUserDep) -> UserResponse:
    """Return the authenticated account."""
    return UserResponse.model_validate(current_user)


@router.get("/dashboard", response_model=DashboardResponse)
async def read_dashboard(current_user: CurrentUserDep, db: SessionDep) -> DashboardResponse:
    """Return post statistics and the most recent posts of the caller."""
    summary = account_service.dashboard(db, current_user)
    return DashboardResponse(
        user=UserResponse.model_validate(summary["user"]),
        stats=AuthorStats(**summary["stats"]),
        recent_posts=[PostResponse.model_validate(post) for post in summary["recent_posts"]],
    )
