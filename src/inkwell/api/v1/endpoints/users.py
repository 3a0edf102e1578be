"""Endpoints for the authenticated account's own profile."""

from __future__ import annotations

from fastapi import APIRouter, status
from sqlalchemy.orm import Session

from inkwell.api.v1.dependencies import CurrentUserDep, SessionDep
from inkwell.models import User
from inkwell.schemas.post import AuthorStats
from inkwell.schemas.user import (
    AccountDeleteRequest,
    PasswordChangeRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    UserResponse,
)
from inkwell.services import account_service

router = APIRouter(prefix="/users", tags=["users"])


def _profile(db: Session, current_user: User) -> ProfileResponse:
    summary = account_service.profile_summary(db, current_user)
    return ProfileResponse(
        user=UserResponse.model_validate(summary["user"]),
        stats=AuthorStats(**summary["stats"]),
    )


@router.get("/me/profile", response_model=ProfileResponse)
async def get_my_profile(current_user: CurrentUserDep, db: SessionDep) -> ProfileResponse:
    """Return the caller's account details and author statistics."""
    return _profile(db, current_user)


@router.patch("/me/profile", response_model=ProfileResponse)
async def update_my_profile(
    payload: ProfileUpdateRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ProfileResponse:
    """Update the caller's name and email."""
    account_service.update_profile(db, current_user, payload)
    return _profile(db, current_user)


@router.put("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_my_password(
    payload: PasswordChangeRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> None:
    """Change the caller's password after checking the current one."""
    account_service.change_password(db, current_user, payload)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_account(
    payload: AccountDeleteRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> None:
    """Delete the caller's account and all of its posts."""
    account_service.delete_account(db, current_user, payload.password)
