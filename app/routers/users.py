# =============================================================================
# app/routers/users.py - User Profile Endpoints
# =============================================================================
# Mounted at /api/v1/user. Every route requires authentication.
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth.dependencies import CurrentUser, protect
from app.auth.models import UserResponse, UserUpdate
from core.services.user_service import UserService

router = APIRouter(dependencies=[Depends(protect)])


@router.get("/me", response_model=UserResponse)
def get_me(user: CurrentUser) -> UserResponse:
    """Get the current user's profile."""
    return UserResponse(**UserService.get_profile(user))


@router.patch("/me", response_model=UserResponse)
def update_me(changes: UserUpdate, user: CurrentUser) -> UserResponse:
    """Update display name and/or avatar."""
    return UserResponse(**UserService.update_profile(user, changes))
