# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Sign up, sign in and token verification. Mounted at /api/v1/auth.
# =============================================================================

import logging

from fastapi import APIRouter, status

from app.auth.dependencies import CurrentUser
from app.auth.models import LoginRequest, SignupRequest, TokenResponse
from app.dependencies import EmailChannelDep
from core.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, channel: EmailChannelDep) -> dict:
    """
    Create an account.

    A welcome email is queued; the response does not wait for it.
    """
    user = UserService.sign_up(payload, channel)
    return {
        "status": "success",
        "message": "Account created. Check your email to confirm your address.",
        "data": {"id": str(user["id"]), "email": user["email"]},
    }


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest) -> TokenResponse:
    """
    Exchange email and password for session tokens.

    Raises:
        401: If the credentials are wrong
    """
    return TokenResponse(**UserService.sign_in(payload))


@router.get("/verify")
async def verify_token(user: CurrentUser) -> dict:
    """
    Verify that the current token is valid.

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email,
    }
