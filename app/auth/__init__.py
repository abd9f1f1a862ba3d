# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication using Supabase Auth.
#
# Usage:
#   from app.auth import CurrentUser, protect
#
#   @router.get("/protected")
#   async def protected(user: CurrentUser):
#       return {"user_id": user.id}
# =============================================================================

from app.auth.dependencies import CurrentUser, decode_token, protect
from app.auth.models import AuthUser, UserResponse

__all__ = [
    "protect",
    "decode_token",
    "CurrentUser",
    "AuthUser",
    "UserResponse",
]
