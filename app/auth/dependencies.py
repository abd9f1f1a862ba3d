# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# `protect` is the gate in front of every authenticated route. It verifies
# the Supabase-issued bearer token (HS256, audience "authenticated") and
# short-circuits with 401 before any controller runs.
#
# Usage:
#   router = APIRouter(dependencies=[Depends(protect)])
#
#   @router.get("/me")
#   async def me(user: CurrentUser):
#       return {"user_id": user.id}
# =============================================================================

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.auth.models import AuthUser
from app.config import settings
from app.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our 401, not a framework 403
bearer_scheme = HTTPBearer(auto_error=False)

JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = "authenticated"


def decode_token(token: str) -> AuthUser:
    """
    Verify a JWT and return the user it identifies.

    Raises:
        AuthenticationError: If the token is expired, invalid or lacks a user id
    """
    try:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
        )
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise AuthenticationError("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise AuthenticationError("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing 'sub' claim")
        raise AuthenticationError("Invalid token: missing user ID")

    try:
        user_uuid = UUID(user_id)
    except ValueError:
        logger.warning(f"Invalid UUID in token: {user_id}")
        raise AuthenticationError("Invalid token: malformed user ID")

    return AuthUser(id=user_uuid, email=payload.get("email"))


async def protect(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> AuthUser:
    """
    Require an authenticated caller.

    Raises:
        AuthenticationError: 401 if the Authorization header is missing or invalid
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    user = decode_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id}")
    return user


CurrentUser = Annotated[AuthUser, Depends(protect)]
