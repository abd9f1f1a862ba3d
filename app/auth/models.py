# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication and user profile data.
# =============================================================================

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class AuthUser(BaseModel):
    """
    Authenticated user extracted from the Supabase JWT.

    This is the minimal user info available from the token itself,
    without querying the database.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None


class UserResponse(BaseModel):
    """Full user profile from the public.users table."""
    id: UUID
    email: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserUpdate(BaseModel):
    """Editable profile fields."""
    model_config = ConfigDict(extra="forbid")

    display_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    avatar_url: Optional[str] = Field(default=None, max_length=2048)


class SignupRequest(BaseModel):
    """Body of POST /auth/signup."""
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=8, max_length=128)
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=100)


class LoginRequest(BaseModel):
    """Body of POST /auth/login."""
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Session tokens returned by a successful login."""
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: str = "bearer"
    user_id: Optional[UUID] = None
