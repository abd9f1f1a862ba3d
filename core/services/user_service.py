# =============================================================================
# core/services/user_service.py - User and Auth Business Logic
# =============================================================================
# Sign up, sign in and profile operations on top of Supabase.
# =============================================================================

import logging
from typing import Any

from app.auth.models import AuthUser, LoginRequest, SignupRequest, UserUpdate
from app.exceptions import AuthenticationError, CampaignHubException, UpstreamServiceError
from core.models.email import EmailJob
from core.services.notifications import queue_email
from lib.supabase_client import SupabaseClient, SupabaseClientError
from workers.channel import EmailChannel

logger = logging.getLogger(__name__)


class UserService:
    """Service for account and profile operations."""

    @staticmethod
    def sign_up(payload: SignupRequest, channel: EmailChannel) -> dict[str, Any]:
        """
        Register a user and queue the welcome email.

        Raises:
            CampaignHubException: 400 if Supabase refuses the sign up
            UpstreamServiceError: If Supabase is unreachable
        """
        try:
            user = SupabaseClient.sign_up(payload.email, payload.password, payload.display_name)
        except SupabaseClientError as e:
            if e.status is not None and 400 <= e.status < 500:
                raise CampaignHubException(
                    message="Could not create account",
                    code="SIGN_UP_REJECTED",
                    status_code=400,
                    suggestion="Check the email address or sign in if you already have an account",
                ) from e
            logger.error(f"Sign up failed: {e}")
            raise UpstreamServiceError("Authentication service") from e

        logger.info(f"Signed up user: {user['id']}")

        queue_email(channel, EmailJob(
            to=payload.email,
            template="welcome",
            data={"name": payload.display_name or payload.email.split("@")[0]},
        ))
        return user

    @staticmethod
    def sign_in(payload: LoginRequest) -> dict[str, Any]:
        """
        Exchange credentials for session tokens.

        Raises:
            AuthenticationError: If the credentials are wrong
            UpstreamServiceError: If Supabase is unreachable
        """
        try:
            return SupabaseClient.sign_in(payload.email, payload.password)
        except SupabaseClientError as e:
            if e.status is not None and 400 <= e.status < 500:
                raise AuthenticationError("Incorrect email or password") from e
            logger.error(f"Sign in failed: {e}")
            raise UpstreamServiceError("Authentication service") from e

    @staticmethod
    def get_profile(user: AuthUser) -> dict[str, Any]:
        """
        Return the user's profile row.

        Falls back to token data when the public.users row doesn't exist
        yet (the insert trigger may not have run).
        """
        try:
            profile = SupabaseClient.fetch_user(user.id)
        except SupabaseClientError as e:
            logger.warning(f"Could not fetch user profile: {e}")
            profile = None

        return profile or {"id": user.id, "email": user.email}

    @staticmethod
    def update_profile(user: AuthUser, changes: UserUpdate) -> dict[str, Any]:
        """Apply profile changes and return the updated profile."""
        fields = changes.model_dump(exclude_unset=True)
        if not fields:
            return UserService.get_profile(user)

        try:
            updated = SupabaseClient.update_user(user.id, fields)
        except SupabaseClientError as e:
            logger.error(f"Failed to update user {user.id}: {e}")
            raise UpstreamServiceError("Database") from e

        return updated or UserService.get_profile(user)
