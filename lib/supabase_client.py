# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase operations used by the API:
# - Auth: sign up and password sign in
# - Users: profile rows in public.users
# - Campaigns: rows in public.campaigns
#
# It implements the singleton pattern to reuse a single client connection.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   campaign = SupabaseClient.fetch_campaign(campaign_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings

logger = logging.getLogger(__name__)

# PostgREST code returned by .single() when no row matches
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    status carries the HTTP status Supabase answered with, when known,
    so callers can tell bad credentials from an outage.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class SupabaseClient:
    """
    Typed wrapper for Supabase operations.

    One client instance is shared across the application. All methods are
    class methods for easy access without instantiation.
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses the service_role key, appropriate for server-side operations.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                )
        return cls._instance

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    @classmethod
    def sign_up(cls, email: str, password: str, display_name: str | None = None) -> dict[str, Any]:
        """
        Register a user with Supabase Auth.

        Returns:
            Dict with id and email of the created user

        Raises:
            SupabaseClientError: If Supabase refuses the sign up
        """
        client = cls.get_client()
        try:
            response = client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"display_name": display_name}},
            })
        except Exception as e:
            raise SupabaseClientError(
                message=f"Sign up failed: {e}",
                code="SIGN_UP_FAILED",
                status=getattr(e, "status", None),
            )

        if response.user is None:
            raise SupabaseClientError(message="Sign up returned no user", code="SIGN_UP_FAILED")

        return {"id": response.user.id, "email": response.user.email}

    @classmethod
    def sign_in(cls, email: str, password: str) -> dict[str, Any]:
        """
        Exchange email and password for a session.

        Returns:
            Dict with access_token, refresh_token, expires_in and user_id
        """
        client = cls.get_client()
        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            raise SupabaseClientError(
                message=f"Sign in failed: {e}",
                code="SIGN_IN_FAILED",
                status=getattr(e, "status", None),
            )

        session = response.session
        if session is None:
            raise SupabaseClientError(message="Sign in returned no session", code="SIGN_IN_FAILED", status=401)

        return {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "expires_in": session.expires_in,
            "user_id": response.user.id if response.user else None,
        }

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_user(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a profile row from public.users, or None if it doesn't exist yet."""
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)

        try:
            response = (
                client.table("users")
                .select("*")
                .eq("id", user_id_str)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch user: {e}",
                code="FETCH_USER_FAILED",
                details={"user_id": user_id_str},
            )

    @classmethod
    def update_user(cls, user_id: str | UUID, fields: dict[str, Any]) -> dict[str, Any] | None:
        """Update a profile row and return it."""
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)

        try:
            response = (
                client.table("users")
                .update(fields)
                .eq("id", user_id_str)
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update user: {e}",
                code="UPDATE_USER_FAILED",
                details={"user_id": user_id_str},
            )

    # -------------------------------------------------------------------------
    # Campaigns
    # -------------------------------------------------------------------------

    @classmethod
    def insert_campaign(cls, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a campaign row.

        Returns:
            The stored row (id, created_at filled in by the database)
        """
        client = cls.get_client()

        try:
            response = client.table("campaigns").insert(data).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert campaign: {e}",
                code="INSERT_CAMPAIGN_FAILED",
            )

        if not response.data:
            raise SupabaseClientError(message="Insert returned no data", code="INSERT_CAMPAIGN_FAILED")

        return response.data[0]

    @classmethod
    def fetch_campaign(cls, campaign_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a campaign by ID, or None if not found."""
        client = cls.get_client()
        campaign_id_str = cls._normalize_uuid(campaign_id)

        try:
            response = (
                client.table("campaigns")
                .select("*")
                .eq("id", campaign_id_str)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch campaign: {e}",
                code="FETCH_CAMPAIGN_FAILED",
                details={"campaign_id": campaign_id_str},
            )
