# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.API_PORT)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance.
    Payment gateway credentials are optional here; the
    Paystack client checks them when the app is built and refuses to
    start without them.
    """

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    APP_NAME: str = Field(
        default="CampaignHub",
        description="Display name used in logs and the OpenAPI schema"
    )

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # -------------------------------------------------------------------------
    # Request Pipeline
    # -------------------------------------------------------------------------

    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    MAX_BODY_SIZE_MB: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum request body size in MB"
    )

    REQUEST_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0,
        description="Handler time budget before the request is aborted with 408"
    )

    HPP_WHITELIST: str = Field(
        default="date,createdAt",
        description="Query keys allowed to repeat (comma-separated)"
    )

    CSP_DEFAULT_SRC: str = Field(
        default="'self' default.example",
        description="default-src directive of the Content-Security-Policy"
    )

    CSP_SCRIPT_SRC: str = Field(
        default="'self' js.example.com",
        description="script-src directive of the Content-Security-Policy"
    )

    CSP_OBJECT_SRC: str = Field(
        default="'none'",
        description="object-src directive of the Content-Security-Policy"
    )

    CSP_REPORT_ONLY: bool = Field(
        default=False,
        description="Send Content-Security-Policy-Report-Only instead of enforcing"
    )

    # -------------------------------------------------------------------------
    # Redis / Email Queue (Celery)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the Celery broker and result backend"
    )

    EMAIL_QUEUE_NAME: str = Field(
        default="emailQueue",
        description="Name of the queue email jobs are published to"
    )

    EMAIL_WORKER_ENABLED: bool = Field(
        default=True,
        description="Run the email worker and event listener inside the API process"
    )

    QUEUE_READY_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0,
        description="How long startup waits for the email channel to connect"
    )

    # -------------------------------------------------------------------------
    # Email Provider
    # -------------------------------------------------------------------------

    EMAIL_API_URL: str = Field(
        default="https://api.resend.com",
        description="Base URL of the transactional email HTTP API"
    )

    EMAIL_API_KEY: str = Field(
        default="",
        description="API key for the email provider"
    )

    EMAIL_FROM: str = Field(
        default="CampaignHub <no-reply@campaignhub.dev>",
        description="Sender address for outgoing email"
    )

    # -------------------------------------------------------------------------
    # Supabase (users, campaigns, auth)
    # -------------------------------------------------------------------------

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        ...,
        description="Supabase JWT secret used to verify bearer tokens (HS256)"
    )

    # -------------------------------------------------------------------------
    # Paystack
    # -------------------------------------------------------------------------

    PAYSTACK_HOST: str | None = Field(
        default=None,
        description="Paystack API base URL (e.g., https://api.paystack.co)"
    )

    PAYSTACK_SECRET_KEY: str | None = Field(
        default=None,
        description="Paystack secret key"
    )

    PAYSTACK_TIMEOUT_SECONDS: float = Field(
        default=120.0,
        gt=0,
        le=120.0,
        description="Ceiling for outbound Paystack calls"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://myapp.com" -> ["http://localhost:3000", "https://myapp.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def hpp_whitelist_list(self) -> list[str]:
        """Parse HPP_WHITELIST into a list of query keys."""
        return [key.strip() for key in self.HPP_WHITELIST.split(",") if key.strip()]

    @property
    def max_body_size_bytes(self) -> int:
        """Convert MB to bytes for body size checks."""
        return self.MAX_BODY_SIZE_MB * 1024 * 1024

    @property
    def csp_directives(self) -> dict[str, list[str]]:
        """Configured CSP directives, merged over the defaults by the CSP stage."""
        return {
            "default-src": self.CSP_DEFAULT_SRC.split(),
            "script-src": self.CSP_SCRIPT_SRC.split(),
            "object-src": self.CSP_OBJECT_SRC.split(),
            "upgrade-insecure-requests": [],
        }

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
