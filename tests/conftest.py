# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Builds the app with a mocked email channel and Paystack client
# - Issues signed bearer tokens for authenticated requests
# =============================================================================

import os
import time
import uuid

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length")
os.environ.setdefault("PAYSTACK_HOST", "https://api.paystack.test")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_123")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("EMAIL_API_KEY", "test-email-key")

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.config import settings
from app.main import create_app
from lib.paystack import PaystackClient
from workers.channel import EmailChannel


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def make_token(user_id):
    """Factory for Supabase-style access tokens."""

    def _make(sub=None, email="ada@example.com", expires_in=3600, secret=None):
        claims = {
            "sub": str(sub or user_id),
            "email": email,
            "aud": "authenticated",
            "role": "authenticated",
            "iat": int(time.time()),
            "exp": int(time.time()) + expires_in,
        }
        return jwt.encode(claims, secret or settings.SUPABASE_JWT_SECRET, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_token):
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def mock_channel():
    """EmailChannel stand-in; enqueue returns a fixed job id."""
    channel = MagicMock(spec=EmailChannel)
    channel.queue_name = "emailQueue"
    channel.enqueue.return_value = "job-123"
    return channel


@pytest.fixture
def mock_paystack():
    paystack = MagicMock(spec=PaystackClient)
    paystack.initialize_transaction = AsyncMock()
    return paystack


@pytest.fixture
def app(mock_channel, mock_paystack):
    return create_app(settings=settings, email_channel=mock_channel, paystack=mock_paystack)


@pytest.fixture
def settings_with_timeout():
    """Settings with a request budget short enough to exceed in a test."""
    return settings.model_copy(update={"REQUEST_TIMEOUT_SECONDS": 0.2})


@pytest.fixture
def client(app):
    # Not used as a context manager: lifespan (channel start) is not run
    return TestClient(app)


@pytest.fixture
def sample_campaign_row(user_id):
    """Campaign row as returned by Supabase."""
    return {
        "id": str(uuid.uuid4()),
        "owner_id": str(user_id),
        "title": "Clean water for Ikorodu",
        "description": "Drilling two boreholes for the community",
        "goal_amount": 2500000,
        "currency": "NGN",
        "category": "community",
        "end_date": None,
        "status": "draft",
        "created_at": "2026-10-18T10:00:00+00:00",
    }
