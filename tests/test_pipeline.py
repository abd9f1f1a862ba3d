# =============================================================================
# tests/test_pipeline.py - Request Pipeline Tests
# =============================================================================
# Tests that stages are installed in the declared order and that the
# assembled pipeline behaves as one unit.
# =============================================================================

from unittest.mock import patch

from fastapi.middleware.cors import CORSMiddleware
from fastapi.testclient import TestClient

from app.config import settings
from app.context import RequestContextMiddleware
from app.main import create_app
from app.middleware import (
    BodyLimitMiddleware,
    ContentSecurityPolicyMiddleware,
    ParameterPollutionMiddleware,
    RequestLoggingMiddleware,
    SanitizeMiddleware,
    SecurityHeadersMiddleware,
    TimeoutMiddleware,
)
from app.pipeline import build_stages
from core.services.campaign_service import CampaignService


EXPECTED_ORDER = [
    "security_headers",
    "cors",
    "body_limit",
    "sanitize",
    "parameter_pollution",
    "content_security_policy",
    "request_logging",
    "request_context",
    "timeout",
]


class TestStageOrder:
    """Tests for build_stages / install_pipeline."""

    def test_stage_names(self):
        assert [stage.name for stage in build_stages(settings)] == EXPECTED_ORDER

    def test_installed_outermost_first(self, app):
        # Starlette runs user_middleware[0] first
        assert [m.cls for m in app.user_middleware] == [
            SecurityHeadersMiddleware,
            CORSMiddleware,
            BodyLimitMiddleware,
            SanitizeMiddleware,
            ParameterPollutionMiddleware,
            ContentSecurityPolicyMiddleware,
            RequestLoggingMiddleware,
            RequestContextMiddleware,
            TimeoutMiddleware,
        ]

    def test_stage_options_follow_settings(self):
        custom = settings.model_copy(update={"MAX_BODY_SIZE_MB": 2, "HPP_WHITELIST": "date,sort"})
        stages = {stage.name: stage for stage in build_stages(custom)}

        assert stages["body_limit"].options == {"max_bytes": 2 * 1024 * 1024}
        assert stages["parameter_pollution"].options == {"whitelist": ["date", "sort"]}

    def test_cors_open_outside_production(self):
        stages = {stage.name: stage for stage in build_stages(settings)}

        assert stages["cors"].options["allow_origins"] == ["*"]
        assert stages["cors"].options["allow_credentials"] is False


class TestAssembledPipeline:
    """Tests that run requests through every stage."""

    def test_oversized_body_never_reaches_controller(self, mock_channel, mock_paystack, auth_headers):
        small = settings.model_copy(update={"MAX_BODY_SIZE_MB": 1})
        client = TestClient(create_app(settings=small, email_channel=mock_channel, paystack=mock_paystack))

        with patch.object(CampaignService, "create_campaign") as create:
            response = client.post(
                "/api/v1/campaign/create",
                content=b"x" * (2 * 1024 * 1024),
                headers={**auth_headers, "Content-Type": "application/json"},
            )

        assert response.status_code == 413
        assert response.json()["code"] == "PAYLOAD_TOO_LARGE"
        # Outer stages still decorate the early answer
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        create.assert_not_called()

    def test_cors_preflight(self, client):
        response = client.options(
            "/api/v1/campaign/create",
            headers={
                "Origin": "https://app.example.com",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert "access-control-allow-origin" in response.headers

    def test_error_responses_carry_request_id(self, client):
        response = client.get("/api/v1/user/me", headers={"X-Request-ID": "trace-1"})

        assert response.status_code == 401
        assert response.headers["X-Request-ID"] == "trace-1"
