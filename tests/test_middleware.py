# =============================================================================
# tests/test_middleware.py - Pipeline Stage Tests
# =============================================================================
# Each stage is mounted alone on a small FastAPI app with echo routes, so
# the assertions see exactly what the stage hands downstream.
# =============================================================================

import asyncio
import json
import time
from urllib.parse import parse_qsl

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from app.config import Settings
from app.context import RequestContextDep, RequestContextMiddleware
from app.middleware import (
    BodyLimitMiddleware,
    ContentSecurityPolicyMiddleware,
    ParameterPollutionMiddleware,
    SanitizeMiddleware,
    SecurityHeadersMiddleware,
    TimeoutMiddleware,
)
from app.middleware.pollution import collapse_query_pairs
from app.middleware.sanitize import sanitize_query_string, sanitize_value
from app.middleware.security import build_csp_header


def make_echo_app(middleware=None, **options) -> FastAPI:
    """Build an app with echo routes behind a single middleware."""
    app = FastAPI()
    app.state.calls = 0

    @app.post("/echo")
    async def echo(request: Request):
        app.state.calls += 1
        body = await request.body()
        return {"length": len(body), "text": body.decode("utf-8", errors="replace")}

    @app.post("/form")
    async def form(request: Request):
        return dict(parse_qsl((await request.body()).decode()))

    @app.get("/query")
    async def query(request: Request):
        return {"items": request.query_params.multi_items()}

    @app.get("/slow")
    async def slow():
        await asyncio.sleep(2)
        return {"done": True}

    @app.get("/blocking")
    def blocking():
        time.sleep(1)
        return {"done": True}

    @app.get("/context")
    async def context(ctx: RequestContextDep):
        return {"request_id": ctx.request_id, "method": ctx.method, "path": ctx.path}

    if middleware is not None:
        app.add_middleware(middleware, **options)
    return app


# =============================================================================
# Body Limit
# =============================================================================

class TestBodyLimit:
    """Tests for BodyLimitMiddleware."""

    @pytest.fixture
    def app(self):
        return make_echo_app(BodyLimitMiddleware, max_bytes=1024)

    def test_small_body_passes(self, app):
        response = TestClient(app).post("/echo", json={"name": "ok"})

        assert response.status_code == 200
        assert app.state.calls == 1

    def test_declared_length_over_limit(self, app):
        response = TestClient(app).post("/echo", content=b"x" * 2048)

        assert response.status_code == 413
        body = response.json()
        assert body["status"] == "error"
        assert body["code"] == "PAYLOAD_TOO_LARGE"
        assert app.state.calls == 0

    def test_streamed_body_over_limit(self, app):
        def chunks():
            yield b"x" * 700
            yield b"x" * 700

        response = TestClient(app).post("/echo", content=chunks())

        assert response.status_code == 413

    def test_limit_from_settings_is_in_megabytes(self):
        assert Settings(MAX_BODY_SIZE_MB=50).max_body_size_bytes == 50 * 1024 * 1024


# =============================================================================
# Sanitize
# =============================================================================

class TestSanitizeHelpers:
    """Tests for the pure sanitizing functions."""

    def test_drops_operator_and_dotted_keys(self):
        cleaned = sanitize_value({"email": {"$gt": ""}, "profile.admin": True, "name": "ada"})

        assert cleaned == {"email": {}, "name": "ada"}

    def test_escapes_markup_recursively(self):
        cleaned = sanitize_value({"tags": ["<script>alert(1)</script>"], "count": 3})

        assert cleaned == {"tags": ["&lt;script&gt;alert(1)&lt;/script&gt;"], "count": 3}

    def test_query_string(self):
        cleaned = sanitize_query_string(b"q=%3Cb%3E&%24ne=1&page=2")

        assert cleaned == b"q=%26lt%3Bb%26gt%3B&page=2"


class TestSanitizeMiddleware:
    """Tests for SanitizeMiddleware."""

    @pytest.fixture
    def client(self):
        return TestClient(make_echo_app(SanitizeMiddleware))

    def test_json_body_is_rewritten(self, client):
        response = client.post("/echo", json={"name": "<i>ada</i>", "$where": "1", "nested": {"a.b": 1}})

        assert response.status_code == 200
        data = response.json()
        assert json.loads(data["text"]) == {"name": "&lt;i&gt;ada&lt;/i&gt;", "nested": {}}
        # Content-Length follows the rewritten body
        assert data["length"] == len(b'{"name": "&lt;i&gt;ada&lt;/i&gt;", "nested": {}}')

    def test_form_body_is_rewritten(self, client):
        response = client.post("/form", data={"name": "<b>", "$set": "x"})

        assert response.json() == {"name": "&lt;b&gt;"}

    def test_invalid_json_passes_through(self, client):
        response = client.post(
            "/echo",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.json()["length"] == len(b"{not json")

    def test_query_is_rewritten(self, client):
        response = client.get("/query", params={"q": "<x>", "$gt": "1"})

        assert response.json() == {"items": [["q", "&lt;x&gt;"]]}


# =============================================================================
# Parameter Pollution
# =============================================================================

class TestParameterPollution:
    """Tests for the last-wins query policy."""

    def test_collapse_last_wins(self):
        pairs = [("foo", "a"), ("bar", "1"), ("foo", "b")]

        assert collapse_query_pairs(pairs, set()) == [("foo", "b"), ("bar", "1")]

    def test_collapse_keeps_whitelisted(self):
        pairs = [("date", "x"), ("date", "y"), ("foo", "a")]

        assert collapse_query_pairs(pairs, {"date"}) == [("date", "x"), ("date", "y"), ("foo", "a")]

    def test_middleware(self):
        app = make_echo_app(ParameterPollutionMiddleware, whitelist=["date", "createdAt"])

        response = TestClient(app).get("/query?foo=a&foo=b&date=x&date=y")

        assert response.json() == {"items": [["foo", "b"], ["date", "x"], ["date", "y"]]}


# =============================================================================
# Security Headers
# =============================================================================

class TestSecurityHeaders:
    """Tests for SecurityHeadersMiddleware and ContentSecurityPolicyMiddleware."""

    def test_hardening_headers(self):
        response = TestClient(make_echo_app(SecurityHeadersMiddleware)).get("/query")

        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Strict-Transport-Security"].startswith("max-age=")
        assert "x-powered-by" not in response.headers

    def test_csp_header(self):
        app = make_echo_app(ContentSecurityPolicyMiddleware, directives={"script-src": ["'self'", "https://js.paystack.co"]})

        response = TestClient(app).get("/query")

        policy = response.headers["Content-Security-Policy"]
        assert "script-src 'self' https://js.paystack.co" in policy
        assert "object-src 'none'" in policy

    def test_csp_report_only(self):
        app = make_echo_app(ContentSecurityPolicyMiddleware, report_only=True)

        response = TestClient(app).get("/query")

        assert "Content-Security-Policy-Report-Only" in response.headers
        assert "Content-Security-Policy" not in response.headers

    def test_build_csp_header_valueless_directive(self):
        assert build_csp_header().endswith("upgrade-insecure-requests")


# =============================================================================
# Request Context and Timeout
# =============================================================================

class TestRequestContext:
    """Tests for RequestContextMiddleware."""

    def test_generated_request_id(self):
        response = TestClient(make_echo_app(RequestContextMiddleware)).get("/context")

        data = response.json()
        assert data["method"] == "GET"
        assert data["path"] == "/context"
        assert response.headers["X-Request-ID"] == data["request_id"]

    def test_incoming_request_id_is_kept(self):
        client = TestClient(make_echo_app(RequestContextMiddleware))

        response = client.get("/context", headers={"X-Request-ID": "abc123"})

        assert response.json()["request_id"] == "abc123"

    def test_dependency_without_middleware_fails(self):
        client = TestClient(make_echo_app(), raise_server_exceptions=False)

        assert client.get("/context").status_code == 500


class TestTimeout:
    """Tests for TimeoutMiddleware."""

    def test_slow_handler_gets_408(self):
        client = TestClient(make_echo_app(TimeoutMiddleware, timeout_seconds=0.05))

        response = client.get("/slow")

        assert response.status_code == 408
        assert response.json()["code"] == "REQUEST_TIMEOUT"

    def test_blocking_handler_gets_408(self):
        client = TestClient(make_echo_app(TimeoutMiddleware, timeout_seconds=0.05))

        response = client.get("/blocking")

        assert response.status_code == 408
        assert response.json()["code"] == "REQUEST_TIMEOUT"

    def test_fast_handler_unaffected(self):
        client = TestClient(make_echo_app(TimeoutMiddleware, timeout_seconds=5))

        assert client.get("/query").status_code == 200
