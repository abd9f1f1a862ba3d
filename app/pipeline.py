# =============================================================================
# app/pipeline.py - Ordered Request Pipeline
# =============================================================================
# The request pipeline as an explicit, ordered list of named stages.
#
#   security_headers -> cors -> body_limit -> sanitize -> parameter_pollution
#   -> content_security_policy -> request_logging -> request_context
#   -> timeout -> (schema validation + route dispatch inside FastAPI)
#
# Starlette wraps the LAST added middleware outermost, so install_pipeline()
# adds stages in reverse to make stages[0] the first to see a request.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings
from app.context import RequestContextMiddleware
from app.middleware import (
    BodyLimitMiddleware,
    ContentSecurityPolicyMiddleware,
    ParameterPollutionMiddleware,
    RequestLoggingMiddleware,
    SanitizeMiddleware,
    SecurityHeadersMiddleware,
    TimeoutMiddleware,
)


@dataclass(frozen=True)
class Stage:
    """One named pipeline stage: a middleware class plus its options."""
    name: str
    middleware: type
    options: dict[str, Any] = field(default_factory=dict)


def build_stages(settings: Settings) -> list[Stage]:
    """
    Build the pipeline for the given settings, in execution order.

    Schema validation is not a middleware: each route declares a pydantic
    model and FastAPI validates it right before dispatch; failures reach
    validation_exception_handler.
    """
    return [
        Stage("security_headers", SecurityHeadersMiddleware),
        Stage(
            "cors",
            CORSMiddleware,
            {
                "allow_origins": settings.cors_origins_list if settings.is_production else ["*"],
                "allow_credentials": settings.is_production,
                "allow_methods": ["*"],
                "allow_headers": ["*"],
            },
        ),
        Stage("body_limit", BodyLimitMiddleware, {"max_bytes": settings.max_body_size_bytes}),
        Stage("sanitize", SanitizeMiddleware),
        Stage("parameter_pollution", ParameterPollutionMiddleware, {"whitelist": settings.hpp_whitelist_list}),
        Stage(
            "content_security_policy",
            ContentSecurityPolicyMiddleware,
            {"directives": settings.csp_directives, "report_only": settings.CSP_REPORT_ONLY},
        ),
        Stage(
            "request_logging",
            RequestLoggingMiddleware,
            {"log_format": "dev" if settings.is_development else "combined"},
        ),
        Stage("request_context", RequestContextMiddleware),
        Stage("timeout", TimeoutMiddleware, {"timeout_seconds": settings.REQUEST_TIMEOUT_SECONDS}),
    ]


def install_pipeline(app: FastAPI, stages: list[Stage]) -> None:
    """Register stages on the app so they run in list order."""
    for stage in reversed(stages):
        app.add_middleware(stage.middleware, **stage.options)
