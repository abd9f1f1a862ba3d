# =============================================================================
# app/exceptions.py - Error Taxonomy and Exception Handlers
# =============================================================================
# Every error that leaves the API is rendered in one shape:
#
#   {"status": "error", "message": "...", "code": "...", ...}
#
# Pipeline stages that answer requests themselves (body limit, timeout)
# use error_response() so they produce the same payload as the handlers.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class CampaignHubException(Exception):
    """
    Base exception for the CampaignHub API.

    All HTTP-facing exceptions inherit from this class and carry the
    status code they should be answered with.
    """

    def __init__(
        self,
        message: str,
        code: str = "CAMPAIGNHUB_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "status": "error",
            "message": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Request Exceptions
# =============================================================================

class InvalidInputError(CampaignHubException):
    """Raised when a payload fails schema validation."""

    def __init__(self, errors: list[Any]):
        super().__init__(
            message="Validation error",
            code="VALIDATION_ERROR",
            status_code=422,
            suggestion="Fix the fields listed in details.errors and retry",
            details={"errors": errors},
        )


class PayloadTooLargeError(CampaignHubException):
    """Raised when a request body exceeds the configured limit."""

    def __init__(self, limit_bytes: int):
        limit_mb = limit_bytes / (1024 * 1024)
        super().__init__(
            message=f"Request body too large (max: {limit_mb:g}MB)",
            code="PAYLOAD_TOO_LARGE",
            status_code=413,
            suggestion=f"Send a body smaller than {limit_mb:g}MB",
            details={"limit_bytes": limit_bytes},
        )


class RequestTimeoutError(CampaignHubException):
    """Raised when a handler does not finish within the time budget."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            message=f"Request timed out after {timeout_seconds:g}s",
            code="REQUEST_TIMEOUT",
            status_code=408,
            suggestion="Retry the request later",
        )


# =============================================================================
# Auth Exceptions
# =============================================================================

class AuthenticationError(CampaignHubException):
    """Raised when credentials are missing, malformed or expired."""

    def __init__(self, message: str = "You are not logged in"):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401,
            suggestion="Send a valid token in the Authorization header as 'Bearer <token>'",
        )


# =============================================================================
# Domain Exceptions
# =============================================================================

class CampaignNotFoundError(CampaignHubException):
    """Raised when a campaign ID doesn't exist."""

    def __init__(self, campaign_id: str):
        super().__init__(
            message=f"Campaign not found: {campaign_id}",
            code="CAMPAIGN_NOT_FOUND",
            status_code=404,
            suggestion="Check that the campaign_id is correct",
            details={"campaign_id": campaign_id},
        )


# =============================================================================
# Upstream / Infrastructure Exceptions
# =============================================================================

class UpstreamServiceError(CampaignHubException):
    """Raised when a database or third-party call fails."""

    def __init__(self, service: str, code: str = "UPSTREAM_ERROR"):
        super().__init__(
            message=f"{service} is unavailable",
            code=code,
            status_code=502,
            suggestion="Try again later or contact support if the issue persists",
        )


class PaymentInitializationError(UpstreamServiceError):
    """Raised when the payment gateway refuses to initialize a transaction."""

    def __init__(self, message: str):
        super().__init__("Payment gateway", code="PAYMENT_INITIALIZATION_FAILED")
        self.message = message


class JobEnqueueError(CampaignHubException):
    """Raised when a background job cannot be handed to the queue."""

    def __init__(self, queue_name: str):
        super().__init__(
            message=f"Could not enqueue job on {queue_name}",
            code="QUEUE_UNAVAILABLE",
            status_code=503,
            suggestion="Try again later or contact support if the issue persists",
            details={"queue": queue_name},
        )


class PaymentConfigError(RuntimeError):
    """Raised at startup when payment gateway credentials are missing."""


# =============================================================================
# Exception Handlers
# =============================================================================

def error_response(exc: CampaignHubException, headers: dict[str, str] | None = None) -> JSONResponse:
    """Render a CampaignHubException in the uniform error shape."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def campaignhub_exception_handler(
    request: Request,
    exc: CampaignHubException
) -> JSONResponse:
    """Convert CampaignHubException to JSON response."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc, headers=headers)


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts FastAPI's error list into the uniform error shape.
    """
    errors = [
        {
            "loc": list(error.get("loc", ())),
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    return error_response(InvalidInputError(errors))


def invalid_endpoint_response(request: Request) -> JSONResponse:
    """The 404 returned for any URL/method pair no route handles."""
    logger.error(f"route not found {datetime.now(timezone.utc).isoformat()} {request.method} {request.url.path}")
    return JSONResponse(
        status_code=404,
        content={
            "status": "error",
            "message": "Invalid endpoint",
        },
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """
    Render framework HTTP errors in the uniform error shape.

    Routing misses (404, and 405 for a method no route accepts) get the
    catch-all payload.
    """
    if exc.status_code in (404, 405):
        return invalid_endpoint_response(request)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "message": str(exc.detail),
            "code": f"HTTP_{exc.status_code}",
        },
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Last handler in the chain. Builds a static response and never raises.
    """
    logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "Something went very wrong!",
            "code": "INTERNAL_ERROR",
        },
    )
