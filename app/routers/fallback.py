# =============================================================================
# app/routers/fallback.py - Liveness and Catch-All Endpoints
# =============================================================================
# Must be included LAST: routes are matched in registration order and the
# catch-all matches every path.
#
#   GET /           -> 200 {"Time": ..., "status": "Up and running"}
#   anything else   -> 404 {"status": "error", "message": "Invalid endpoint"}
#
# Methods outside ALL_METHODS surface as a routing 405, which the HTTP
# exception handler turns into the same 404.
# =============================================================================

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.exceptions import invalid_endpoint_response

router = APIRouter()

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


@router.get("/", tags=["Health"])
async def liveness() -> dict:
    """
    Liveness check for external monitors.

    Only GET is answered here; other methods on "/" fall through to the
    catch-all and get a 404.
    """
    return {
        "Time": datetime.now(timezone.utc).isoformat(),
        "status": "Up and running",
    }


@router.api_route("/{full_path:path}", methods=ALL_METHODS, include_in_schema=False)
async def invalid_endpoint(request: Request, full_path: str) -> JSONResponse:
    """Terminal fallback for any URL/method no other route matched."""
    return invalid_endpoint_response(request)
