# =============================================================================
# app/middleware/access_log.py - Request Logging Stage
# =============================================================================
# One access-log line per request on the "app.access" logger.
#
# Formats:
#   dev      -> GET /api/v1/campaign/create 201 12.345 ms - 312
#   combined -> 127.0.0.1 - - [18/Oct/2026:10:00:00 +0000] "GET / HTTP/1.1" 200 57 "-" "curl/8.0"
# =============================================================================

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Literal

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

access_logger = logging.getLogger("app.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log method, path, status, size and duration of every request.

    Pre:  none.
    Post: exactly one log line per request that produced a response.
    """

    def __init__(self, app: ASGIApp, log_format: Literal["dev", "combined"] = "dev"):
        super().__init__(app)
        self.log_format = log_format

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        if self.log_format == "combined":
            access_logger.info(self._combined(request, response))
        else:
            access_logger.info(self._dev(request, response, elapsed_ms))
        return response

    @staticmethod
    def _dev(request: Request, response: Response, elapsed_ms: float) -> str:
        length = response.headers.get("content-length", "-")
        return f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.3f} ms - {length}"

    @staticmethod
    def _combined(request: Request, response: Response) -> str:
        client = request.client.host if request.client else "-"
        stamp = datetime.now(timezone.utc).strftime("%d/%b/%Y:%H:%M:%S %z")
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        http_version = request.scope.get("http_version", "1.1")
        length = response.headers.get("content-length", "-")
        referer = request.headers.get("referer", "-")
        user_agent = request.headers.get("user-agent", "-")
        return (
            f'{client} - - [{stamp}] "{request.method} {target} HTTP/{http_version}" '
            f'{response.status_code} {length} "{referer}" "{user_agent}"'
        )
