# =============================================================================
# app/middleware/security.py - Security Header Stages
# =============================================================================
# Two stages of the pipeline live here:
# - SecurityHeadersMiddleware: helmet-style hardening headers
# - ContentSecurityPolicyMiddleware: the Content-Security-Policy header
# =============================================================================

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

DEFAULT_SECURITY_HEADERS = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

# Headers that advertise the server stack
STRIPPED_HEADERS = ("x-powered-by", "server")

DEFAULT_CSP_DIRECTIVES = {
    "default-src": ["'self'"],
    "base-uri": ["'self'"],
    "font-src": ["'self'", "https:", "data:"],
    "form-action": ["'self'"],
    "frame-ancestors": ["'self'"],
    "img-src": ["'self'", "data:"],
    "object-src": ["'none'"],
    "script-src": ["'self'"],
    "script-src-attr": ["'none'"],
    "style-src": ["'self'", "https:", "'unsafe-inline'"],
    "upgrade-insecure-requests": [],
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add hardening headers to every response.

    Pre:  none.
    Post: every response (including error responses produced by later
          stages) carries DEFAULT_SECURITY_HEADERS; stack-identifying
          headers are removed. Headers already set downstream win.
    """

    def __init__(self, app: ASGIApp, headers: dict[str, str] | None = None):
        super().__init__(app)
        self.headers = headers or DEFAULT_SECURITY_HEADERS

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response: Response = await call_next(request)
        for name in STRIPPED_HEADERS:
            if name in response.headers:
                del response.headers[name]
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response


def build_csp_header(directives: dict[str, list[str]] | None = None) -> str:
    """
    Merge directives over DEFAULT_CSP_DIRECTIVES and render the header value.

    Example:
        build_csp_header({"object-src": ["'none'"]})
        -> "default-src 'self'; base-uri 'self'; ...; object-src 'none'; ..."
    """
    merged = dict(DEFAULT_CSP_DIRECTIVES)
    merged.update(directives or {})
    parts = []
    for name, sources in merged.items():
        parts.append(" ".join([name, *sources]) if sources else name)
    return "; ".join(parts)


class ContentSecurityPolicyMiddleware(BaseHTTPMiddleware):
    """
    Set the Content-Security-Policy header.

    Pre:  none.
    Post: every response carries the policy, in report-only form when
          configured so.
    """

    def __init__(
        self,
        app: ASGIApp,
        directives: dict[str, list[str]] | None = None,
        report_only: bool = False,
    ):
        super().__init__(app)
        self.policy = build_csp_header(directives)
        self.header_name = (
            "Content-Security-Policy-Report-Only" if report_only else "Content-Security-Policy"
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response: Response = await call_next(request)
        response.headers[self.header_name] = self.policy
        return response
