# =============================================================================
# app/middleware/ - Request Pipeline Stages
# =============================================================================
# Each module implements one stage. The order they run in is defined in
# app/pipeline.py, not here.
# =============================================================================

from app.middleware.access_log import RequestLoggingMiddleware
from app.middleware.body_limit import BodyLimitMiddleware
from app.middleware.pollution import ParameterPollutionMiddleware
from app.middleware.sanitize import SanitizeMiddleware
from app.middleware.security import ContentSecurityPolicyMiddleware, SecurityHeadersMiddleware
from app.middleware.timeout import TimeoutMiddleware

__all__ = [
    "BodyLimitMiddleware",
    "ContentSecurityPolicyMiddleware",
    "ParameterPollutionMiddleware",
    "RequestLoggingMiddleware",
    "SanitizeMiddleware",
    "SecurityHeadersMiddleware",
    "TimeoutMiddleware",
]
