# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# - users.py: Profile of the authenticated user
# - campaigns.py: Campaign creation and donations
# - queue.py: Email queue dashboard
# - fallback.py: Liveness check and the catch-all 404 (mounted last)
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import campaigns
from . import fallback
from . import queue
from . import users

__all__ = [
    "campaigns",
    "fallback",
    "queue",
    "users",
]
