# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .campaign_service import CampaignService
from .notifications import queue_email
from .user_service import UserService

__all__ = [
    "CampaignService",
    "UserService",
    "queue_email",
]
