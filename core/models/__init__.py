# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# - campaign.py: Campaign and donation schemas
# - email.py: EmailJob, the unit of work of the email channel
#
# These models define the "contract" between API and clients.
# =============================================================================

from .campaign import (
    CampaignCreate,
    CampaignResponse,
    CampaignStatus,
    DonationRequest,
    DonationResponse,
)
from .email import EmailJob

__all__ = [
    "CampaignCreate",
    "CampaignResponse",
    "CampaignStatus",
    "DonationRequest",
    "DonationResponse",
    "EmailJob",
]
