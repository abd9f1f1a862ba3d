# =============================================================================
# app/routers/campaigns.py - Campaign Endpoints
# =============================================================================
# Mounted at /api/v1/campaign. The router-level `protect` dependency runs
# before any handler, so an unauthenticated call never reaches a controller.
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status

from app.auth.dependencies import CurrentUser, protect
from app.context import RequestContextDep
from app.dependencies import EmailChannelDep, PaystackDep
from core.models.campaign import CampaignCreate, CampaignResponse, DonationRequest, DonationResponse
from core.services.campaign_service import CampaignService

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(protect)])


@router.post("/create", response_model=CampaignResponse, status_code=status.HTTP_201_CREATED)
def create_campaign(
    payload: CampaignCreate,
    user: CurrentUser,
    channel: EmailChannelDep,
    ctx: RequestContextDep,
) -> CampaignResponse:
    """
    Create a campaign owned by the current user.

    The confirmation email is queued and sent in the background.
    """
    logger.info(f"Campaign create request {ctx.request_id} received at {ctx.request_time}")
    campaign = CampaignService.create_campaign(user, payload, channel)
    return CampaignResponse(**campaign)


@router.get("/{campaign_id}", response_model=CampaignResponse)
def get_campaign(
    campaign_id: Annotated[UUID, Path(description="Campaign UUID")],
) -> CampaignResponse:
    """Get a campaign by ID."""
    return CampaignResponse(**CampaignService.get_campaign(campaign_id))


@router.post("/{campaign_id}/donate", response_model=DonationResponse)
async def donate(
    campaign_id: Annotated[UUID, Path(description="Campaign UUID")],
    donation: DonationRequest,
    paystack: PaystackDep,
    channel: EmailChannelDep,
) -> DonationResponse:
    """
    Start a Paystack checkout for a donation.

    Raises:
        404: If the campaign doesn't exist
        502: If Paystack refuses the transaction
    """
    checkout = await CampaignService.start_donation(campaign_id, donation, paystack, channel)
    return DonationResponse(**checkout)
