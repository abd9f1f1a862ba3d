# =============================================================================
# core/services/campaign_service.py - Campaign Business Logic
# =============================================================================
# Handles campaign creation, lookup and donation checkout.
# Separates HTTP concerns from database/business logic.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from starlette.concurrency import run_in_threadpool

from app.auth.models import AuthUser
from app.exceptions import CampaignNotFoundError, PaymentInitializationError, UpstreamServiceError
from core.models.campaign import CampaignCreate, CampaignStatus, DonationRequest
from core.models.email import EmailJob
from core.services.notifications import queue_email
from lib.paystack import PaystackClient
from lib.supabase_client import SupabaseClient, SupabaseClientError
from workers.channel import EmailChannel

logger = logging.getLogger(__name__)

# Paystack amounts are in the lowest currency unit (kobo, pesewas, cents)
MINOR_UNITS_PER_MAJOR = 100


class CampaignService:
    """
    Service for campaign operations.

    Provides a clean interface between API routes and the database,
    the email channel and the payment gateway.
    """

    @staticmethod
    def create_campaign(
        owner: AuthUser,
        payload: CampaignCreate,
        channel: EmailChannel,
    ) -> dict[str, Any]:
        """
        Create a campaign and queue the confirmation email.

        Args:
            owner: The authenticated user creating the campaign
            payload: Validated campaign fields
            channel: Email channel for the confirmation email

        Returns:
            Created campaign row

        Raises:
            UpstreamServiceError: If the database insert fails
        """
        data = payload.model_dump(mode="json")
        data.update({
            "owner_id": str(owner.id),
            "status": CampaignStatus.DRAFT.value,
        })

        try:
            campaign = SupabaseClient.insert_campaign(data)
        except SupabaseClientError as e:
            logger.error(f"Failed to create campaign for user {owner.id}: {e}")
            raise UpstreamServiceError("Database") from e

        logger.info(f"Created campaign: {campaign['id']} for user: {owner.id}")

        if owner.email:
            queue_email(channel, EmailJob(
                to=owner.email,
                template="campaign_created",
                data={
                    "title": campaign["title"],
                    "goal_amount": campaign["goal_amount"],
                    "currency": campaign["currency"],
                    "campaign_id": campaign["id"],
                },
            ))

        return campaign

    @staticmethod
    def get_campaign(campaign_id: UUID | str) -> dict[str, Any]:
        """
        Get a campaign by ID.

        Raises:
            CampaignNotFoundError: If the campaign doesn't exist
            UpstreamServiceError: If the lookup fails
        """
        try:
            campaign = SupabaseClient.fetch_campaign(campaign_id)
        except SupabaseClientError as e:
            logger.error(f"Failed to fetch campaign {campaign_id}: {e}")
            raise UpstreamServiceError("Database") from e

        if not campaign:
            raise CampaignNotFoundError(str(campaign_id))

        return campaign

    @staticmethod
    async def start_donation(
        campaign_id: UUID | str,
        donation: DonationRequest,
        paystack: PaystackClient,
        channel: EmailChannel,
    ) -> dict[str, Any]:
        """
        Initialize a Paystack checkout for a donation to a campaign.

        Returns:
            Dict with campaign_id, authorization_url, access_code,
            reference and message

        Raises:
            CampaignNotFoundError: If the campaign doesn't exist
            PaymentInitializationError: If Paystack refuses the transaction
        """
        campaign = await run_in_threadpool(CampaignService.get_campaign, campaign_id)

        payload = {
            "email": donation.email,
            "amount": donation.amount * MINOR_UNITS_PER_MAJOR,
            "currency": campaign.get("currency", "NGN"),
            "metadata": {"campaign_id": str(campaign_id)},
        }
        if donation.callback_url:
            payload["callback_url"] = donation.callback_url

        result = await paystack.initialize_transaction(payload)
        if not result.success or not result.data:
            raise PaymentInitializationError(result.message or "Error initializing transaction")

        await run_in_threadpool(queue_email, channel, EmailJob(
            to=donation.email,
            template="donation_initialized",
            data={
                "title": campaign["title"],
                "authorization_url": result.data["authorization_url"],
            },
        ))

        return {
            "campaign_id": campaign_id,
            "authorization_url": result.data["authorization_url"],
            "access_code": result.data.get("access_code"),
            "reference": result.data.get("reference"),
            "message": result.message,
        }
