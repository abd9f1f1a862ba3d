# =============================================================================
# core/models/campaign.py - Campaign Schemas
# =============================================================================
# These models define the API contract for campaign operations:
# - CampaignCreate: Input for POST /campaign/create
# - CampaignResponse: Output when returning a campaign
# - DonationRequest / DonationResponse: Paystack-backed donations
# - CampaignStatus: Enum for campaign states
# =============================================================================

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CampaignStatus(str, Enum):
    """
    Possible states for a campaign.

    Flow: draft -> active -> closed
    """
    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"


class CampaignCreate(BaseModel):
    """
    Schema for creating a campaign.

    Example:
        {
            "title": "Clean water for Ikorodu",
            "description": "Drilling two boreholes",
            "goal_amount": 2500000,
            "currency": "NGN"
        }
    """
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=3, max_length=120)

    description: str = Field(..., min_length=10, max_length=5000)

    goal_amount: int = Field(
        ...,
        gt=0,
        description="Target amount in the main currency unit (e.g. naira)"
    )

    currency: str = Field(default="NGN", pattern=r"^[A-Z]{3}$")

    category: str | None = Field(default=None, max_length=50)

    end_date: date | None = Field(default=None)

    @field_validator("end_date")
    @classmethod
    def end_date_in_future(cls, value: date | None) -> date | None:
        if value is not None and value <= date.today():
            raise ValueError("end_date must be in the future")
        return value


class CampaignResponse(BaseModel):
    """Schema for a stored campaign."""
    id: UUID
    owner_id: UUID
    title: str
    description: str
    goal_amount: int
    currency: str
    category: str | None = None
    end_date: date | None = None
    status: CampaignStatus
    created_at: datetime | None = None


class DonationRequest(BaseModel):
    """Body of POST /campaign/{id}/donate."""
    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    amount: int = Field(..., gt=0, description="Amount in the campaign's main currency unit")
    callback_url: str | None = Field(default=None, max_length=2048)


class DonationResponse(BaseModel):
    """Paystack checkout details for a donation."""
    campaign_id: UUID
    authorization_url: str
    access_code: str | None = None
    reference: str | None = None
    message: str | None = None
