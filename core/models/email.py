# =============================================================================
# core/models/email.py - Email Job Schema
# =============================================================================
# An EmailJob is what a controller hands to the email channel.
# =============================================================================

from typing import Any

from pydantic import BaseModel, Field


class EmailJob(BaseModel):
    """
    A named unit of email work.

    Example:
        {
            "to": "ada@example.com",
            "template": "welcome",
            "data": {"name": "Ada"}
        }
    """

    to: str = Field(
        ...,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Recipient email address"
    )

    template: str = Field(
        ...,
        min_length=1,
        description="Template name (see lib.email_templates)"
    )

    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Values for the template placeholders"
    )

    subject: str | None = Field(
        default=None,
        description="Overrides the template subject"
    )
