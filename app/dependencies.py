# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for process-wide resources built in
# app.main.create_app() and kept on app.state.
# =============================================================================

from typing import Annotated

from fastapi import Depends, Request

from lib.paystack import PaystackClient
from workers.channel import EmailChannel


def get_email_channel(request: Request) -> EmailChannel:
    """Return the email job channel of this process."""
    return request.app.state.email_channel


def get_paystack_client(request: Request) -> PaystackClient:
    """Return the Paystack client of this process."""
    return request.app.state.paystack


# Type aliases for dependency injection
EmailChannelDep = Annotated[EmailChannel, Depends(get_email_channel)]
PaystackDep = Annotated[PaystackClient, Depends(get_paystack_client)]
