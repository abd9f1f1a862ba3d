# =============================================================================
# lib/paystack.py - Paystack Client Wrapper
# =============================================================================
# Thin wrapper around the Paystack REST API.
#
# Every call returns a PaymentResult envelope; transport and HTTP errors are
# folded into {success: False, ...} and never raised to the caller.
#
# Usage:
#   client = PaystackClient.from_settings(settings)
#   result = await client.initialize_transaction({"email": "a@b.co", "amount": 500000})
#   if result.success:
#       redirect_to(result.data["authorization_url"])
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from app.config import Settings
from app.exceptions import PaymentConfigError

logger = logging.getLogger(__name__)

# Two minutes; Paystack can be slow to answer but calls must not hang
DEFAULT_TIMEOUT_SECONDS = 120.0


class PaymentResult(BaseModel):
    """Normalized result of one Paystack call."""
    success: bool
    data: Any = None
    message: str | None = None


class PaystackClient:
    """
    Async Paystack API client.

    Construction fails when host or secret key is missing, so a
    misconfigured deployment cannot boot.
    """

    def __init__(
        self,
        host: str | None,
        secret_key: str | None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not host or not secret_key:
            raise PaymentConfigError("PAYSTACK_HOST or PAYSTACK_SECRET_KEY is not set")

        self.host = host.rstrip("/")
        self.timeout = min(timeout, DEFAULT_TIMEOUT_SECONDS)
        self._secret_key = secret_key
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> PaystackClient:
        return cls(
            host=settings.PAYSTACK_HOST,
            secret_key=settings.PAYSTACK_SECRET_KEY,
            timeout=settings.PAYSTACK_TIMEOUT_SECONDS,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.host,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._secret_key}",
            },
        )

    async def initialize_transaction(self, payload: dict[str, Any]) -> PaymentResult:
        """
        Initialize a Paystack transaction.

        Args:
            payload: Paystack initialize body (email, amount in the lowest
                currency unit, optional currency/metadata/callback_url)

        Returns:
            PaymentResult with data = Paystack's "data" object on success,
            or the error body (if any) on failure
        """
        try:
            async with self._client() as client:
                response = await client.post("/transaction/initialize", json=payload)
                response.raise_for_status()
                body = response.json()

            return PaymentResult(
                success=True,
                data=body.get("data"),
                message=body.get("message"),
            )

        except httpx.HTTPStatusError as e:
            logger.warning(f"Paystack rejected transaction initialize: {e.response.status_code}")
            return PaymentResult(
                success=False,
                data=_error_body(e.response),
                message="Error initializing transaction",
            )

        except (httpx.HTTPError, ValueError) as e:
            # ValueError covers a 2xx answer that is not JSON
            logger.warning(f"Paystack transaction initialize failed: {type(e).__name__}: {e}")
            return PaymentResult(
                success=False,
                data=None,
                message="Error initializing transaction",
            )


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
