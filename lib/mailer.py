# =============================================================================
# lib/mailer.py - Email Provider Client
# =============================================================================
# Sends transactional email through an HTTP email API (Resend-compatible).
# Called from the send_email Celery task only; never from a request handler.
# =============================================================================

from __future__ import annotations

import logging

import httpx

from app.config import Settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Transient delivery failure (network, 429, 5xx). The task retries it."""


class EmailRejectedError(Exception):
    """The provider refused the message (4xx). Retrying will not help."""


class EmailSender:
    """
    Synchronous client for the email provider.

    The idempotency key makes a redelivered job safe: the provider
    drops a second send carrying the same key.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        sender: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.sender = sender
        self.timeout = timeout
        self._api_key = api_key
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> EmailSender:
        return cls(
            api_url=settings.EMAIL_API_URL,
            api_key=settings.EMAIL_API_KEY,
            sender=settings.EMAIL_FROM,
        )

    def send(self, to: str, subject: str, html: str, idempotency_key: str | None = None) -> str | None:
        """
        Send one email.

        Returns:
            Provider message ID (if the provider returns one)

        Raises:
            EmailDeliveryError: On network errors, 429 and 5xx
            EmailRejectedError: On other 4xx answers
        """
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        try:
            with httpx.Client(base_url=self.api_url, timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    "/emails",
                    headers=headers,
                    json={"from": self.sender, "to": [to], "subject": subject, "html": html},
                )
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Email provider unreachable: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise EmailDeliveryError(f"Email provider returned {response.status_code}")
        if response.status_code >= 400:
            raise EmailRejectedError(f"Email provider rejected message: {response.status_code} {response.text[:200]}")

        message_id = response.json().get("id") if response.content else None
        logger.info(f"Email '{subject}' sent to {to} (id={message_id})")
        return message_id
