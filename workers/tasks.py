# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Tasks:
# - send_email: render a template and hand it to the email provider
#
# Delivery is at-least-once. The Celery task id doubles as the provider
# idempotency key, so a redelivered job does not send a second email.
# =============================================================================

import logging
from typing import Any

from celery import shared_task

from app.config import settings
from lib.email_templates import render_template
from lib.mailer import EmailDeliveryError, EmailSender

logger = logging.getLogger(__name__)

SEND_EMAIL_TASK = "workers.tasks.send_email"


@shared_task(
    bind=True,
    name=SEND_EMAIL_TASK,
    autoretry_for=(EmailDeliveryError,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
    max_retries=5,
    acks_late=True,
)
def send_email(
    self,
    to: str,
    template: str,
    data: dict[str, Any] | None = None,
    subject: str | None = None,
) -> dict[str, Any]:
    """
    Send one templated email.

    Args:
        to: Recipient address
        template: Template name from lib.email_templates.TEMPLATES
        data: Values for the template placeholders
        subject: Optional subject overriding the template's

    Returns:
        Dict with success flag, recipient and provider message id

    Raises:
        EmailDeliveryError: Retried with exponential backoff
        EmailRejectedError, UnknownTemplateError: Fail the job
    """
    logger.info(f"Sending '{template}' email to {to} (attempt {self.request.retries + 1})")

    rendered = render_template(template, data or {}, defaults={"app_name": settings.APP_NAME})
    message_id = EmailSender.from_settings(settings).send(
        to=to,
        subject=subject or rendered.subject,
        html=rendered.html,
        idempotency_key=self.request.id,
    )

    return {
        "success": True,
        "to": to,
        "template": template,
        "message_id": message_id,
    }
