# =============================================================================
# core/services/notifications.py - Queued Email Helper
# =============================================================================
# Emails follow a committed write. A queue outage is logged and the
# caller's result stands.
# =============================================================================

import logging

from app.exceptions import JobEnqueueError
from core.models.email import EmailJob
from workers.channel import EmailChannel

logger = logging.getLogger(__name__)


def queue_email(channel: EmailChannel, job: EmailJob) -> str | None:
    """
    Queue an email job, tolerating an unavailable queue.

    Returns:
        The job ID, or None if the job could not be queued
    """
    try:
        return channel.enqueue(job)
    except JobEnqueueError as e:
        logger.error(f"Could not queue {job.template} email to {job.to}: {e.message}")
        return None
