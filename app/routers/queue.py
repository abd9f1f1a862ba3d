# =============================================================================
# app/routers/queue.py - Email Queue Dashboard
# =============================================================================
# Mounted at /api/v1/queue. Read-only view of the email job channel.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Path
from kombu.exceptions import KombuError
from pydantic import BaseModel
from redis.exceptions import RedisError

from app.dependencies import EmailChannelDep
from app.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class QueueStatsResponse(BaseModel):
    """Email queue overview."""
    queue: str
    ready: bool
    stopped: bool
    pending: int
    completed: int | None = None
    failed: int | None = None


class JobStatusResponse(BaseModel):
    """
    State of one job.

    status is one of PENDING, STARTED, RETRY, SUCCESS, FAILURE.
    PENDING also covers unknown job ids.
    """
    job_id: str
    status: str
    result: dict | None = None
    error: str | None = None


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=QueueStatsResponse)
def queue_overview(channel: EmailChannelDep) -> QueueStatsResponse:
    """Readiness and pending job count of the email queue."""
    try:
        return QueueStatsResponse(**channel.stats())
    except (KombuError, RedisError, OSError) as e:
        logger.error(f"Error reading queue stats: {e}")
        raise UpstreamServiceError("Queue broker") from e


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
def job_status(
    job_id: Annotated[str, Path(description="Email job ID")],
    channel: EmailChannelDep,
) -> JobStatusResponse:
    """Get the status of an email job."""
    try:
        return JobStatusResponse(**channel.job_status(job_id))
    except (KombuError, RedisError, OSError) as e:
        logger.error(f"Error getting job status: {e}")
        raise UpstreamServiceError("Queue broker") from e
