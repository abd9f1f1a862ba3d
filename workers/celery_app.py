# =============================================================================
# workers/celery_app.py - Celery Application Configuration
# =============================================================================
# This module creates and configures the Celery application instance that
# backs the email job channel.
#
# The API process runs an embedded worker (see workers/channel.py). A
# standalone worker can still be started for local debugging:
#   celery -A workers.celery_app worker -Q emailQueue --concurrency=1 --loglevel=info
# =============================================================================

import logging

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun

from app.config import settings

# Set up logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _redacted(url: str) -> str:
    return url.split("@")[-1] if "@" in url else url


def create_celery_app() -> Celery:
    """
    Create and configure Celery application.

    Returns:
        Configured Celery app instance
    """
    app = Celery(
        "campaignhub_worker",
        broker=settings.REDIS_URL,
        backend=settings.REDIS_URL,
        include=["workers.tasks"],
    )

    app.config_from_object("workers.config:CeleryConfig")

    logger.info(f"Celery app created with broker: {_redacted(settings.REDIS_URL)}")

    return app


# Create the Celery app instance
celery_app = create_celery_app()


# =============================================================================
# Celery Signals (Lifecycle Hooks)
# =============================================================================

@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, **extra):
    """Log when a task starts."""
    logger.info(f"Task started: {task.name} [{task_id}]")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, retval=None, state=None, **extra):
    """Log when a task completes."""
    logger.info(f"Task completed: {task.name} [{task_id}] - State: {state}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, traceback=None, **extra):
    """Log when a task fails."""
    logger.error(f"Task failed: {sender.name} [{task_id}] - Error: {exception}")
