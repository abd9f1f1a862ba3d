# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Settings specific to the email job channel.
# =============================================================================

from app.config import settings


class CeleryConfig:
    """
    Celery configuration settings.

    These are applied to the Celery app via app.config_from_object().
    """

    # -------------------------------------------------------------------------
    # Broker Settings (Redis)
    # -------------------------------------------------------------------------

    broker_url = settings.REDIS_URL

    # Store job results so the queue dashboard can report them
    result_backend = settings.REDIS_URL

    # Keep retrying the broker at startup instead of crashing the worker
    broker_connection_retry_on_startup = True

    # -------------------------------------------------------------------------
    # Task Settings
    # -------------------------------------------------------------------------

    # Acknowledge tasks after they complete (not before)
    # A job interrupted by shutdown is redelivered, never lost
    task_acks_late = True

    # A job whose worker died is requeued as well
    task_reject_on_worker_lost = True

    # Only prefetch one task at a time
    worker_prefetch_multiplier = 1

    # Task results expire after 1 hour
    result_expires = 3600

    # Email sends are short; anything over a minute is stuck.
    # Enforced only by a standalone prefork worker. The embedded solo-pool
    # worker ignores both limits and relies on the EmailSender HTTP timeout.
    task_time_limit = 60
    task_soft_time_limit = 45

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    # -------------------------------------------------------------------------
    # Task Routing
    # -------------------------------------------------------------------------

    task_routes = {
        "workers.tasks.send_email": {"queue": settings.EMAIL_QUEUE_NAME},
    }

    task_default_queue = settings.EMAIL_QUEUE_NAME

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    # Task events feed the in-process event listener
    worker_send_task_events = True
    task_send_sent_event = True

    # -------------------------------------------------------------------------
    # Timezone
    # -------------------------------------------------------------------------

    timezone = "UTC"
    enable_utc = True
