# =============================================================================
# workers/ - Email Job Channel
# =============================================================================
# - celery_app.py: Celery application configuration
# - config.py: Worker-specific settings
# - tasks.py: send_email task
# - events.py: Job lifecycle event listener
# - channel.py: EmailChannel (queue + embedded worker + listener)
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
