# =============================================================================
# workers/channel.py - Email Job Channel
# =============================================================================
# The email channel owns three handles on one named queue:
# - queue:    a producer connection used by enqueue()
# - worker:   an embedded Celery worker consuming only this queue
# - listener: an EmailEventListener observing job lifecycle events
#
# They are started together and stopped together. stop() closes the worker
# first so no job is pulled off the queue while connections are closing,
# then the listener, then the producer connection.
#
# Usage:
#   channel = EmailChannel(celery_app, "emailQueue")
#   channel.start()
#   channel.wait_until_ready(timeout=30)
#   job_id = channel.enqueue(EmailJob(to="ada@example.com", template="welcome"))
#   channel.stop()
# =============================================================================

from __future__ import annotations

import logging
import threading
from typing import Any

from celery import Celery
from celery.worker import WorkController
from kombu.exceptions import KombuError, OperationalError
from redis.exceptions import RedisError

from app.exceptions import JobEnqueueError
from core.models.email import EmailJob
from workers.events import EmailEventListener
from workers.tasks import SEND_EMAIL_TASK, send_email

logger = logging.getLogger(__name__)

# Publishing retries before enqueue() gives up with 503
PUBLISH_RETRY_POLICY = {
    "max_retries": 3,
    "interval_start": 0,
    "interval_step": 0.2,
    "interval_max": 1.0,
}


class EmbeddedWorker(WorkController):
    """
    Celery worker that runs on a thread of the API process.

    Solo pool, one job at a time. Does not install signal handlers; the
    API process owns those.
    """

    def __init__(self, *args, **kwargs):
        self._consumer_ready = threading.Event()
        super().__init__(*args, **kwargs)

    def on_consumer_ready(self, consumer):
        self._consumer_ready.set()

    def wait_until_ready(self, timeout: float | None = None) -> bool:
        return self._consumer_ready.wait(timeout)


class EmailChannel:
    """
    Named email queue with one worker and one event listener.

    enqueue() may be called before the worker is ready: jobs wait in
    Redis until a worker picks them up.
    """

    def __init__(self, app: Celery, queue_name: str, run_worker: bool = True):
        self.app = app
        self.queue_name = queue_name
        self.run_worker = run_worker
        self.worker: EmbeddedWorker | None = None
        self.listener: EmailEventListener | None = None
        self._connection = None
        self._worker_thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._started = False
        self._stopped = False
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready and not self._stopped

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Open the producer connection and start the worker and listener threads."""
        with self._lock:
            if self._started or self._stopped:
                return
            self._started = True

            self._connection = self.app.connection_for_write()

            if self.run_worker:
                self.worker = EmbeddedWorker(
                    app=self.app,
                    pool_cls="solo",
                    concurrency=1,
                    queues=[self.queue_name],
                    without_heartbeat=True,
                    without_mingle=True,
                    without_gossip=True,
                )
                self._worker_thread = threading.Thread(
                    target=self.worker.start,
                    name="email-worker",
                    daemon=True,
                )
                self._worker_thread.start()

                self.listener = EmailEventListener(self.app, SEND_EMAIL_TASK)
                self.listener.start()

        logger.info(f"Email channel '{self.queue_name}' started (embedded worker: {self.run_worker})")

    def wait_until_ready(self, timeout: float | None = None) -> bool:
        """
        Block until the queue, the worker and the listener are connected.

        Returns:
            True when all three are ready, False on timeout
        """
        if not self._started or self._stopped:
            return False

        try:
            self._connection.ensure_connection(max_retries=3)
        except OperationalError as e:
            logger.error(f"Email queue connection failed: {e}")
            return False

        if self.worker is not None and not self.worker.wait_until_ready(timeout):
            logger.error(f"Email worker not ready after {timeout}s")
            return False

        if self.listener is not None and not self.listener.wait_until_ready(timeout):
            logger.error(f"Email event listener not ready after {timeout}s")
            return False

        self._ready = True
        logger.info(f"Email channel '{self.queue_name}' is ready")
        return True

    def stop(self) -> None:
        """
        Close worker, listener and queue connection, in that order.

        Safe to call more than once and from any thread; only the first
        call does anything.
        """
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._ready = False

        logger.info(f"Stopping email channel '{self.queue_name}'")

        if self.worker is not None:
            self.worker.stop(in_sighandler=False)
            if self._worker_thread is not None:
                self._worker_thread.join(10)

        if self.listener is not None:
            self.listener.stop()

        if self._connection is not None:
            self._connection.release()

        logger.info(f"Email channel '{self.queue_name}' stopped")

    # -------------------------------------------------------------------------
    # Jobs
    # -------------------------------------------------------------------------

    def enqueue(self, job: EmailJob) -> str:
        """
        Publish an email job and return its id.

        Returns once Redis has accepted the message; does not wait for
        delivery.

        Raises:
            JobEnqueueError: If the channel is stopped or the broker refuses
        """
        try:
            with self._lock:
                if self._stopped:
                    raise JobEnqueueError(self.queue_name)
                result = send_email.apply_async(
                    kwargs=job.model_dump(),
                    queue=self.queue_name,
                    connection=self._connection,
                    retry=True,
                    retry_policy=PUBLISH_RETRY_POLICY,
                )
        except (KombuError, RedisError, OSError) as e:
            logger.error(f"Failed to enqueue '{job.template}' email: {e}")
            raise JobEnqueueError(self.queue_name) from e

        logger.info(f"Enqueued '{job.template}' email job {result.id}")
        return result.id

    def stats(self) -> dict[str, Any]:
        """Queue statistics for the dashboard."""
        with self.app.connection_for_read() as connection:
            declared = connection.default_channel.queue_declare(queue=self.queue_name, passive=False)

        return {
            "queue": self.queue_name,
            "ready": self.is_ready,
            "stopped": self._stopped,
            "pending": declared.message_count,
            "completed": self.listener.completed if self.listener else None,
            "failed": self.listener.failed if self.listener else None,
        }

    def job_status(self, job_id: str) -> dict[str, Any]:
        """Look up a job's state in the result backend."""
        result = self.app.AsyncResult(job_id)
        status: dict[str, Any] = {"job_id": job_id, "status": result.status}
        if result.status == "SUCCESS":
            status["result"] = result.result
        elif result.status == "FAILURE":
            status["error"] = str(result.result) if result.result else "Unknown error"
        return status
