# =============================================================================
# workers/events.py - Email Queue Event Listener
# =============================================================================
# Observes job lifecycle events published by the worker (task-succeeded,
# task-failed, task-retried) and logs them. Runs on its own daemon thread
# with its own broker connection, so it can never block job execution.
# =============================================================================

import logging
import threading
from typing import Any

from celery import Celery
from celery.events.receiver import EventReceiver

logger = logging.getLogger(__name__)


class _NotifyingReceiver(EventReceiver):
    """EventReceiver that reports when its consumer is attached to the broker."""

    def __init__(self, *args, on_ready=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._on_ready = on_ready

    def on_consume_ready(self, connection, channel, consumers, **kwargs):
        super().on_consume_ready(connection, channel, consumers, **kwargs)
        if self._on_ready is not None:
            self._on_ready()


class EmailEventListener:
    """
    Lifecycle event listener for one task name.

    Usage:
        listener = EmailEventListener(celery_app, "workers.tasks.send_email")
        listener.start()
        listener.wait_until_ready(timeout=30)
        ...
        listener.stop()
    """

    def __init__(self, app: Celery, task_name: str):
        self.app = app
        self.task_name = task_name
        self.completed = 0
        self.failed = 0
        self._state = app.events.State()
        self._ready = threading.Event()
        self._stop_requested = threading.Event()
        self._receiver: EventReceiver | None = None
        self._thread: threading.Thread | None = None

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="email-event-listener", daemon=True)
        self._thread.start()

    def wait_until_ready(self, timeout: float | None = None) -> bool:
        return self._ready.wait(timeout)

    def stop(self, timeout: float = 10.0) -> None:
        """Unsubscribe and wait for the listener thread to finish."""
        self._stop_requested.set()
        if self._receiver is not None:
            self._receiver.should_stop = True
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Email event listener did not stop within timeout")
        self._ready.clear()

    def _run(self) -> None:
        handlers = {
            "task-succeeded": self.on_completed,
            "task-failed": self.on_failed,
            "task-retried": self.on_retried,
            "*": self._state.event,
        }
        with self.app.connection_for_read() as connection:
            self._receiver = _NotifyingReceiver(
                connection,
                handlers=handlers,
                app=self.app,
                on_ready=self._ready.set,
            )
            if self._stop_requested.is_set():
                return
            logger.info("Email event listener starting")
            # run() reconnects on broker connection errors until should_stop
            self._receiver.run(wakeup=False)
        logger.info("Email event listener stopped")

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def _task_name(self, event: dict[str, Any]) -> str | None:
        self._state.event(event)
        task = self._state.tasks.get(event.get("uuid"))
        return task.name if task is not None else None

    def on_completed(self, event: dict[str, Any]) -> None:
        if self._task_name(event) != self.task_name:
            return
        self.completed += 1
        logger.info(f"Email job {event.get('uuid')} completed in {event.get('runtime', 0):.2f}s")

    def on_failed(self, event: dict[str, Any]) -> None:
        if self._task_name(event) != self.task_name:
            return
        self.failed += 1
        logger.error(f"Email job {event.get('uuid')} failed: {event.get('exception')}")

    def on_retried(self, event: dict[str, Any]) -> None:
        if self._task_name(event) != self.task_name:
            return
        logger.warning(f"Email job {event.get('uuid')} will be retried: {event.get('exception')}")
