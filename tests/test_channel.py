# =============================================================================
# tests/test_channel.py - Email Channel Tests
# =============================================================================
# The Celery app, broker connection, worker and listener are all mocks;
# these tests cover the channel's own lifecycle and publishing rules.
# =============================================================================

from unittest.mock import MagicMock, call, patch

import pytest
from kombu.exceptions import OperationalError

from app.exceptions import JobEnqueueError
from core.models.email import EmailJob
from workers.channel import PUBLISH_RETRY_POLICY, EmailChannel


@pytest.fixture
def celery_app():
    return MagicMock()


@pytest.fixture
def channel(celery_app):
    channel = EmailChannel(celery_app, "emailQueue", run_worker=False)
    channel.start()
    return channel


@pytest.fixture
def job():
    return EmailJob(to="ada@example.com", template="welcome", data={"name": "Ada"})


@pytest.fixture
def send_email():
    with patch("workers.channel.send_email") as task:
        task.apply_async.return_value = MagicMock(id="job-42")
        yield task


def attach_handles(channel):
    """Give the channel mock worker/listener/connection recorded on one manager."""
    manager = MagicMock()
    channel.worker = manager.worker
    channel._worker_thread = manager.thread
    channel.listener = manager.listener
    channel._connection = manager.connection
    return manager


# =============================================================================
# Lifecycle
# =============================================================================

class TestLifecycle:
    """Tests for start / wait_until_ready / stop."""

    def test_start_opens_producer_connection(self, channel, celery_app):
        celery_app.connection_for_write.assert_called_once()
        assert channel.worker is None
        assert channel.listener is None

    def test_start_is_idempotent(self, channel, celery_app):
        channel.start()

        celery_app.connection_for_write.assert_called_once()

    def test_not_ready_before_start(self, celery_app):
        channel = EmailChannel(celery_app, "emailQueue", run_worker=False)

        assert channel.wait_until_ready(timeout=0.01) is False
        assert channel.is_ready is False

    def test_ready_when_broker_reachable(self, channel):
        assert channel.wait_until_ready(timeout=0.01) is True
        assert channel.is_ready is True

    def test_not_ready_when_broker_unreachable(self, channel, celery_app):
        celery_app.connection_for_write.return_value.ensure_connection.side_effect = OperationalError("refused")

        assert channel.wait_until_ready(timeout=0.01) is False

    def test_waits_for_worker_and_listener(self, channel):
        manager = attach_handles(channel)
        manager.worker.wait_until_ready.return_value = True
        manager.listener.wait_until_ready.return_value = False

        assert channel.wait_until_ready(timeout=0.01) is False
        manager.worker.wait_until_ready.assert_called_once_with(0.01)

    def test_stop_order(self, channel):
        manager = attach_handles(channel)

        channel.stop()

        assert manager.mock_calls == [
            call.worker.stop(in_sighandler=False),
            call.thread.join(10),
            call.listener.stop(),
            call.connection.release(),
        ]
        assert channel.is_stopped is True

    def test_stop_is_idempotent(self, channel):
        manager = attach_handles(channel)

        channel.stop()
        channel.stop()

        manager.worker.stop.assert_called_once()
        manager.listener.stop.assert_called_once()
        manager.connection.release.assert_called_once()

    def test_stop_without_start(self, celery_app):
        channel = EmailChannel(celery_app, "emailQueue")

        channel.stop()

        assert channel.is_stopped is True
        celery_app.connection_for_write.assert_not_called()

    def test_no_restart_after_stop(self, channel, celery_app):
        channel.stop()
        channel.start()

        celery_app.connection_for_write.assert_called_once()


# =============================================================================
# Enqueue
# =============================================================================

class TestEnqueue:
    """Tests for EmailChannel.enqueue."""

    def test_publishes_to_named_queue(self, channel, job, send_email):
        job_id = channel.enqueue(job)

        assert job_id == "job-42"
        send_email.apply_async.assert_called_once_with(
            kwargs={"to": "ada@example.com", "template": "welcome", "data": {"name": "Ada"}, "subject": None},
            queue="emailQueue",
            connection=channel._connection,
            retry=True,
            retry_policy=PUBLISH_RETRY_POLICY,
        )

    def test_enqueue_after_stop_is_refused(self, channel, job, send_email):
        channel.stop()

        with pytest.raises(JobEnqueueError) as exc_info:
            channel.enqueue(job)

        assert exc_info.value.status_code == 503
        send_email.apply_async.assert_not_called()

    def test_broker_error_becomes_job_enqueue_error(self, channel, job, send_email):
        send_email.apply_async.side_effect = OperationalError("connection reset")

        with pytest.raises(JobEnqueueError):
            channel.enqueue(job)

    def test_job_published_before_stop_closes_connection(self, channel, job, send_email):
        manager = attach_handles(channel)
        manager.attach_mock(send_email.apply_async, "publish")

        channel.enqueue(job)
        channel.stop()

        names = [c[0] for c in manager.mock_calls]
        assert names.index("publish") < names.index("connection.release")


# =============================================================================
# Dashboard Queries
# =============================================================================

class TestDashboard:
    """Tests for stats / job_status."""

    def test_stats(self, channel, celery_app):
        connection = celery_app.connection_for_read.return_value.__enter__.return_value
        connection.default_channel.queue_declare.return_value = MagicMock(message_count=3)

        stats = channel.stats()

        assert stats == {
            "queue": "emailQueue",
            "ready": False,
            "stopped": False,
            "pending": 3,
            "completed": None,
            "failed": None,
        }

    def test_job_status_success(self, channel, celery_app):
        celery_app.AsyncResult.return_value = MagicMock(status="SUCCESS", result={"success": True})

        assert channel.job_status("job-1") == {
            "job_id": "job-1",
            "status": "SUCCESS",
            "result": {"success": True},
        }

    def test_job_status_failure(self, channel, celery_app):
        celery_app.AsyncResult.return_value = MagicMock(status="FAILURE", result=RuntimeError("rejected"))

        assert channel.job_status("job-1")["error"] == "rejected"
