# =============================================================================
# app/middleware/timeout.py - Handler Timeout Guard
# =============================================================================
# The only cancellation mechanism in the request path. Cancelling a
# handler does not touch jobs it has already handed to the email queue.
#
# Blocking handlers run in the threadpool; a thread cannot be interrupted,
# so the 408 is sent as soon as the budget runs out and whatever the
# abandoned handler produces later is discarded.
# =============================================================================

import asyncio
import logging

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.exceptions import RequestTimeoutError, error_response

logger = logging.getLogger(__name__)


def _discard_outcome(task: asyncio.Task) -> None:
    """Retrieve the result of an abandoned handler so it is not reported as unhandled."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(f"Timed-out handler finished with {type(exc).__name__}: {exc}")


class TimeoutMiddleware:
    """
    Abort downstream processing after timeout_seconds.

    Pre:  none.
    Post: a request that has not started its response in time gets a 408
          in the uniform error shape, without waiting for the handler. If
          the response had already started the stream is simply ended.
    """

    def __init__(self, app: ASGIApp, timeout_seconds: float):
        self.app = app
        self.timeout_seconds = timeout_seconds

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False
        timed_out = False

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            if timed_out:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        task = asyncio.ensure_future(self.app(scope, receive, guarded_send))
        try:
            done, _ = await asyncio.wait({task}, timeout=self.timeout_seconds)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task in done:
            task.result()
            return

        timed_out = True
        task.cancel()
        task.add_done_callback(_discard_outcome)
        logger.error(f"Request timed out after {self.timeout_seconds}s: {scope['method']} {scope['path']}")
        if response_started:
            return
        await error_response(RequestTimeoutError(self.timeout_seconds))(scope, receive, send)
