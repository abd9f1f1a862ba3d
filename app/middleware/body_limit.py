# =============================================================================
# app/middleware/body_limit.py - Body Size Limit Stage
# =============================================================================
# Pure ASGI middleware: it has to count streamed bytes, which the
# BaseHTTPMiddleware request wrapper does not allow.
# =============================================================================

import logging

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.exceptions import PayloadTooLargeError, error_response

logger = logging.getLogger(__name__)


class BodyLimitMiddleware:
    """
    Reject request bodies larger than max_bytes with 413.

    Pre:  none.
    Post: downstream stages never observe more than max_bytes of body.
          A declared Content-Length over the limit is refused without
          reading; a streamed body is cut off as soon as it crosses the
          limit. Either way no handler runs.
    """

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = dict(scope.get("headers") or []).get(b"content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_bytes:
            logger.warning(f"Rejected {scope['method']} {scope['path']}: Content-Length {int(declared)} > {self.max_bytes}")
            await error_response(PayloadTooLargeError(self.max_bytes))(scope, receive, send)
            return

        received = 0
        response_started = False
        rejected = False

        async def reject() -> None:
            nonlocal rejected
            if rejected or response_started:
                return
            rejected = True
            logger.warning(f"Rejected {scope['method']} {scope['path']}: streamed body over {self.max_bytes} bytes")
            await error_response(PayloadTooLargeError(self.max_bytes))(scope, receive, send)

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    # Answer now: frameworks may wrap the raise below in their own error
                    await reject()
                    raise PayloadTooLargeError(self.max_bytes)
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if rejected:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except PayloadTooLargeError:
            if not rejected:
                raise
