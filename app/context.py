# =============================================================================
# app/context.py - Per-Request Context
# =============================================================================
# A typed value stamped by the request_context pipeline stage and read by
# handlers through a dependency. Lives in a ContextVar for the duration of
# one request; nothing is attached to the Request object itself.
#
# Usage:
#   @router.post("/create")
#   async def create(ctx: RequestContextDep):
#       logger.info(f"received at {ctx.request_time}")
# =============================================================================

import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends
from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = "x-request-id"


@dataclass(frozen=True)
class RequestContext:
    """Derived per-request fields, created at pipeline entry."""
    request_id: str
    request_time: str
    method: str
    path: str


_request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


def current_request_context() -> RequestContext | None:
    """Return the context of the request being served, if any."""
    return _request_context.get()


def get_request_context() -> RequestContext:
    """
    FastAPI dependency returning the current RequestContext.

    Raises:
        RuntimeError: If called outside the request_context stage
    """
    ctx = _request_context.get()
    if ctx is None:
        raise RuntimeError("RequestContext is not set; is RequestContextMiddleware installed?")
    return ctx


RequestContextDep = Annotated[RequestContext, Depends(get_request_context)]


class RequestContextMiddleware:
    """
    Stamp a RequestContext for every HTTP request.

    Pre:  none.
    Post: the context is readable by every later stage and handler;
          the response carries X-Request-ID; the context is reset when
          the response ends.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = dict(scope.get("headers") or []).get(REQUEST_ID_HEADER.encode())
        ctx = RequestContext(
            request_id=incoming.decode("latin-1") if incoming else uuid.uuid4().hex,
            request_time=datetime.now(timezone.utc).isoformat(),
            method=scope["method"],
            path=scope["path"],
        )

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER.encode(), ctx.request_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        token = _request_context.set(ctx)
        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            _request_context.reset(token)
