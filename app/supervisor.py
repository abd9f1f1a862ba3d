# =============================================================================
# app/supervisor.py - Shutdown Supervisor
# =============================================================================
# Process-wide fault handling. Constructed once at startup with the email
# channel and the uvicorn server, then wired to:
# - sys.excepthook / threading.excepthook   (uncaught exceptions)
# - the asyncio loop exception handler      (unhandled task/future errors)
#
# It never recovers from a fault. Its only job is an orderly exit:
#
#   RUNNING -> CRASHING -> DRAINING -> TERMINATED
#
# Uncaught exception:  log, drain email channel, exit(1) immediately.
# Unhandled async error: log, drain email channel, close the HTTP listener
#   and let in-flight responses finish; app.server exits with code 1.
# =============================================================================

import asyncio
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1


class SupervisorState(str, Enum):
    RUNNING = "running"
    CRASHING = "crashing"
    DRAINING = "draining"
    TERMINATED = "terminated"


class FaultKind(str, Enum):
    UNCAUGHT_EXCEPTION = "uncaught exception"
    UNHANDLED_REJECTION = "unhandled rejection"


class Drainable(Protocol):
    def stop(self) -> None: ...


class ShutdownSupervisor:
    """
    Turns fatal faults into an orderly, resource-safe exit.

    Args:
        channel: Job channel drained before exit (anything with stop())
        server: uvicorn.Server whose listener is closed on async faults
        exit_func: Process exit; os._exit by default so an exit from a
            non-main thread actually ends the process
    """

    def __init__(
        self,
        channel: Drainable,
        server: Any = None,
        exit_func: Callable[[int], None] = os._exit,
    ):
        self.channel = channel
        self.server = server
        self.state = SupervisorState.RUNNING
        self.exit_code: int | None = None
        self._exit = exit_func
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Wiring
    # -------------------------------------------------------------------------

    def install(self) -> None:
        """Route uncaught exceptions (main and worker threads) to on_fatal."""
        sys.excepthook = self._handle_uncaught
        threading.excepthook = self._handle_thread_exception

    def install_loop_handler(self, loop: asyncio.AbstractEventLoop) -> None:
        """Route unhandled task/future exceptions of loop to on_fatal."""
        loop.set_exception_handler(self._handle_loop_exception)

    def _handle_uncaught(self, exc_type, exc, tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc, tb)
            return
        self.on_fatal(FaultKind.UNCAUGHT_EXCEPTION, exc)

    def _handle_thread_exception(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_type is SystemExit:
            return
        self.on_fatal(FaultKind.UNCAUGHT_EXCEPTION, args.exc_value)

    def _handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        # Transport/protocol errors belong to one connection, not the process
        if exc is None or not ("task" in context or "future" in context):
            loop.default_exception_handler(context)
            return
        self.on_fatal(FaultKind.UNHANDLED_REJECTION, exc)

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    def on_fatal(self, kind: FaultKind, exc: BaseException | None) -> None:
        """
        Handle a fatal fault. Only the first fault drives the shutdown;
        later ones are logged and ignored.
        """
        with self._lock:
            if self.state is not SupervisorState.RUNNING:
                logger.error(f"{kind.value} during shutdown ignored: {_describe(exc)}")
                return
            self.state = SupervisorState.CRASHING

        logger.error(
            f"{kind.value.upper()}! Server shutting down... "
            f"{datetime.now(timezone.utc).isoformat()} {_describe(exc)}",
            exc_info=(type(exc), exc, exc.__traceback__) if exc is not None else None,
        )

        self.state = SupervisorState.DRAINING
        try:
            self.channel.stop()
        except Exception:
            logger.exception("Email channel did not stop cleanly")
        self.exit_code = EXIT_FAILURE

        if kind is FaultKind.UNHANDLED_REJECTION and self.server is not None:
            # Stop accepting connections; app.server calls terminate() once
            # in-flight responses are done.
            self.server.should_exit = True
            return

        self.terminate()

    def terminate(self) -> None:
        """Exit the process with the recorded exit code."""
        self.state = SupervisorState.TERMINATED
        code = self.exit_code if self.exit_code is not None else 0
        logger.info(f"Process exiting with code {code}")
        for handler in logging.getLogger().handlers:
            handler.flush()
        self._exit(code)


def _describe(exc: BaseException | None) -> str:
    if exc is None:
        return "unknown error"
    return f"{type(exc).__name__}: {exc}"
