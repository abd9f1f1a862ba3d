# =============================================================================
# app/server.py - Process Entry Point
# =============================================================================
# Boots uvicorn with the shutdown supervisor wired in.
#
# Usage:
#   campaignhub-api
#   python -m app.server
# =============================================================================

import logging
import sys

import uvicorn

from app.config import settings
from app.main import app
from app.supervisor import ShutdownSupervisor

logger = logging.getLogger(__name__)


def main() -> None:
    """Serve the API until shutdown, then exit with the supervisor's code."""
    config = uvicorn.Config(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        server_header=False,
        log_level="debug" if settings.DEBUG else "info",
    )
    server = uvicorn.Server(config)

    supervisor = ShutdownSupervisor(app.state.email_channel, server)
    supervisor.install()
    app.state.supervisor = supervisor

    logger.info(f"=> {settings.APP_NAME} app starting on port {settings.API_PORT}!")
    server.run()

    if supervisor.exit_code is not None:
        supervisor.terminate()
    sys.exit(0)


if __name__ == "__main__":
    main()
