# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# Builds the CampaignHub API: request pipeline, routers, exception handlers
# and the email channel lifecycle.
#
# Usage:
#   campaignhub-api                      (app.server: uvicorn + shutdown supervisor)
#   uvicorn app.main:app --reload        (development)
# =============================================================================

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.auth import routes as auth_routes
from app.config import Settings, settings as default_settings
from app.exceptions import (
    CampaignHubException,
    campaignhub_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.pipeline import build_stages, install_pipeline
from app.routers import campaigns, fallback, queue, users
from lib.paystack import PaystackClient
from workers.celery_app import celery_app
from workers.channel import EmailChannel

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if default_settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def wait_for_email_channel(channel: EmailChannel, timeout: float) -> None:
    """
    Wait for queue, worker and listener to connect.

    Runs in the background: HTTP traffic is served while this waits.
    """
    ready = await asyncio.to_thread(channel.wait_until_ready, timeout)
    if not ready:
        logger.error(f"Email channel '{channel.queue_name}' not ready after {timeout}s; jobs stay queued")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: start the email channel, wire the loop exception handler
      to the shutdown supervisor (when running under app.server)
    - Shutdown: drain the email channel
    """
    app_settings: Settings = app.state.settings
    channel: EmailChannel = app.state.email_channel

    logger.info(f"Starting {app_settings.APP_NAME} API in {app_settings.ENVIRONMENT} mode")

    supervisor = getattr(app.state, "supervisor", None)
    if supervisor is not None:
        supervisor.install_loop_handler(asyncio.get_running_loop())

    channel.start()
    ready_task = asyncio.create_task(
        wait_for_email_channel(channel, app_settings.QUEUE_READY_TIMEOUT_SECONDS)
    )

    yield

    logger.info(f"Shutting down {app_settings.APP_NAME} API")

    if not ready_task.done():
        ready_task.cancel()
    await asyncio.to_thread(channel.stop)


def create_app(
    settings: Settings = default_settings,
    email_channel: EmailChannel | None = None,
    paystack: PaystackClient | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Raises:
        PaymentConfigError: If Paystack credentials are missing
    """
    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Campaigns, accounts, background email and Paystack donations.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Auth", "description": "Sign up, sign in and token verification"},
            {"name": "User", "description": "Profile of the authenticated user"},
            {"name": "Campaign", "description": "Create campaigns and accept donations"},
            {"name": "Queue", "description": "Email queue dashboard"},
            {"name": "Health", "description": "Liveness check"},
        ],
    )

    app.state.settings = settings
    app.state.paystack = paystack or PaystackClient.from_settings(settings)
    app.state.email_channel = email_channel or EmailChannel(
        celery_app,
        settings.EMAIL_QUEUE_NAME,
        run_worker=settings.EMAIL_WORKER_ENABLED,
    )

    # -------------------------------------------------------------------------
    # Request pipeline
    # -------------------------------------------------------------------------

    install_pipeline(app, build_stages(settings))

    # -------------------------------------------------------------------------
    # Exception handlers
    # -------------------------------------------------------------------------

    app.add_exception_handler(CampaignHubException, campaignhub_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # -------------------------------------------------------------------------
    # Routers
    # -------------------------------------------------------------------------

    app.include_router(queue.router, prefix="/api/v1/queue", tags=["Queue"])
    app.include_router(users.router, prefix="/api/v1/user", tags=["User"])
    app.include_router(auth_routes.router, prefix="/api/v1/auth", tags=["Auth"])
    app.include_router(campaigns.router, prefix="/api/v1/campaign", tags=["Campaign"])

    # Liveness + catch-all 404; must stay last
    app.include_router(fallback.router)

    return app


app = create_app()
