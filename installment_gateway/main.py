"""
Installment Gateway - Main Application Entry Point

Deferred-payment order engine: checkout in tranches, buyer proofs,
seller validation and periodic reconciliation of overdue plans.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, List

import structlog
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from installment_gateway import __version__
from installment_gateway.core.config import settings
from installment_gateway.core.dependencies import (
    build_notification_relay,
    build_reconciliation_sweeper,
)
from installment_gateway.core.logging import setup_logging
from installment_gateway.core.metrics import get_metrics, get_metrics_content_type
from installment_gateway.infrastructure.clients import HttpNotificationDispatcher
from installment_gateway.infrastructure.database import db_manager
from installment_gateway.infrastructure.workers import BackgroundPoller
from installment_gateway.presentation.api import api_router
from installment_gateway.presentation.middleware import (
    LoggingMiddleware,
    RequestContextMiddleware,
    error_handler_middleware,
)


async def run_sweep_job():
    async with db_manager.session() as session:
        return await build_reconciliation_sweeper(session).run()


async def run_relay_job():
    async with db_manager.session() as session:
        relay = build_notification_relay(session, HttpNotificationDispatcher())
        return await relay.run()


def build_pollers() -> List[BackgroundPoller]:
    return [
        BackgroundPoller(
            name="reconciliation_sweeper",
            job=run_sweep_job,
            interval_seconds=settings.sweeper_interval_seconds,
        ),
        BackgroundPoller(
            name="notification_relay",
            job=run_relay_job,
            interval_seconds=settings.notification_relay_interval_seconds,
        ),
    ]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events:
    - Set up logging and the database engine
    - Start the background sweeper and relay when enabled
    - Stop them and dispose of the engine on shutdown
    """
    setup_logging()
    db_manager.init()

    logger = structlog.get_logger(__name__)

    pollers: List[BackgroundPoller] = []
    if settings.sweeper_enabled:
        pollers = build_pollers()
        for poller in pollers:
            await poller.start()

    logger.info(
        "application_started",
        version=__version__,
        background_workers=len(pollers),
    )

    yield

    for poller in pollers:
        await poller.stop()
    await db_manager.close()
    logger.info("application_stopped")


app = FastAPI(
    title="Installment Gateway",
    description="Deferred-payment order engine",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestContextMiddleware)

error_handler_middleware(app)

app.include_router(api_router)


if settings.metrics_enabled:

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(
            content=get_metrics(),
            media_type=get_metrics_content_type(),
        )


@app.get("/", include_in_schema=False)
async def root():
    return RedirectResponse(url="/docs")
