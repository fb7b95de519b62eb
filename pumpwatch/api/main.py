"""
FastAPI application entry point for the pumpwatch API.

Settings are loaded and validated at startup. The lifespan initialises the
database engine (creating tables for SQLite installs), seeds the device
registry from DEVICES_FILE, and runs the overdue-session sweep in the
background when SWEEP_INTERVAL_S is set.

CHANGELOG:
- 2026-10-18: Initial creation
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pumpwatch import __version__
from pumpwatch.api.dashboard import router as dashboard_router
from pumpwatch.api.health import router as health_router
from pumpwatch.api.ingest import router as ingest_router
from pumpwatch.config import Settings
from pumpwatch.db import session as db_session
from pumpwatch.services.locks import DeviceLocks
from pumpwatch.services.registry import load_devices_file, register_devices
from pumpwatch.services.sweep import run_sweep_loop

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup wiring and orderly shutdown.

    Startup:
        - Loads and validates Settings from the environment.
        - Initialises the async engine; creates tables on SQLite.
        - Seeds the registry from DEVICES_FILE, if set.
        - Starts the sweep loop when SWEEP_INTERVAL_S > 0.

    Shutdown:
        - Stops the sweep loop and disposes the engine.
    """
    settings = Settings()
    app.state.settings = settings
    app.state.locks = DeviceLocks()

    session_factory = db_session.init_engine(settings.database_url)
    if settings.database_url.startswith("sqlite"):
        assert db_session.async_engine is not None
        await db_session.create_all(db_session.async_engine)

    if settings.devices_file:
        await register_devices(session_factory, load_devices_file(settings.devices_file))

    shutdown_event = asyncio.Event()
    sweep_task: asyncio.Task | None = None
    if settings.sweep_interval_s > 0:
        sweep_task = asyncio.create_task(
            run_sweep_loop(
                session_factory=session_factory,
                locks=app.state.locks,
                settings=settings,
                shutdown_event=shutdown_event,
            )
        )

    logger.info(
        "Pumpwatch API ready (session_timeout_s=%s, sweep_interval_s=%s)",
        settings.session_timeout_s,
        settings.sweep_interval_s,
    )
    try:
        yield
    finally:
        shutdown_event.set()
        if sweep_task is not None:
            await sweep_task
        await db_session.dispose_engine()
        logger.info("Pumpwatch API shutting down")


app = FastAPI(
    title="Pumpwatch API",
    description="Pump run-event tracking from current telemetry pings.",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(ingest_router)
app.include_router(dashboard_router)


@app.get("/")
async def root() -> dict:
    """Root health check endpoint.

    Returns:
        dict: JSON object with application status.
    """
    return {"status": "ok"}
