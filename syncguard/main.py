"""FastAPI application entry point with lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from syncguard import __version__
from syncguard.api.connections import router as connections_router
from syncguard.api.health import router as health_router
from syncguard.config import get_settings
from syncguard.database import dispose_engine
from syncguard.utils.logging import setup_logging
from syncguard.workers.scheduler import register_jobs, scheduler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: setup on startup, teardown on shutdown."""
    settings = get_settings()

    # Configure structured logging first so all startup logs are formatted
    setup_logging(settings.log_level, settings.log_json)

    scheduler.start()
    register_jobs()
    logger.info(
        "syncguard started (auto-disable {})",
        "on" if settings.auto_disables_failing_connections else "off",
    )

    yield

    scheduler.shutdown(wait=False)
    await dispose_engine()
    logger.info("syncguard stopped")


app = FastAPI(
    title="syncguard",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(connections_router)
