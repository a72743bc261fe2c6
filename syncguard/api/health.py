"""Health check endpoint with database and scheduler state."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from syncguard.database import get_session
from syncguard.schemas.health import HealthResponse
from syncguard.workers.scheduler import scheduler

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(
    session: AsyncSession = Depends(get_session),
) -> HealthResponse:
    """Check application, database and scheduler health.

    Always answers 200 so the platform healthcheck passes while the process
    is alive; database trouble is reported as status "degraded".
    """
    scheduler_status = "running" if scheduler.running else "stopped"
    try:
        await session.execute(text("SELECT 1"))
        logger.debug("Health check passed -- database connected")
        return HealthResponse(
            status="ok",
            database="connected",
            scheduler=scheduler_status,
            timestamp=datetime.now(UTC),
        )
    except Exception as exc:
        logger.error(f"Health check failed -- database error: {exc}")
        return HealthResponse(
            status="degraded",
            database="disconnected",
            scheduler=scheduler_status,
            timestamp=datetime.now(UTC),
        )
