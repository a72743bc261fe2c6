"""Connection endpoints: on-demand auto-disable evaluation and listing."""

from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from syncguard.database import get_session
from syncguard.exceptions import RetryableError
from syncguard.models.connection import Connection, ConnectionStatus
from syncguard.models.job import JobStatus
from syncguard.schemas.auto_disable import (
    AutoDisableConnectionInput,
    AutoDisableConnectionOutput,
    AutoDisableRequest,
)
from syncguard.schemas.connection import ConnectionSummary
from syncguard.services.auto_disable import build_auto_disable_activity
from syncguard.services.connection_store import ConnectionStore
from syncguard.services.job_persistence import JobPersistence
from syncguard.workers.jobs import connection_lock, forget_connection_lock

router = APIRouter(prefix="/connections", tags=["connections"])


def display_status(connection: Connection, latest_job_status: JobStatus | None) -> str:
    """Status shown next to a connection in listings.

    Disabled connections say so regardless of their job history.
    """
    if connection.status == ConnectionStatus.INACTIVE.value:
        return "disabled"
    if latest_job_status is None:
        return "empty"
    if latest_job_status == JobStatus.SUCCEEDED:
        return "success"
    return "failed"


@router.get("", response_model=list[ConnectionSummary])
async def list_connections(
    session: AsyncSession = Depends(get_session),
) -> list[ConnectionSummary]:
    connections = await ConnectionStore(session).list_connections()
    latest = await JobPersistence(session).get_latest_job_statuses(
        connection.id for connection in connections
    )
    return [
        ConnectionSummary(
            id=connection.id,
            name=connection.name,
            status=connection.status,
            display_status=display_status(connection, latest.get(connection.id)),
        )
        for connection in connections
    ]


@router.post("/{connection_id}/auto-disable", response_model=AutoDisableConnectionOutput)
async def auto_disable_connection(
    connection_id: UUID,
    request: AutoDisableRequest | None = None,
    session: AsyncSession = Depends(get_session),
) -> AutoDisableConnectionOutput:
    """Evaluate the auto-disable policy for one connection.

    Meant to be called by the job runner after each completed replication
    job. Returns 503 when the evaluation failed and should be retried later.
    """
    curr_timestamp = (request.curr_timestamp if request else None) or datetime.now(UTC)
    activity = build_auto_disable_activity(session)
    try:
        async with connection_lock(connection_id):
            output = await activity.auto_disable_failing_connection(
                AutoDisableConnectionInput(
                    connection_id=connection_id, curr_timestamp=curr_timestamp
                )
            )
    except RetryableError as exc:
        logger.warning("Auto-disable request for {} failed: {}", connection_id, exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    if output.disabled:
        forget_connection_lock(connection_id)
    return output
