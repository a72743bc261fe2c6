"""Scheduled auto-disable sweep.

Runs outside the FastAPI request context, so sessions are created directly
from async_session_factory. The sweep owns the retry policy for evaluations
that fail with RetryableError; a connection that still fails is logged and
picked up again by the next sweep. Nothing raised here reaches the scheduler.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import UUID

from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from syncguard.config import Settings, get_settings
from syncguard.database import async_session_factory
from syncguard.exceptions import RetryableError
from syncguard.models.connection import ConnectionStatus
from syncguard.schemas.auto_disable import AutoDisableConnectionInput
from syncguard.services.auto_disable import build_auto_disable_activity
from syncguard.services.connection_store import ConnectionStore
from syncguard.services.job_persistence import JobPersistence

RETRY_WAIT = wait_exponential(multiplier=1, min=1, max=10)

# In-memory sweep state (single process, MemoryJobStore)
_last_sweep_at: datetime | None = None
_retry_next_sweep: set[UUID] = set()
_connection_locks: dict[UUID, asyncio.Lock] = {}


def connection_lock(connection_id: UUID) -> asyncio.Lock:
    """Return the lock that serializes evaluations of one connection."""
    lock = _connection_locks.get(connection_id)
    if lock is None:
        lock = _connection_locks[connection_id] = asyncio.Lock()
    return lock


def forget_connection_lock(connection_id: UUID) -> None:
    """Drop the lock of a connection that will not be evaluated again."""
    lock = _connection_locks.get(connection_id)
    if lock is not None and not lock.locked():
        del _connection_locks[connection_id]


def reset_sweep_state() -> None:
    """Forget the sweep watermark and pending retries. Useful for testing."""
    global _last_sweep_at
    _last_sweep_at = None
    _retry_next_sweep.clear()
    _connection_locks.clear()


async def evaluate_connection(
    connection_id: UUID, now: datetime, settings: Settings
) -> bool:
    """Run the auto-disable activity for one connection, retrying retryable failures.

    Every attempt uses a fresh session so a failed transaction cannot leak
    into the next attempt.

    Returns:
        True if the connection was disabled.
    """
    activity_input = AutoDisableConnectionInput(
        connection_id=connection_id, curr_timestamp=now
    )
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(settings.auto_disable_max_attempts),
        wait=RETRY_WAIT,
        retry=retry_if_exception_type(RetryableError),
        reraise=True,
    ):
        with attempt:
            async with connection_lock(connection_id):
                async with async_session_factory() as session:
                    activity = build_auto_disable_activity(session, settings)
                    output = await activity.auto_disable_failing_connection(
                        activity_input
                    )
    if output.disabled:
        forget_connection_lock(connection_id)
    return output.disabled


async def run_auto_disable_sweep(now: datetime | None = None) -> int:
    """Evaluate every active connection with a replication job that failed since the last sweep.

    The first sweep after start-up looks back one sweep interval.

    Returns:
        Number of connections disabled during this sweep.
    """
    global _last_sweep_at

    settings = get_settings()
    if not settings.auto_disables_failing_connections:
        logger.debug("Auto-disable feature off, skipping sweep")
        return 0

    now = now or datetime.now(timezone.utc)
    since = _last_sweep_at or now - timedelta(
        seconds=settings.auto_disable_sweep_interval_seconds
    )

    try:
        async with async_session_factory() as session:
            failed = await JobPersistence(session).list_connections_with_failed_jobs(
                since
            )
            active = {
                connection.id
                for connection in await ConnectionStore(session).list_connections(
                    ConnectionStatus.ACTIVE
                )
            }
    except Exception:
        logger.exception("auto_disable_sweep failed to load candidate connections")
        return 0

    candidates = [
        connection_id
        for connection_id in dict.fromkeys([*failed, *sorted(_retry_next_sweep)])
        if connection_id in active
    ]
    _retry_next_sweep.clear()
    _last_sweep_at = now

    disabled = 0
    for connection_id in candidates:
        try:
            if await evaluate_connection(connection_id, now, settings):
                disabled += 1
        except RetryableError:
            logger.exception(
                "auto_disable_sweep gave up on connection {connection} for this sweep",
                connection=connection_id,
            )
            _retry_next_sweep.add(connection_id)

    logger.info(
        "auto_disable_sweep complete | evaluated={evaluated} disabled={disabled} "
        "pending_retry={pending}",
        evaluated=len(candidates),
        disabled=disabled,
        pending=len(_retry_next_sweep),
    )
    return disabled
