"""Read access to replication job history.

Every query is scoped to one connection (the job ``scope``) and returns
plain ``JobRecord`` values so the policy code never touches ORM objects.

Exports:
    JobRecord       -- immutable view of one job row
    JobPersistence  -- query service bound to an AsyncSession
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from syncguard.models.job import (
    REPLICATION_TYPES,
    Job,
    JobConfigType,
    JobStatus,
)


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes read back from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class JobRecord:
    """A replication job as seen by the auto-disable policy."""

    id: int
    connection_id: UUID
    config_type: JobConfigType
    status: JobStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_orm(cls, job: Job) -> JobRecord:
        return cls(
            id=job.id,
            connection_id=UUID(job.scope),
            config_type=JobConfigType(job.config_type),
            status=JobStatus(job.status),
            created_at=_as_utc(job.created_at),
            updated_at=_as_utc(job.updated_at),
        )


def _type_values(config_types: Iterable[JobConfigType]) -> list[str]:
    return [config_type.value for config_type in config_types]


class JobPersistence:
    """Job history queries for a single database session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_last_replication_job(self, connection_id: UUID) -> JobRecord | None:
        """Return the most recently created scheduled replication job, if any."""
        stmt = (
            select(Job)
            .where(
                Job.scope == str(connection_id),
                Job.config_type.in_(_type_values(REPLICATION_TYPES)),
                Job.is_scheduled.is_(True),
            )
            .order_by(Job.created_at.desc(), Job.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        job = result.scalar_one_or_none()
        return JobRecord.from_orm(job) if job is not None else None

    async def get_first_replication_job(self, connection_id: UUID) -> JobRecord | None:
        """Return the oldest scheduled replication job, if any."""
        stmt = (
            select(Job)
            .where(
                Job.scope == str(connection_id),
                Job.config_type.in_(_type_values(REPLICATION_TYPES)),
                Job.is_scheduled.is_(True),
            )
            .order_by(Job.created_at.asc(), Job.id.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        job = result.scalar_one_or_none()
        return JobRecord.from_orm(job) if job is not None else None

    async def list_job_status_and_timestamp(
        self,
        connection_id: UUID,
        config_types: Collection[JobConfigType],
        since: datetime,
    ) -> list[JobRecord]:
        """List jobs created at or after ``since``, most recent first.

        The newest-first order is relied upon by the history scanner and the
        warning deduplicator.
        """
        stmt = (
            select(Job)
            .where(
                Job.scope == str(connection_id),
                Job.config_type.in_(_type_values(config_types)),
                Job.created_at >= since,
            )
            .order_by(Job.created_at.desc(), Job.id.desc())
        )
        result = await self.session.execute(stmt)
        return [JobRecord.from_orm(job) for job in result.scalars().all()]

    async def list_connections_with_failed_jobs(self, since: datetime) -> list[UUID]:
        """Return connections with a replication job that failed after ``since``.

        Successes and cancellations leave the failure streak where it was, so
        they never call for a new evaluation.
        """
        stmt = (
            select(Job.scope)
            .where(
                Job.config_type.in_(_type_values(REPLICATION_TYPES)),
                Job.status == JobStatus.FAILED.value,
                Job.updated_at > since,
            )
            .distinct()
            .order_by(Job.scope)
        )
        result = await self.session.execute(stmt)
        return [UUID(scope) for scope in result.scalars().all()]

    async def get_latest_job_statuses(
        self, connection_ids: Iterable[UUID]
    ) -> dict[UUID, JobStatus]:
        """Map each connection to the status of its newest replication job.

        Connections without any replication job are left out of the result.
        """
        scopes = [str(connection_id) for connection_id in connection_ids]
        if not scopes:
            return {}

        latest = (
            select(Job.scope, func.max(Job.created_at).label("latest_created_at"))
            .where(
                Job.scope.in_(scopes),
                Job.config_type.in_(_type_values(REPLICATION_TYPES)),
            )
            .group_by(Job.scope)
            .subquery()
        )
        stmt = (
            select(Job.scope, Job.status)
            .join(
                latest,
                (Job.scope == latest.c.scope)
                & (Job.created_at == latest.c.latest_created_at),
            )
            .where(Job.config_type.in_(_type_values(REPLICATION_TYPES)))
            .order_by(Job.id.asc())
        )
        result = await self.session.execute(stmt)
        # Later ids win when two jobs share the newest created_at
        return {UUID(scope): JobStatus(status) for scope, status in result.all()}
