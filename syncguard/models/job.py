"""Job model: one execution attempt scoped to a connection."""

from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, Boolean, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from syncguard.models.base import Base


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    INCOMPLETE = "incomplete"
    FAILED = "failed"
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"


class JobConfigType(str, Enum):
    CHECK_CONNECTION_SOURCE = "check_connection_source"
    CHECK_CONNECTION_DESTINATION = "check_connection_destination"
    DISCOVER_SCHEMA = "discover_schema"
    GET_SPEC = "get_spec"
    SYNC = "sync"
    RESET_CONNECTION = "reset_connection"


# Job types that move data for a connection; the only ones the auto-disable
# policy looks at.
REPLICATION_TYPES: frozenset[JobConfigType] = frozenset(
    {JobConfigType.SYNC, JobConfigType.RESET_CONNECTION}
)


class Job(Base):
    __tablename__ = "jobs"
    __table_args__ = (Index("idx_jobs_scope_created_at", "scope", "created_at"),)

    # SQLite only autoincrements INTEGER primary keys
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    scope: Mapped[str] = mapped_column(String(64))  # connection id
    config_type: Mapped[str] = mapped_column(String(40))
    status: Mapped[str] = mapped_column(String(20), default=JobStatus.PENDING.value)
    is_scheduled: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
