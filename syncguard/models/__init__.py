"""ORM models package -- import all models so Alembic autogenerate discovers them."""

from syncguard.models.base import Base
from syncguard.models.connection import Connection, ConnectionStatus
from syncguard.models.job import REPLICATION_TYPES, Job, JobConfigType, JobStatus

__all__ = [
    "Base",
    "Connection",
    "ConnectionStatus",
    "Job",
    "JobConfigType",
    "JobStatus",
    "REPLICATION_TYPES",
]
