"""Connection listing schemas."""

from uuid import UUID

from pydantic import BaseModel


class ConnectionSummary(BaseModel):
    """One row of the /connections listing."""

    id: UUID
    name: str
    status: str  # "active", "inactive" or "deprecated"
    display_status: str  # "disabled", "empty", "success" or "failed"
