"""Auto-disable activity input/output schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class AutoDisableConnectionInput(BaseModel):
    """Connection to evaluate and the instant the evaluation happens at."""

    connection_id: UUID
    curr_timestamp: datetime


class AutoDisableConnectionOutput(BaseModel):
    """Result of one evaluation. Warnings are a side effect and not reported."""

    disabled: bool


class AutoDisableRequest(BaseModel):
    """Request body for POST /connections/{id}/auto-disable."""

    curr_timestamp: Optional[datetime] = None
