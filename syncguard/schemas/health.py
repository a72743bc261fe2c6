"""Health check response schemas."""

from datetime import datetime

from pydantic import BaseModel

from syncguard import __version__


class HealthResponse(BaseModel):
    """Response model for the /health endpoint."""

    status: str
    database: str
    scheduler: str
    timestamp: datetime
    version: str = __version__
