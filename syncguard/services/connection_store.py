"""Connection lookups and status changes."""

from __future__ import annotations

from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from syncguard.exceptions import ConnectionNotFoundError
from syncguard.models.connection import Connection, ConnectionStatus


class ConnectionStore:
    """Read and update connection rows within one database session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_connection(self, connection_id: UUID) -> Connection:
        connection = await self.session.get(Connection, connection_id)
        if connection is None:
            raise ConnectionNotFoundError(connection_id)
        return connection

    async def set_status(self, connection_id: UUID, status: ConnectionStatus) -> Connection:
        """Persist a new status for the connection and commit."""
        connection = await self.get_connection(connection_id)
        previous = connection.status
        connection.status = status.value
        await self.session.commit()
        logger.info(
            "Connection {} status changed from {} to {}",
            connection_id,
            previous,
            status.value,
        )
        return connection

    async def list_connections(
        self, status: ConnectionStatus | None = None
    ) -> list[Connection]:
        stmt = select(Connection).order_by(Connection.name.asc())
        if status is not None:
            stmt = stmt.where(Connection.status == status.value)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
