"""Tests for engine construction and ORM metadata naming."""

from unittest.mock import AsyncMock, patch

from syncguard import database
from syncguard.database import dispose_engine, engine_options
from syncguard.models import Base


def test_postgres_engine_gets_sized_pool():
    options = engine_options("postgresql+asyncpg://localhost:5432/syncguard")
    assert options["pool_size"] == 5
    assert options["pool_pre_ping"] is True


def test_sqlite_engine_keeps_driver_defaults():
    assert engine_options("sqlite+aiosqlite:///:memory:") == {}


async def test_dispose_engine_closes_pool():
    engine = AsyncMock()
    with patch.object(database, "engine", engine):
        await dispose_engine()
    engine.dispose.assert_awaited_once()


def test_primary_keys_follow_naming_convention():
    for table in Base.metadata.tables.values():
        assert table.primary_key.name == f"pk_{table.name}"
