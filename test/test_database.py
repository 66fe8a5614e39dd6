"""
Tests for the async database manager.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from callback_engine.config import Settings
from callback_engine.contacts.models import Contact
from callback_engine.shared.database import DatabaseManager, engine_options

import callback_engine.history.models  # noqa: F401

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


class TestEngineOptions:
    def test_postgres_uses_pool_settings(self) -> None:
        settings = Settings(
            database_url="postgresql+asyncpg://u:p@db:5432/callbacks",
            db_pool_size=3,
            db_max_overflow=1,
            sql_echo=True,
        )

        options = engine_options(settings)

        assert options == {
            "echo": True,
            "pool_pre_ping": True,
            "pool_size": 3,
            "max_overflow": 1,
        }

    def test_sqlite_memory_shares_one_connection(self) -> None:
        options = engine_options(Settings(database_url=MEMORY_URL))

        assert options["poolclass"] is StaticPool
        assert "pool_size" not in options

    def test_sqlite_file(self) -> None:
        options = engine_options(Settings(database_url="sqlite+aiosqlite:///./callbacks.db"))

        assert "poolclass" not in options
        assert options["connect_args"] == {"check_same_thread": False}


class TestDatabaseManager:
    @pytest.mark.asyncio
    async def test_transaction_commits_and_rolls_back(self) -> None:
        manager = DatabaseManager(Settings(database_url=MEMORY_URL))
        await manager.create_all()

        async with manager.transaction() as session:
            session.add(Contact(phone_number="+15555550001"))

        with pytest.raises(RuntimeError):
            async with manager.transaction() as session:
                session.add(Contact(phone_number="+15555550002"))
                await session.flush()
                raise RuntimeError("abort")

        async with manager.transaction() as session:
            count = await session.scalar(select(func.count()).select_from(Contact))

        assert count == 1
        await manager.close()
