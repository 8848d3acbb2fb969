"""Unit tests for SQLite connection pool."""

import asyncio
from pathlib import Path
from unittest.mock import MagicMock, patch

import aiosqlite
import pytest

import stockledger.infrastructure.storage.sqlite.connection as conn_module
from stockledger.core.exceptions import DatabaseError
from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    PoolStatus,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from stockledger.infrastructure.storage.sqlite.migrations.migrator import discover_migrations


@pytest.fixture
def mock_settings(temp_db_path: Path):
    settings = MagicMock()
    settings.storage.db_path = temp_db_path
    settings.storage.pool_size = 2
    settings.storage.busy_timeout = 5000
    settings.storage.acquire_timeout = 5.0
    return settings


async def _insert_item(conn: aiosqlite.Connection, item_id: str) -> None:
    await conn.execute(
        """
        INSERT INTO stock_items (id, name, created_at, updated_at)
        VALUES (?, ?, datetime('now'), datetime('now'))
        """,
        (item_id, item_id.title()),
    )


class TestConnectionPoolInit:
    """Tests for ConnectionPool initialization."""

    def test_defaults(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path)
        assert pool.db_path == temp_db_path
        assert pool.pool_size == 5
        assert pool.busy_timeout == 30000
        assert pool.acquire_timeout == 30.0
        assert pool._initialized is False

    async def test_initialize_creates_directory(self, tmp_path: Path):
        """Initialize creates database directory if not exists."""
        db_path = tmp_path / "subdir" / "nested" / "test.db"
        pool = ConnectionPool(db_path, pool_size=1)

        await pool.initialize()
        assert db_path.parent.exists()
        await pool.close()

    async def test_initialize_idempotent(self, temp_db_path: Path):
        """Multiple initialize calls are safe."""
        pool = ConnectionPool(temp_db_path, pool_size=2)

        await pool.initialize()
        await pool.initialize()

        assert len(pool._connections) == 2
        assert pool._pool.qsize() == 2
        await pool.close()


class TestConnectionPragmas:
    async def test_wal_and_foreign_keys(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path)
        conn = await pool._create_connection()

        cursor = await conn.execute("PRAGMA journal_mode")
        assert (await cursor.fetchone())[0].lower() == "wal"
        cursor = await conn.execute("PRAGMA foreign_keys")
        assert (await cursor.fetchone())[0] == 1
        assert conn.row_factory == aiosqlite.Row
        await conn.close()


class TestConnectionPoolAcquire:
    """Tests for ConnectionPool.acquire()."""

    async def test_acquire_auto_initializes(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)

        async with pool.acquire() as conn:
            assert pool._initialized is True
            assert isinstance(conn, aiosqlite.Connection)

        await pool.close()

    async def test_acquire_returns_on_exception(self, temp_db_path: Path):
        """Connection is returned even if exception occurs."""
        pool = ConnectionPool(temp_db_path, pool_size=1)
        await pool.initialize()

        with pytest.raises(ValueError):
            async with pool.acquire() as _conn:
                raise ValueError("Test error")

        assert pool._pool.qsize() == 1
        await pool.close()

    async def test_exhausted_pool_raises_after_timeout(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1, acquire_timeout=0.05)
        await pool.initialize()

        async with pool.acquire() as _conn1:
            with pytest.raises(DatabaseError) as exc_info:
                async with pool.acquire() as _conn2:
                    pass

        assert exc_info.value.details["operation"] == "acquire"
        assert pool._pool.qsize() == 1
        await pool.close()

    async def test_waiter_gets_released_connection(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1, acquire_timeout=1.0)
        await pool.initialize()
        release = asyncio.Event()

        async def hold() -> None:
            async with pool.acquire():
                await release.wait()

        holder = asyncio.create_task(hold())
        await asyncio.sleep(0)
        release.set()
        async with pool.acquire() as conn:
            assert isinstance(conn, aiosqlite.Connection)

        await holder
        await pool.close()


class TestConnectionPoolTransaction:
    """Tests for ConnectionPool.transaction()."""

    async def test_commits_on_success(self, initialized_db: Path):
        pool = ConnectionPool(initialized_db, pool_size=1)

        async with pool.transaction() as conn:
            await _insert_item(conn, "salt")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT name FROM stock_items WHERE id = 'salt'")
            assert (await cursor.fetchone())["name"] == "Salt"

        await pool.close()

    @pytest.mark.parametrize("immediate", [False, True])
    async def test_rolls_back_on_exception(self, initialized_db: Path, immediate: bool):
        pool = ConnectionPool(initialized_db, pool_size=1)

        with pytest.raises(ValueError):
            async with pool.transaction(immediate=immediate) as conn:
                await _insert_item(conn, "pepper")
                raise ValueError("Force rollback")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM stock_items")
            assert (await cursor.fetchone())[0] == 0

        await pool.close()

    async def test_locked_writer_raises_database_error(self, initialized_db: Path):
        writer = ConnectionPool(initialized_db, pool_size=1)
        blocked = ConnectionPool(initialized_db, pool_size=1, busy_timeout=0)

        async with writer.transaction(immediate=True) as conn:
            await _insert_item(conn, "salt")
            with pytest.raises(DatabaseError, match="locked"):
                async with blocked.transaction(immediate=True) as other:
                    await _insert_item(other, "pepper")

        async with blocked.acquire() as conn:
            cursor = await conn.execute("SELECT id FROM stock_items")
            assert [row["id"] for row in await cursor.fetchall()] == ["salt"]

        await blocked.close()
        await writer.close()

    async def test_constraint_violation_propagates(self, initialized_db: Path):
        pool = ConnectionPool(initialized_db, pool_size=1)

        with pytest.raises(aiosqlite.IntegrityError):
            async with pool.transaction(immediate=True) as conn:
                await _insert_item(conn, "salt")
                await _insert_item(conn, "salt")

        await pool.close()


class TestConnectionPoolPing:
    async def test_reports_pool_and_schema(self, initialized_db: Path):
        pool = ConnectionPool(initialized_db, pool_size=2)

        status = await pool.ping()

        assert status == PoolStatus(
            size=2,
            available=1,
            journal_mode="wal",
            schema_version=discover_migrations()[-1].version,
        )
        await pool.close()

    async def test_unmigrated_database(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)

        status = await pool.ping()

        assert status.schema_version is None
        assert status.available == 0
        await pool.close()


class TestGlobalPool:
    """Tests for the module-level pool helpers."""

    async def test_get_pool_returns_same_instance(self, mock_settings):
        conn_module._pool = None

        with patch.object(conn_module, "get_settings", return_value=mock_settings):
            pool1 = await get_pool()
            pool2 = await get_pool()

            assert pool1 is pool2
            assert pool1.db_path == mock_settings.storage.db_path

            await close_pool()
            assert conn_module._pool is None

    async def test_close_pool_safe_when_none(self):
        conn_module._pool = None
        await close_pool()

    async def test_get_connection_and_transaction(self, initialized_db: Path):
        async with get_transaction() as conn:
            await _insert_item(conn, "sugar")

        async with get_connection() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM stock_items")
            assert (await cursor.fetchone())[0] == 1
