"""
Async SQLite connection pool with aiosqlite.

The ledger's writes run inside ``transaction(immediate=True)`` so a stock
item's read-check-write sequence holds the database write lock. A writer
that cannot get the lock within ``busy_timeout``, or a caller that waits
longer than ``acquire_timeout`` for a pooled connection, gets a
DatabaseError instead of hanging.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings
from stockledger.core.exceptions import DatabaseError
from stockledger.infrastructure.storage.sqlite.migrations.migrator import get_current_version

logger = get_logger(__name__)


@dataclass
class PoolStatus:
    """Snapshot reported by ``ConnectionPool.ping()``."""

    size: int
    available: int
    journal_mode: str
    schema_version: str | None


class ConnectionPool:
    """
    Async SQLite connection pool.

    Hands out a fixed set of connections through a queue.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
        acquire_timeout: float = 30.0,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout
        self.acquire_timeout = acquire_timeout

        self._pool: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._initialized = False
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the pool's connections."""
        async with self._lock:
            if self._initialized:
                return

            # Ensure database directory exists
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            for _ in range(self.pool_size):
                conn = await self._create_connection()
                self._connections.append(conn)
                await self._pool.put(conn)

            self._initialized = True
            logger.info(
                "connection_pool_initialized",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
            )

    async def _create_connection(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)

        # WAL lets readers continue while a movement holds the write lock
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")

        # Batches and movements cascade from their stock item
        await conn.execute("PRAGMA foreign_keys=ON")

        # Row factory for dict-like access
        conn.row_factory = aiosqlite.Row

        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection from the pool.

        Usage:
            async with pool.acquire() as conn:
                await conn.execute(...)

        Raises:
            DatabaseError: no connection came free within ``acquire_timeout``.
        """
        if not self._initialized:
            await self.initialize()

        try:
            conn = await asyncio.wait_for(self._pool.get(), timeout=self.acquire_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "connection_pool_exhausted",
                pool_size=self.pool_size,
                acquire_timeout=self.acquire_timeout,
            )
            raise DatabaseError(
                "acquire", f"no connection free after {self.acquire_timeout}s"
            ) from None

        try:
            yield conn
        finally:
            await self._pool.put(conn)

    @asynccontextmanager
    async def transaction(
        self, immediate: bool = False
    ) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection with transaction context.

        Commits on success, rolls back on exception. ``immediate`` takes
        the database write lock up front (BEGIN IMMEDIATE).

        SQLite operational failures ("database is locked", disk errors) are
        raised as DatabaseError. Constraint violations propagate unchanged
        for the stores to translate.
        """
        async with self.acquire() as conn:
            try:
                if immediate:
                    await conn.execute("BEGIN IMMEDIATE")
                yield conn
                await conn.commit()
            except aiosqlite.OperationalError as e:
                await conn.rollback()
                logger.warning("transaction_failed", immediate=immediate, error=str(e))
                raise DatabaseError("transaction", str(e)) from e
            except Exception:
                await conn.rollback()
                raise

    async def ping(self) -> PoolStatus:
        """Round-trip one connection and report pool and schema state."""
        async with self.acquire() as conn:
            cursor = await conn.execute("PRAGMA journal_mode")
            journal_mode = (await cursor.fetchone())[0]
            schema_version = await get_current_version(conn)
            available = self._pool.qsize()

        return PoolStatus(
            size=self.pool_size,
            available=available,
            journal_mode=journal_mode,
            schema_version=schema_version,
        )

    async def close(self) -> None:
        """Close all connections in the pool."""
        async with self._lock:
            for conn in self._connections:
                await conn.close()
            self._connections.clear()
            self._pool = asyncio.Queue(maxsize=self.pool_size)
            self._initialized = False
            logger.info("connection_pool_closed")


# Global connection pool
_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Get or create the global connection pool."""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = ConnectionPool(
            db_path=settings.storage.db_path,
            pool_size=settings.storage.pool_size,
            busy_timeout=settings.storage.busy_timeout,
            acquire_timeout=settings.storage.acquire_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """Get a connection from the global pool."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction(immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
    """
    Get a connection from the global pool inside a transaction.

    Stock writes pass ``immediate=True``.
    """
    pool = await get_pool()
    async with pool.transaction(immediate=immediate) as conn:
        yield conn
