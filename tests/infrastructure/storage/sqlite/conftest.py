"""Pytest fixtures for SQLite storage tests."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import stockledger.infrastructure.storage.sqlite.connection as conn_module
from stockledger.core.entities import StockItem
from stockledger.infrastructure.storage.sqlite import (
    SQLiteManualPurchaseListStore,
    SQLitePendingDeliveryStore,
    SQLiteProductionStore,
    SQLitePurchaseScheduleStore,
    SQLiteStockStore,
)
from stockledger.infrastructure.storage.sqlite.connection import close_pool
from stockledger.infrastructure.storage.sqlite.migrations.migrator import initialize_database


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def initialized_db(temp_db_path: Path) -> AsyncGenerator[Path, None]:
    """Migrated temporary database wired into the global connection pool."""
    mock_settings = MagicMock()
    mock_settings.storage.db_path = temp_db_path
    mock_settings.storage.pool_size = 2
    mock_settings.storage.busy_timeout = 5000
    mock_settings.storage.acquire_timeout = 5.0

    conn_module._pool = None
    await initialize_database(temp_db_path, create_backup_before=False)

    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield temp_db_path
        finally:
            await close_pool()


@pytest.fixture
def stock_store(initialized_db: Path) -> SQLiteStockStore:
    return SQLiteStockStore()


@pytest.fixture
def pending_store(initialized_db: Path) -> SQLitePendingDeliveryStore:
    return SQLitePendingDeliveryStore()


@pytest.fixture
def manual_store(initialized_db: Path) -> SQLiteManualPurchaseListStore:
    return SQLiteManualPurchaseListStore()


@pytest.fixture
def schedule_store(initialized_db: Path) -> SQLitePurchaseScheduleStore:
    return SQLitePurchaseScheduleStore()


@pytest.fixture
def production_store(initialized_db: Path) -> SQLiteProductionStore:
    return SQLiteProductionStore()


@pytest.fixture
async def stored_milk(stock_store: SQLiteStockStore, milk: StockItem) -> StockItem:
    return await stock_store.create_item(milk)
