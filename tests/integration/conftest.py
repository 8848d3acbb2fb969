"""Fixtures wiring use cases to a real temporary SQLite database."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import stockledger.infrastructure.storage.sqlite.connection as conn_module
from stockledger.core.services import ItemLockRegistry, ManualPurchaseList, PendingDeliveryTracker
from stockledger.infrastructure.storage.sqlite import (
    SQLiteManualPurchaseListStore,
    SQLitePendingDeliveryStore,
    SQLiteProductionStore,
    SQLiteStockStore,
)
from stockledger.infrastructure.storage.sqlite.connection import close_pool
from stockledger.infrastructure.storage.sqlite.migrations.migrator import initialize_database


@pytest.fixture
async def ledger_db(tmp_path: Path) -> AsyncGenerator[Path, None]:
    db_path = tmp_path / "ledger.db"
    mock_settings = MagicMock()
    mock_settings.storage.db_path = db_path
    mock_settings.storage.pool_size = 3
    mock_settings.storage.busy_timeout = 5000
    mock_settings.storage.acquire_timeout = 5.0

    conn_module._pool = None
    await initialize_database(db_path, create_backup_before=False)

    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield db_path
        finally:
            await close_pool()


@pytest.fixture
def stock_store(ledger_db) -> SQLiteStockStore:
    return SQLiteStockStore()


@pytest.fixture
def pending_store(ledger_db) -> SQLitePendingDeliveryStore:
    return SQLitePendingDeliveryStore()


@pytest.fixture
def manual_store(ledger_db) -> SQLiteManualPurchaseListStore:
    return SQLiteManualPurchaseListStore()


@pytest.fixture
def production_store(ledger_db) -> SQLiteProductionStore:
    return SQLiteProductionStore()


@pytest.fixture
def tracker(pending_store, locks: ItemLockRegistry) -> PendingDeliveryTracker:
    return PendingDeliveryTracker(pending_store, locks)


@pytest.fixture
def manual_list(manual_store) -> ManualPurchaseList:
    return ManualPurchaseList(manual_store)
