"""SQLite storage implementations."""

from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from stockledger.infrastructure.storage.sqlite.production_store import SQLiteProductionStore
from stockledger.infrastructure.storage.sqlite.purchasing_store import (
    SQLiteManualPurchaseListStore,
    SQLitePendingDeliveryStore,
    SQLitePurchaseScheduleStore,
)
from stockledger.infrastructure.storage.sqlite.stock_store import SQLiteStockStore

# Singleton instances
_stock_store: SQLiteStockStore | None = None
_pending_store: SQLitePendingDeliveryStore | None = None
_manual_store: SQLiteManualPurchaseListStore | None = None
_schedule_store: SQLitePurchaseScheduleStore | None = None
_production_store: SQLiteProductionStore | None = None


async def get_stock_store() -> SQLiteStockStore:
    """Get singleton stock store instance."""
    global _stock_store
    if _stock_store is None:
        _stock_store = SQLiteStockStore()
    return _stock_store


async def get_pending_delivery_store() -> SQLitePendingDeliveryStore:
    """Get singleton pending delivery store instance."""
    global _pending_store
    if _pending_store is None:
        _pending_store = SQLitePendingDeliveryStore()
    return _pending_store


async def get_manual_purchase_store() -> SQLiteManualPurchaseListStore:
    """Get singleton manual purchase list store instance."""
    global _manual_store
    if _manual_store is None:
        _manual_store = SQLiteManualPurchaseListStore()
    return _manual_store


async def get_schedule_store() -> SQLitePurchaseScheduleStore:
    """Get singleton purchase schedule store instance."""
    global _schedule_store
    if _schedule_store is None:
        _schedule_store = SQLitePurchaseScheduleStore()
    return _schedule_store


async def get_production_store() -> SQLiteProductionStore:
    """Get singleton production store instance."""
    global _production_store
    if _production_store is None:
        _production_store = SQLiteProductionStore()
    return _production_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteStockStore",
    "SQLitePendingDeliveryStore",
    "SQLiteManualPurchaseListStore",
    "SQLitePurchaseScheduleStore",
    "SQLiteProductionStore",
    # Factory functions
    "get_stock_store",
    "get_pending_delivery_store",
    "get_manual_purchase_store",
    "get_schedule_store",
    "get_production_store",
]
