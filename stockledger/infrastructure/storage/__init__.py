"""Storage infrastructure implementations."""

from stockledger.infrastructure.storage.sqlite import (
    SQLiteManualPurchaseListStore,
    SQLitePendingDeliveryStore,
    SQLiteProductionStore,
    SQLitePurchaseScheduleStore,
    SQLiteStockStore,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLiteStockStore",
    "SQLitePendingDeliveryStore",
    "SQLiteManualPurchaseListStore",
    "SQLitePurchaseScheduleStore",
    "SQLiteProductionStore",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
