"""Core interfaces (ports) for dependency injection."""

from stockledger.core.interfaces.production_store import IProductionStore
from stockledger.core.interfaces.purchasing_store import (
    IManualPurchaseListStore,
    IPendingDeliveryStore,
    IPurchaseScheduleStore,
)
from stockledger.core.interfaces.stock_store import IStockStore

__all__ = [
    "IStockStore",
    "IPendingDeliveryStore",
    "IManualPurchaseListStore",
    "IPurchaseScheduleStore",
    "IProductionStore",
]
