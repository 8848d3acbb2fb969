"""
Dependency injection container for FastAPI.

Provides store, service and use case instances to route handlers.
Tests replace any of these through ``app.dependency_overrides``.
"""

from datetime import date
from functools import lru_cache

from fastapi import Header

from stockledger.application.services import (
    get_manual_purchase_list,
    get_pending_delivery_tracker,
    get_schedule_advisor,
)
from stockledger.application.use_cases import (
    AddExpiryBatchUseCase,
    CheckExpiringBatchesUseCase,
    ComputePurchaseListUseCase,
    MarkOrderedUseCase,
    RecordMovementUseCase,
)
from stockledger.config import Settings, get_settings
from stockledger.core.entities.identity import Actor, Capability
from stockledger.core.interfaces import (
    IProductionStore,
    IPurchaseScheduleStore,
    IStockStore,
)
from stockledger.core.services import (
    ManualPurchaseList,
    PendingDeliveryTracker,
    PurchaseScheduleAdvisor,
)
from stockledger.infrastructure.storage.sqlite import (
    get_production_store,
    get_schedule_store,
    get_stock_store,
)


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


def get_today() -> date:
    """Business date used when the caller does not pass one."""
    return date.today()


def get_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_capabilities: str | None = Header(default=None),
) -> Actor | None:
    """
    Caller identity handed over by the permission layer.

    No X-Actor-Id header means a trusted internal caller.
    """
    if not x_actor_id:
        return None
    return Actor(id=x_actor_id, capabilities=Capability.parse(x_actor_capabilities))


# Store dependencies
async def get_stock_item_store() -> IStockStore:
    return await get_stock_store()


async def get_purchase_schedule_store() -> IPurchaseScheduleStore:
    return await get_schedule_store()


async def get_production_feed_store() -> IProductionStore:
    return await get_production_store()


# Service dependencies
async def get_tracker() -> PendingDeliveryTracker:
    """Get pending delivery tracker."""
    return await get_pending_delivery_tracker()


async def get_manual_list() -> ManualPurchaseList:
    """Get manual purchase list service."""
    return await get_manual_purchase_list()


def get_advisor() -> PurchaseScheduleAdvisor:
    return get_schedule_advisor()


# Use case dependencies
def get_record_movement_use_case() -> RecordMovementUseCase:
    """Get record movement use case."""
    return RecordMovementUseCase()


def get_add_expiry_batch_use_case() -> AddExpiryBatchUseCase:
    """Get add expiry batch use case."""
    return AddExpiryBatchUseCase()


def get_check_expiring_batches_use_case() -> CheckExpiringBatchesUseCase:
    return CheckExpiringBatchesUseCase()


def get_compute_purchase_list_use_case() -> ComputePurchaseListUseCase:
    """Get compute purchase list use case."""
    return ComputePurchaseListUseCase()


def get_mark_ordered_use_case() -> MarkOrderedUseCase:
    """Get mark ordered use case."""
    return MarkOrderedUseCase()
