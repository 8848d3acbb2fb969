"""
Service factory functions for dependency injection.

Wires settings and infrastructure stores into the core services.
Use cases import from here.
"""

from typing import TYPE_CHECKING

from stockledger.config import get_settings
from stockledger.core.services import (
    ManualPurchaseList,
    MovementRecorder,
    PendingDeliveryTracker,
    ProductionDemandProjector,
    PurchaseNeedCalculator,
    PurchaseScheduleAdvisor,
    get_item_locks,
)

if TYPE_CHECKING:
    from stockledger.core.interfaces import IManualPurchaseListStore, IPendingDeliveryStore


def get_movement_recorder() -> MovementRecorder:
    """MovementRecorder using the configured quantity epsilon."""
    return MovementRecorder(epsilon=get_settings().ledger.quantity_epsilon)


def get_purchase_need_calculator() -> PurchaseNeedCalculator:
    settings = get_settings()
    return PurchaseNeedCalculator(
        epsilon=settings.ledger.quantity_epsilon,
        round_up=settings.purchase.round_up_suggestions,
    )


def get_demand_projector() -> ProductionDemandProjector:
    return ProductionDemandProjector()


def get_schedule_advisor() -> PurchaseScheduleAdvisor:
    return PurchaseScheduleAdvisor()


async def get_pending_delivery_tracker(
    store: "IPendingDeliveryStore | None" = None,
) -> PendingDeliveryTracker:
    """
    Build a PendingDeliveryTracker sharing the process-wide item locks.

    Args:
        store: Optional pending delivery store override
    """
    if store is None:
        from stockledger.infrastructure.storage.sqlite import get_pending_delivery_store

        store = await get_pending_delivery_store()
    return PendingDeliveryTracker(
        store=store,
        locks=get_item_locks(),
        epsilon=get_settings().ledger.quantity_epsilon,
    )


async def get_manual_purchase_list(
    store: "IManualPurchaseListStore | None" = None,
) -> ManualPurchaseList:
    if store is None:
        from stockledger.infrastructure.storage.sqlite import get_manual_purchase_store

        store = await get_manual_purchase_store()
    return ManualPurchaseList(store)
