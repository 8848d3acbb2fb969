"""
Core business logic services.

Layer-pure services that depend only on:
- stockledger/core/entities/*
- stockledger/core/interfaces/*
- stockledger/core/exceptions.py

NO infrastructure imports. Stores are injected via constructor.
"""

from stockledger.core.services.batch_allocation import (
    check_integrity,
    earliest_expiry_by_item,
    expiry_alerts,
    fifo_allocate,
    validate_deductions,
)
from stockledger.core.services.item_locks import ItemLockRegistry, get_item_locks
from stockledger.core.services.manual_purchase_list import ManualPurchaseList
from stockledger.core.services.movement_recorder import MovementRecorder
from stockledger.core.services.pending_deliveries import PendingDeliveryTracker
from stockledger.core.services.production_demand import ProductionDemandProjector
from stockledger.core.services.purchase_need import MergePolicy, PurchaseNeedCalculator
from stockledger.core.services.purchase_schedule import PurchaseScheduleAdvisor

__all__ = [
    # Batches
    "fifo_allocate",
    "validate_deductions",
    "check_integrity",
    "expiry_alerts",
    "earliest_expiry_by_item",
    # Movements
    "MovementRecorder",
    "ItemLockRegistry",
    "get_item_locks",
    # Demand
    "ProductionDemandProjector",
    "PurchaseNeedCalculator",
    "MergePolicy",
    # Purchasing
    "PendingDeliveryTracker",
    "ManualPurchaseList",
    "PurchaseScheduleAdvisor",
]
