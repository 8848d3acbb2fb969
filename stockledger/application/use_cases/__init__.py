"""Application use cases."""

from stockledger.application.use_cases.compute_purchase_list import (
    ComputePurchaseListUseCase,
    PurchaseListResult,
)
from stockledger.application.use_cases.manage_batches import (
    AddBatchResult,
    AddExpiryBatchUseCase,
    CheckExpiringBatchesUseCase,
    ExpiryAlertsResult,
)
from stockledger.application.use_cases.mark_ordered import MarkOrderedResult, MarkOrderedUseCase
from stockledger.application.use_cases.record_movement import (
    RecordMovementResult,
    RecordMovementUseCase,
)

__all__ = [
    "RecordMovementUseCase",
    "RecordMovementResult",
    "AddExpiryBatchUseCase",
    "AddBatchResult",
    "CheckExpiringBatchesUseCase",
    "ExpiryAlertsResult",
    "ComputePurchaseListUseCase",
    "PurchaseListResult",
    "MarkOrderedUseCase",
    "MarkOrderedResult",
]
