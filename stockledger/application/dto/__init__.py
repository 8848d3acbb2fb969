"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from stockledger.application.dto.requests import (
    AddExpiryBatchRequest,
    CreateStockItemRequest,
    ManualEntryRequest,
    MarkOrderedRequest,
    ProductionRequest,
    PurchaseListRequest,
    RecordMovementRequest,
    ScheduleRequest,
    UpdateManualEntryRequest,
    UpdateStockItemRequest,
)
from stockledger.application.dto.responses import (
    BatchResponse,
    ErrorResponse,
    HealthResponse,
    MovementResponse,
    PendingDeliveryResponse,
    PurchaseListResponse,
    RecordMovementResponse,
    StockItemResponse,
)

__all__ = [
    # Requests
    "CreateStockItemRequest",
    "UpdateStockItemRequest",
    "RecordMovementRequest",
    "AddExpiryBatchRequest",
    "PurchaseListRequest",
    "MarkOrderedRequest",
    "ManualEntryRequest",
    "UpdateManualEntryRequest",
    "ScheduleRequest",
    "ProductionRequest",
    # Responses
    "StockItemResponse",
    "BatchResponse",
    "MovementResponse",
    "RecordMovementResponse",
    "PurchaseListResponse",
    "PendingDeliveryResponse",
    "HealthResponse",
    "ErrorResponse",
]
