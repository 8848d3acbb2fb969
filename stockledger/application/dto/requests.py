"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Quantities are left unconstrained where the domain validates them, so
that a non-positive quantity surfaces as a domain VALIDATION_ERROR.
"""

from datetime import date

from pydantic import BaseModel, Field

from stockledger.core.entities.production import ProductionStatus
from stockledger.core.entities.purchasing import PeriodType, Weekday
from stockledger.core.entities.stock import (
    MovementKind,
    MovementSource,
    StockCategory,
    StockUnit,
)
from stockledger.core.services.purchase_need import MergePolicy

# --- Stock items ---


class CreateStockItemRequest(BaseModel):
    """Request to create a stock item (catalog management)."""

    id: str = Field(..., min_length=1, max_length=100, description="Stock item ID")
    name: str = Field(..., min_length=1, max_length=200)
    category: StockCategory = StockCategory.OTHER
    unit: StockUnit = StockUnit.UNIT
    current_quantity: float = Field(default=0.0, ge=0, description="Opening quantity")
    minimum_quantity: float = Field(default=0.0, ge=0)
    unit_price: float = Field(default=0.0, ge=0)
    supplier_id: str | None = None
    waste_factor: float = Field(default=0.0, ge=0, le=100, description="Waste percentage")


class UpdateStockItemRequest(BaseModel):
    """Partial update of catalog fields. The quantity only moves through movements."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    category: StockCategory | None = None
    unit: StockUnit | None = None
    minimum_quantity: float | None = Field(default=None, ge=0)
    unit_price: float | None = Field(default=None, ge=0)
    supplier_id: str | None = None
    waste_factor: float | None = Field(default=None, ge=0, le=100)


# --- Movements and batches ---


class BatchDeductionRequest(BaseModel):
    """Quantity to take from one batch."""

    batch_id: int
    quantity: float = Field(..., gt=0)


class BatchTargetRequest(BaseModel):
    """Batch an entry goes into."""

    expiry_date: date
    lot: str | None = Field(default=None, max_length=100)


class RecordMovementRequest(BaseModel):
    """Request to record an entry, exit or adjustment."""

    kind: MovementKind
    quantity: float = Field(
        ...,
        description="Amount moved; for adjustments the new absolute quantity",
    )
    deductions: list[BatchDeductionRequest] | None = Field(
        default=None,
        description="Batch deductions, required for exits on batch-tracked items",
    )
    batch: BatchTargetRequest | None = Field(
        default=None,
        description="Batch to create or increment on entry",
    )
    auto_fifo: bool = Field(
        default=False,
        description="Allocate exit deductions FIFO when none are given",
    )
    source: MovementSource = MovementSource.MANUAL
    notes: str | None = Field(default=None, max_length=1000)
    movement_key: str | None = Field(
        default=None,
        max_length=200,
        description="Caller idempotency key, stored with the movement",
    )


class AddExpiryBatchRequest(BaseModel):
    """Register a batch for stock already on hand."""

    expiry_date: date
    quantity: float = Field(..., description="Quantity in the batch")
    lot: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=1000)


# --- Purchasing ---


class ManualEntryRequest(BaseModel):
    """Manual shopping-list entry."""

    stock_item_id: str = Field(..., min_length=1)
    suggested_quantity: float
    supplier_id: str | None = None
    notes: str | None = Field(default=None, max_length=1000)


class UpdateManualEntryRequest(BaseModel):
    """Partial update of a manual entry."""

    suggested_quantity: float | None = None
    supplier_id: str | None = None
    notes: str | None = Field(default=None, max_length=1000)


class PurchaseListRequest(BaseModel):
    """
    Request to compute the purchase list.

    The window is either explicit (start/end) or derived from a period
    around a reference date. Without both, the current week is used.
    """

    start: date | None = None
    end: date | None = None
    period: PeriodType | None = None
    reference: date | None = Field(default=None, description="Defaults to today")
    manual_entries: list[ManualEntryRequest] = Field(
        default_factory=list,
        description="Ad hoc entries merged over the stored manual list",
    )
    include_stored_manual: bool = Field(
        default=True,
        description="Merge the persisted manual list",
    )
    merge_policy: MergePolicy | None = Field(
        default=None,
        description="max, sum or override; defaults to the configured policy",
    )


class MarkOrderedRequest(BaseModel):
    """Record that an item has been ordered from a supplier."""

    stock_item_id: str = Field(..., min_length=1)
    ordered_quantity: float
    suggested_quantity: float = Field(default=0.0, ge=0)
    supplier_id: str | None = None
    expected_delivery_date: date | None = None


class ScheduleRequest(BaseModel):
    """Weekly purchase cadence entry."""

    weekday: Weekday = Field(..., description="0 = Monday ... 6 = Sunday")
    order_day: bool = True
    delivery_day: bool = False
    supplier_id: str | None = None
    notes: str | None = Field(default=None, max_length=1000)


# --- Productions ---


class RecipeIngredientRequest(BaseModel):
    stock_item_id: str
    quantity_per_yield: float = Field(..., ge=0)


class RecipeRequest(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    yield_quantity: float = 1.0
    ingredients: list[RecipeIngredientRequest] = Field(default_factory=list)


class ProductionRequest(BaseModel):
    """Scheduled production as published by the scheduling collaborator."""

    id: str = Field(..., min_length=1)
    recipe: RecipeRequest
    scheduled_date: date
    planned_quantity: float = Field(..., ge=0)
    status: ProductionStatus = ProductionStatus.PLANNED
