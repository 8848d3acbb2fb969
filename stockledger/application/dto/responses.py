"""Response DTOs for API endpoints.

Pydantic v2 models for API responses, plus the helpers that build
them from domain entities.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from stockledger.core.entities.production import Production
from stockledger.core.entities.purchasing import (
    ManualPurchaseEntry,
    PendingDelivery,
    PurchaseLineItem,
    PurchaseSchedule,
)
from stockledger.core.entities.stock import Batch, ExpiryAlert, Movement, StockItem
from stockledger.core.exceptions import LedgerIntegrityFault

# --- Common ---


class ProviderHealthResponse(BaseModel):
    """Provider health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class DatabaseHealthResponse(ProviderHealthResponse):
    """SQLite pool and schema state."""

    journal_mode: str | None = None
    schema_version: str | None = None
    pool_size: int | None = None
    pool_available: int | None = None


class LedgerHealthResponse(BaseModel):
    """Batch totals compared with ledger quantities across the catalog."""

    items_checked: int
    faulty_items: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: DatabaseHealthResponse | None = None
    ledger: LedgerHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. STOCK_ITEM_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)


# --- Stock ---


class StockItemResponse(BaseModel):
    """Stock item response DTO."""

    id: str
    name: str
    category: str
    unit: str
    unit_dimension: str
    current_quantity: float
    minimum_quantity: float
    unit_price: float
    supplier_id: str | None = None
    waste_factor: float = 0.0
    version: int
    stock_status: str
    total_value: float
    created_at: datetime
    updated_at: datetime


class StockItemListResponse(BaseModel):
    items: list[StockItemResponse]
    total: int


class BatchResponse(BaseModel):
    """Batch response DTO."""

    id: int
    stock_item_id: str
    expiry_date: date
    lot: str | None = None
    quantity: float
    notes: str | None = None
    created_at: datetime


class BatchDeductionResponse(BaseModel):
    batch_id: int
    quantity: float


class MovementResponse(BaseModel):
    """Stock movement response DTO."""

    id: int
    stock_item_id: str
    kind: str
    quantity: float
    previous_quantity: float
    new_quantity: float
    deductions: list[BatchDeductionResponse] = Field(default_factory=list)
    batch_expiry_date: date | None = None
    batch_lot: str | None = None
    source: str
    notes: str | None = None
    actor_id: str | None = None
    movement_key: str | None = None
    created_at: datetime


class IntegrityFaultResponse(BaseModel):
    """Divergence between the batch sum and the ledger quantity."""

    item_id: str
    ledger_quantity: float
    batch_total: float
    difference: float
    message: str


class RecordMovementResponse(BaseModel):
    """Response for a recorded movement."""

    item: StockItemResponse
    movement: MovementResponse
    batches: list[BatchResponse]
    integrity_fault: IntegrityFaultResponse | None = None
    pending_delivery: "PendingDeliveryResponse | None" = None


class FifoSuggestionResponse(BaseModel):
    """FIFO deductions suggested for an exit."""

    stock_item_id: str
    quantity: float
    deductions: list[BatchDeductionResponse]


class AddBatchResponse(BaseModel):
    batch: BatchResponse
    integrity_fault: IntegrityFaultResponse | None = None


class ExpiryAlertResponse(BaseModel):
    batch: BatchResponse
    item_name: str | None = None
    days_until: int
    is_expired: bool
    is_near_expiry: bool


class ExpiryAlertListResponse(BaseModel):
    alerts: list[ExpiryAlertResponse]
    total: int
    days: int


# --- Purchasing ---


class PurchaseLineItemResponse(BaseModel):
    """One row of the purchase list."""

    stock_item_id: str
    name: str
    category: str | None = None
    unit: str | None = None
    current_quantity: float
    minimum_quantity: float
    production_need: float
    waste_factor: float
    suggested_quantity: float
    unit_price: float
    estimated_cost: float
    supplier_id: str | None = None
    ordered_quantity: float
    earliest_expiry: date | None = None
    is_urgent: bool
    is_purchased: bool
    is_manual: bool
    in_catalog: bool


class PurchaseListResponse(BaseModel):
    """Computed purchase list with its window and counters."""

    window_start: date
    window_end: date
    merge_policy: str
    items: list[PurchaseLineItemResponse]
    urgent_count: int
    pending_count: int
    purchased_count: int
    total_estimated_cost: float


class PendingDeliveryResponse(BaseModel):
    """Pending delivery response DTO."""

    id: int
    stock_item_id: str
    ordered_quantity: float
    suggested_quantity: float
    supplier_id: str | None = None
    status: str
    order_date: date
    expected_delivery_date: date | None = None
    delivered_date: date | None = None
    created_at: datetime
    updated_at: datetime


class PendingDeliveryListResponse(BaseModel):
    pending: list[PendingDeliveryResponse]
    total: int


class ManualEntryResponse(BaseModel):
    id: int
    stock_item_id: str
    suggested_quantity: float
    supplier_id: str | None = None
    notes: str | None = None
    created_at: datetime


class ManualEntryListResponse(BaseModel):
    entries: list[ManualEntryResponse]
    total: int


class ScheduleResponse(BaseModel):
    id: int
    weekday: int
    weekday_name: str
    order_day: bool
    delivery_day: bool
    supplier_id: str | None = None
    notes: str | None = None


class ScheduleListResponse(BaseModel):
    schedules: list[ScheduleResponse]
    total: int


class NextPurchaseDayResponse(BaseModel):
    """Next order day relative to a reference date."""

    from_date: date
    next_purchase_day: date | None = None
    days_until: int | None = None
    is_purchase_day: bool


class PeriodWindowResponse(BaseModel):
    period: str
    reference: date
    start: date
    end: date
    previous_reference: date
    next_reference: date


# --- Productions ---


class RecipeIngredientResponse(BaseModel):
    stock_item_id: str
    quantity_per_yield: float


class ProductionResponse(BaseModel):
    id: str
    recipe_id: str
    recipe_name: str
    yield_quantity: float
    ingredients: list[RecipeIngredientResponse]
    scheduled_date: date
    planned_quantity: float
    status: str


class ProductionListResponse(BaseModel):
    """Productions in a window with purchase timing suggestions."""

    productions: list[ProductionResponse]
    total: int
    suggested_purchase_weekdays: list[str] = Field(default_factory=list)
    suggested_purchase_date: date | None = None


RecordMovementResponse.model_rebuild()


# --- Entity conversion ---


def stock_item_response(item: StockItem) -> StockItemResponse:
    return StockItemResponse(
        id=item.id,
        name=item.name,
        category=item.category.value,
        unit=item.unit.value,
        unit_dimension=item.unit.dimension.value,
        current_quantity=item.current_quantity,
        minimum_quantity=item.minimum_quantity,
        unit_price=item.unit_price,
        supplier_id=item.supplier_id,
        waste_factor=item.waste_factor,
        version=item.version,
        stock_status=item.stock_status.value,
        total_value=item.total_value,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def batch_response(batch: Batch) -> BatchResponse:
    return BatchResponse(
        id=batch.id,  # type: ignore[arg-type]
        stock_item_id=batch.stock_item_id,
        expiry_date=batch.expiry_date,
        lot=batch.lot,
        quantity=batch.quantity,
        notes=batch.notes,
        created_at=batch.created_at,
    )


def movement_response(movement: Movement) -> MovementResponse:
    return MovementResponse(
        id=movement.id,  # type: ignore[arg-type]
        stock_item_id=movement.stock_item_id,
        kind=movement.kind.value,
        quantity=movement.quantity,
        previous_quantity=movement.previous_quantity,
        new_quantity=movement.new_quantity,
        deductions=[
            BatchDeductionResponse(batch_id=d.batch_id, quantity=d.quantity)
            for d in movement.deductions
        ],
        batch_expiry_date=movement.batch.expiry_date if movement.batch else None,
        batch_lot=movement.batch.lot if movement.batch else None,
        source=movement.source.value,
        notes=movement.notes,
        actor_id=movement.actor_id,
        movement_key=movement.movement_key,
        created_at=movement.created_at,
    )


def integrity_fault_response(
    fault: LedgerIntegrityFault | None,
) -> IntegrityFaultResponse | None:
    if fault is None:
        return None
    return IntegrityFaultResponse(
        item_id=fault.details["item_id"],
        ledger_quantity=fault.details["ledger_quantity"],
        batch_total=fault.details["batch_total"],
        difference=fault.details["difference"],
        message=fault.message,
    )


def expiry_alert_response(alert: ExpiryAlert, item_name: str | None = None) -> ExpiryAlertResponse:
    return ExpiryAlertResponse(
        batch=batch_response(alert.batch),
        item_name=item_name,
        days_until=alert.days_until,
        is_expired=alert.is_expired,
        is_near_expiry=alert.is_near_expiry,
    )


def line_item_response(row: PurchaseLineItem) -> PurchaseLineItemResponse:
    return PurchaseLineItemResponse(**row.model_dump())


def pending_delivery_response(pending: PendingDelivery) -> PendingDeliveryResponse:
    return PendingDeliveryResponse(
        id=pending.id,  # type: ignore[arg-type]
        stock_item_id=pending.stock_item_id,
        ordered_quantity=pending.ordered_quantity,
        suggested_quantity=pending.suggested_quantity,
        supplier_id=pending.supplier_id,
        status=pending.status.value,
        order_date=pending.order_date,
        expected_delivery_date=pending.expected_delivery_date,
        delivered_date=pending.delivered_date,
        created_at=pending.created_at,
        updated_at=pending.updated_at,
    )


def manual_entry_response(entry: ManualPurchaseEntry) -> ManualEntryResponse:
    return ManualEntryResponse(
        id=entry.id,  # type: ignore[arg-type]
        stock_item_id=entry.stock_item_id,
        suggested_quantity=entry.suggested_quantity,
        supplier_id=entry.supplier_id,
        notes=entry.notes,
        created_at=entry.created_at,
    )


def schedule_response(schedule: PurchaseSchedule) -> ScheduleResponse:
    return ScheduleResponse(
        id=schedule.id,  # type: ignore[arg-type]
        weekday=int(schedule.weekday),
        weekday_name=schedule.weekday.name.lower(),
        order_day=schedule.order_day,
        delivery_day=schedule.delivery_day,
        supplier_id=schedule.supplier_id,
        notes=schedule.notes,
    )


def production_response(production: Production) -> ProductionResponse:
    return ProductionResponse(
        id=production.id,
        recipe_id=production.recipe.id,
        recipe_name=production.recipe.name,
        yield_quantity=production.recipe.yield_quantity,
        ingredients=[
            RecipeIngredientResponse(
                stock_item_id=ing.stock_item_id,
                quantity_per_yield=ing.quantity_per_yield,
            )
            for ing in production.recipe.ingredients
        ],
        scheduled_date=production.scheduled_date,
        planned_quantity=production.planned_quantity,
        status=production.status.value,
    )
