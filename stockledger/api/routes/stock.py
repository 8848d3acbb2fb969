"""Stock ledger endpoints: items, movements, batches and expiry alerts."""

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status

from stockledger.api.dependencies import (
    get_actor,
    get_add_expiry_batch_use_case,
    get_check_expiring_batches_use_case,
    get_record_movement_use_case,
    get_stock_item_store,
    get_today,
)
from stockledger.application.dto.requests import (
    AddExpiryBatchRequest,
    CreateStockItemRequest,
    RecordMovementRequest,
    UpdateStockItemRequest,
)
from stockledger.application.dto.responses import (
    AddBatchResponse,
    BatchResponse,
    ErrorResponse,
    ExpiryAlertListResponse,
    FifoSuggestionResponse,
    MovementResponse,
    RecordMovementResponse,
    StockItemListResponse,
    StockItemResponse,
    batch_response,
    movement_response,
    stock_item_response,
)
from stockledger.application.use_cases import (
    AddExpiryBatchUseCase,
    CheckExpiringBatchesUseCase,
    RecordMovementUseCase,
)
from stockledger.core.entities.identity import Actor, Capability
from stockledger.core.entities.stock import StockItem
from stockledger.core.exceptions import StockItemNotFoundError
from stockledger.core.interfaces import IStockStore

router = APIRouter(prefix="/api/stock", tags=["stock"])


# --- Items (catalog collaborator) ---


@router.post(
    "/items",
    response_model=StockItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_item(
    request: CreateStockItemRequest,
    store: IStockStore = Depends(get_stock_item_store),
    actor: Actor | None = Depends(get_actor),
) -> StockItemResponse:
    """Create a stock item."""
    if actor is not None:
        actor.require(Capability.CATALOG)
    item = await store.create_item(StockItem(**request.model_dump()))
    return stock_item_response(item)


@router.get("/items", response_model=StockItemListResponse)
async def list_items(
    limit: int = Query(default=500, ge=1, le=10000),
    offset: int = Query(default=0, ge=0),
    store: IStockStore = Depends(get_stock_item_store),
) -> StockItemListResponse:
    """List stock items by name."""
    items = await store.list_items(limit=limit, offset=offset)
    return StockItemListResponse(
        items=[stock_item_response(item) for item in items],
        total=len(items),
    )


@router.get(
    "/items/{item_id}",
    response_model=StockItemResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_item(
    item_id: str,
    store: IStockStore = Depends(get_stock_item_store),
) -> StockItemResponse:
    """Get a stock item with its status."""
    item = await store.get_item(item_id)
    if item is None:
        raise StockItemNotFoundError(item_id)
    return stock_item_response(item)


@router.patch(
    "/items/{item_id}",
    response_model=StockItemResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_item(
    item_id: str,
    request: UpdateStockItemRequest,
    store: IStockStore = Depends(get_stock_item_store),
    actor: Actor | None = Depends(get_actor),
) -> StockItemResponse:
    """Update catalog fields. Quantities only change through movements."""
    if actor is not None:
        actor.require(Capability.CATALOG)
    item = await store.get_item(item_id)
    if item is None:
        raise StockItemNotFoundError(item_id)
    updated = item.model_copy(update=request.model_dump(exclude_unset=True))
    return stock_item_response(await store.update_item_details(updated))


# --- Movements ---


@router.post(
    "/items/{item_id}/movements",
    response_model=RecordMovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def record_movement(
    item_id: str,
    request: RecordMovementRequest,
    use_case: RecordMovementUseCase = Depends(get_record_movement_use_case),
    actor: Actor | None = Depends(get_actor),
) -> RecordMovementResponse:
    """Record an entry, exit or adjustment."""
    result = await use_case.execute(item_id, request, actor=actor)
    return use_case.to_response(result)


@router.get("/items/{item_id}/movements", response_model=list[MovementResponse])
async def list_movements(
    item_id: str,
    limit: int = Query(default=100, ge=1, le=1000),
    store: IStockStore = Depends(get_stock_item_store),
) -> list[MovementResponse]:
    """Get movements for a stock item, newest first."""
    movements = await store.get_movements(item_id, limit=limit)
    return [movement_response(m) for m in movements]


@router.get(
    "/items/{item_id}/fifo",
    response_model=FifoSuggestionResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def suggest_fifo(
    item_id: str,
    quantity: float = Query(..., description="Exit quantity to allocate"),
    use_case: RecordMovementUseCase = Depends(get_record_movement_use_case),
) -> FifoSuggestionResponse:
    """Suggest FIFO batch deductions for an exit."""
    deductions = await use_case.suggest_fifo(item_id, quantity)
    return use_case.fifo_to_response(item_id, quantity, deductions)


# --- Batches ---


@router.get("/items/{item_id}/batches", response_model=list[BatchResponse])
async def list_batches(
    item_id: str,
    store: IStockStore = Depends(get_stock_item_store),
) -> list[BatchResponse]:
    """List an item's batches, soonest expiry first."""
    if await store.get_item(item_id) is None:
        raise StockItemNotFoundError(item_id)
    return [batch_response(b) for b in await store.list_batches(item_id)]


@router.post(
    "/items/{item_id}/batches",
    response_model=AddBatchResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def add_expiry_batch(
    item_id: str,
    request: AddExpiryBatchRequest,
    use_case: AddExpiryBatchUseCase = Depends(get_add_expiry_batch_use_case),
    actor: Actor | None = Depends(get_actor),
) -> AddBatchResponse:
    """Register a batch for stock already on hand (ledger unchanged)."""
    result = await use_case.execute(item_id, request, actor=actor)
    return use_case.to_response(result)


@router.delete(
    "/batches/{batch_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_batch(
    batch_id: int,
    use_case: AddExpiryBatchUseCase = Depends(get_add_expiry_batch_use_case),
    actor: Actor | None = Depends(get_actor),
) -> Response:
    """Delete a batch."""
    await use_case.delete(batch_id, actor=actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/expiry-alerts", response_model=ExpiryAlertListResponse)
async def expiry_alerts(
    days: int | None = Query(default=None, ge=0, le=365),
    today: date | None = Query(default=None),
    use_case: CheckExpiringBatchesUseCase = Depends(get_check_expiring_batches_use_case),
    default_today: date = Depends(get_today),
) -> ExpiryAlertListResponse:
    """Batches expiring within ``days`` (expired ones included)."""
    result = await use_case.execute(today=today or default_today, days=days)
    return use_case.to_response(result)
