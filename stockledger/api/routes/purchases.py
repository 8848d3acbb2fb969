"""Purchasing endpoints: purchase list, pending orders, manual list and schedules."""

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status

from stockledger.api.dependencies import (
    get_actor,
    get_advisor,
    get_compute_purchase_list_use_case,
    get_manual_list,
    get_mark_ordered_use_case,
    get_purchase_schedule_store,
    get_today,
    get_tracker,
)
from stockledger.application.dto.requests import (
    ManualEntryRequest,
    MarkOrderedRequest,
    PurchaseListRequest,
    ScheduleRequest,
    UpdateManualEntryRequest,
)
from stockledger.application.dto.responses import (
    ErrorResponse,
    ManualEntryListResponse,
    ManualEntryResponse,
    NextPurchaseDayResponse,
    PendingDeliveryListResponse,
    PendingDeliveryResponse,
    PeriodWindowResponse,
    PurchaseListResponse,
    ScheduleListResponse,
    ScheduleResponse,
    manual_entry_response,
    pending_delivery_response,
    schedule_response,
)
from stockledger.application.use_cases import (
    ComputePurchaseListUseCase,
    MarkOrderedUseCase,
)
from stockledger.core.entities.identity import Actor, Capability
from stockledger.core.entities.purchasing import PeriodType, PurchaseSchedule
from stockledger.core.exceptions import ScheduleNotFoundError
from stockledger.core.interfaces import IPurchaseScheduleStore
from stockledger.core.services import (
    ManualPurchaseList,
    PendingDeliveryTracker,
    PurchaseScheduleAdvisor,
)

router = APIRouter(prefix="/api/purchases", tags=["purchases"])


def _require_purchasing(actor: Actor | None) -> None:
    if actor is not None:
        actor.require(Capability.PURCHASING)


# --- Purchase list ---


@router.post(
    "/list",
    response_model=PurchaseListResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def compute_purchase_list(
    request: PurchaseListRequest,
    today: date | None = Query(default=None, description="Business date override"),
    use_case: ComputePurchaseListUseCase = Depends(get_compute_purchase_list_use_case),
    default_today: date = Depends(get_today),
    actor: Actor | None = Depends(get_actor),
) -> PurchaseListResponse:
    """
    Compute the purchase list for a planning window.

    The result is derived on every call and never stored.
    """
    result = await use_case.execute(request, today=today or default_today, actor=actor)
    return use_case.to_response(result)


# --- Pending deliveries ---


@router.post(
    "/pending",
    response_model=PendingDeliveryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def mark_ordered(
    request: MarkOrderedRequest,
    use_case: MarkOrderedUseCase = Depends(get_mark_ordered_use_case),
    today: date = Depends(get_today),
    actor: Actor | None = Depends(get_actor),
) -> PendingDeliveryResponse:
    """Mark an item as ordered. Replaces the open order's quantity if one exists."""
    result = await use_case.execute(request, today=today, actor=actor)
    return use_case.to_response(result)


@router.get("/pending", response_model=PendingDeliveryListResponse)
async def list_pending(
    tracker: PendingDeliveryTracker = Depends(get_tracker),
) -> PendingDeliveryListResponse:
    """List open (ordered, not yet received) deliveries."""
    pending = await tracker.list_open()
    return PendingDeliveryListResponse(
        pending=[pending_delivery_response(p) for p in pending],
        total=len(pending),
    )


@router.post(
    "/pending/{pending_id}/cancel",
    response_model=PendingDeliveryResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def cancel_pending(
    pending_id: int,
    tracker: PendingDeliveryTracker = Depends(get_tracker),
    actor: Actor | None = Depends(get_actor),
) -> PendingDeliveryResponse:
    """Cancel an open order."""
    _require_purchasing(actor)
    return pending_delivery_response(await tracker.cancel(pending_id))


# --- Manual purchase list ---


@router.get("/manual", response_model=ManualEntryListResponse)
async def list_manual_entries(
    manual_list: ManualPurchaseList = Depends(get_manual_list),
) -> ManualEntryListResponse:
    entries = await manual_list.list_entries()
    return ManualEntryListResponse(
        entries=[manual_entry_response(e) for e in entries],
        total=len(entries),
    )


@router.post(
    "/manual",
    response_model=ManualEntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def add_manual_entry(
    request: ManualEntryRequest,
    manual_list: ManualPurchaseList = Depends(get_manual_list),
    actor: Actor | None = Depends(get_actor),
) -> ManualEntryResponse:
    """Add an item to the manual list, replacing any entry it already has."""
    _require_purchasing(actor)
    entry = await manual_list.add(
        request.stock_item_id,
        request.suggested_quantity,
        supplier_id=request.supplier_id,
        notes=request.notes,
    )
    return manual_entry_response(entry)


@router.patch(
    "/manual/{entry_id}",
    response_model=ManualEntryResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_manual_entry(
    entry_id: int,
    request: UpdateManualEntryRequest,
    manual_list: ManualPurchaseList = Depends(get_manual_list),
    actor: Actor | None = Depends(get_actor),
) -> ManualEntryResponse:
    _require_purchasing(actor)
    entry = await manual_list.update(
        entry_id,
        suggested_quantity=request.suggested_quantity,
        supplier_id=request.supplier_id,
        notes=request.notes,
    )
    return manual_entry_response(entry)


@router.delete(
    "/manual/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_manual_entry(
    entry_id: int,
    manual_list: ManualPurchaseList = Depends(get_manual_list),
    actor: Actor | None = Depends(get_actor),
) -> Response:
    _require_purchasing(actor)
    await manual_list.remove(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Purchase schedule ---


@router.get("/schedules", response_model=ScheduleListResponse)
async def list_schedules(
    store: IPurchaseScheduleStore = Depends(get_purchase_schedule_store),
) -> ScheduleListResponse:
    schedules = await store.list_schedules()
    return ScheduleListResponse(
        schedules=[schedule_response(s) for s in schedules],
        total=len(schedules),
    )


@router.get("/schedules/next", response_model=NextPurchaseDayResponse)
async def next_purchase_day(
    today: date | None = Query(default=None),
    store: IPurchaseScheduleStore = Depends(get_purchase_schedule_store),
    advisor: PurchaseScheduleAdvisor = Depends(get_advisor),
    default_today: date = Depends(get_today),
) -> NextPurchaseDayResponse:
    """Next order day on or after ``today``."""
    from_date = today or default_today
    schedules = await store.list_schedules()
    next_day = advisor.next_purchase_day(schedules, from_date)
    return NextPurchaseDayResponse(
        from_date=from_date,
        next_purchase_day=next_day,
        days_until=(next_day - from_date).days if next_day else None,
        is_purchase_day=advisor.is_today_purchase_day(schedules, from_date),
    )


@router.post(
    "/schedules",
    response_model=ScheduleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_schedule(
    request: ScheduleRequest,
    store: IPurchaseScheduleStore = Depends(get_purchase_schedule_store),
    actor: Actor | None = Depends(get_actor),
) -> ScheduleResponse:
    _require_purchasing(actor)
    schedule = await store.create(PurchaseSchedule(**request.model_dump()))
    return schedule_response(schedule)


@router.put(
    "/schedules/{schedule_id}",
    response_model=ScheduleResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_schedule(
    schedule_id: int,
    request: ScheduleRequest,
    store: IPurchaseScheduleStore = Depends(get_purchase_schedule_store),
    actor: Actor | None = Depends(get_actor),
) -> ScheduleResponse:
    _require_purchasing(actor)
    existing = await store.get(schedule_id)
    if existing is None:
        raise ScheduleNotFoundError(schedule_id)
    updated = existing.model_copy(update=request.model_dump())
    return schedule_response(await store.update(updated))


@router.delete(
    "/schedules/{schedule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_schedule(
    schedule_id: int,
    store: IPurchaseScheduleStore = Depends(get_purchase_schedule_store),
    actor: Actor | None = Depends(get_actor),
) -> Response:
    _require_purchasing(actor)
    if not await store.delete(schedule_id):
        raise ScheduleNotFoundError(schedule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Planning periods ---


@router.get("/period", response_model=PeriodWindowResponse)
async def period_window(
    period: PeriodType = Query(default=PeriodType.WEEK),
    reference: date | None = Query(default=None),
    steps: int = Query(default=0, description="Periods to move forward (negative: back)"),
    advisor: PurchaseScheduleAdvisor = Depends(get_advisor),
    today: date = Depends(get_today),
) -> PeriodWindowResponse:
    """Resolve the day/week/month/year window, optionally shifted."""
    ref = advisor.shift_period(period, reference or today, steps)
    window = advisor.period_window(period, ref)
    return PeriodWindowResponse(
        period=period.value,
        reference=ref,
        start=window.start,
        end=window.end,
        previous_reference=advisor.shift_period(period, ref, -1),
        next_reference=advisor.shift_period(period, ref, 1),
    )
