"""
Batch allocation helpers.

FIFO allocation over expiry-ordered batches, validation of explicit
exit deductions, the batch/ledger integrity check and expiry alerts.
Pure functions over entities; nothing here touches storage.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date

from stockledger.core.entities.stock import Batch, BatchDeduction, ExpiryAlert, StockItem
from stockledger.core.exceptions import (
    DeductionMismatchError,
    InsufficientBatchQuantityError,
    LedgerIntegrityFault,
    ValidationError,
)

DEFAULT_EPSILON = 1e-6


def sort_batches(batches: Iterable[Batch]) -> list[Batch]:
    """Expiry ascending, ties by id (unsaved batches last)."""
    return sorted(
        batches,
        key=lambda b: (b.expiry_date, b.id if b.id is not None else float("inf")),
    )


def batch_total(batches: Iterable[Batch]) -> float:
    return sum(b.quantity for b in batches)


def active_batches(batches: Iterable[Batch], epsilon: float = DEFAULT_EPSILON) -> list[Batch]:
    """Batches still holding stock, FIFO ordered."""
    return sort_batches(b for b in batches if b.quantity > epsilon)


def fifo_allocate(
    item_id: str,
    batches: Sequence[Batch],
    quantity: float,
    epsilon: float = DEFAULT_EPSILON,
) -> list[BatchDeduction]:
    """
    Suggest deductions consuming the soonest-expiring batches first.

    The first batch that cannot cover the remainder is consumed
    partially. Raises InsufficientBatchQuantityError when the batches
    together hold less than ``quantity``.
    """
    if quantity <= 0:
        raise ValidationError("quantity", "must be greater than zero", quantity)

    candidates = active_batches(batches, epsilon)
    available = batch_total(candidates)
    if quantity - available > epsilon:
        raise InsufficientBatchQuantityError(item_id, quantity, available)

    deductions: list[BatchDeduction] = []
    remaining = quantity
    for batch in candidates:
        if remaining <= epsilon:
            break
        take = min(batch.quantity, remaining)
        deductions.append(BatchDeduction(batch_id=batch.id, quantity=take))  # type: ignore[arg-type]
        remaining -= take

    return deductions


def validate_deductions(
    item_id: str,
    batches: Sequence[Batch],
    quantity: float,
    deductions: Sequence[BatchDeduction] | None,
    epsilon: float = DEFAULT_EPSILON,
) -> dict[int, float]:
    """
    Check explicit exit deductions against the item's batches.

    Returns the total requested per batch id. Raises
    DeductionMismatchError, ValidationError or
    InsufficientBatchQuantityError; never mutates anything.
    """
    if not deductions:
        raise DeductionMismatchError(item_id, quantity, 0.0)

    deducted = sum(d.quantity for d in deductions)
    if abs(deducted - quantity) > epsilon:
        raise DeductionMismatchError(item_id, quantity, deducted)

    owned = {b.id: b for b in batches}
    requested: dict[int, float] = defaultdict(float)
    for deduction in deductions:
        if deduction.batch_id not in owned:
            raise ValidationError(
                "deductions",
                f"batch {deduction.batch_id} does not belong to item {item_id}",
                deduction.batch_id,
            )
        requested[deduction.batch_id] += deduction.quantity

    for batch_id, amount in requested.items():
        available = owned[batch_id].quantity
        if amount - available > epsilon:
            raise InsufficientBatchQuantityError(item_id, amount, available, batch_id)

    return dict(requested)


def check_integrity(
    item: StockItem,
    batches: Sequence[Batch],
    epsilon: float = DEFAULT_EPSILON,
) -> LedgerIntegrityFault | None:
    """
    Compare the batch sum with the ledger quantity.

    Items without any batch are not batch-tracked and always pass.
    """
    if not batches:
        return None
    total = batch_total(batches)
    if abs(total - item.current_quantity) > epsilon:
        return LedgerIntegrityFault(item.id, item.current_quantity, total)
    return None


def expiry_alerts(
    batches: Iterable[Batch],
    today: date,
    days_threshold: int = 7,
    epsilon: float = DEFAULT_EPSILON,
) -> list[ExpiryAlert]:
    """Batches with stock expiring within ``days_threshold`` days, soonest first."""
    alerts: list[ExpiryAlert] = []
    for batch in batches:
        if batch.quantity <= epsilon:
            continue
        days_until = batch.days_until_expiry(today)
        if days_until > days_threshold:
            continue
        alerts.append(
            ExpiryAlert(
                batch=batch,
                days_until=days_until,
                is_expired=days_until < 0,
                is_near_expiry=0 <= days_until <= days_threshold,
            )
        )
    alerts.sort(key=lambda a: (a.days_until, a.batch.stock_item_id))
    return alerts


def earliest_expiry_by_item(
    batches: Iterable[Batch], epsilon: float = DEFAULT_EPSILON
) -> dict[str, date]:
    """Soonest expiry date per item among batches holding stock."""
    earliest: dict[str, date] = {}
    for batch in batches:
        if batch.quantity <= epsilon:
            continue
        current = earliest.get(batch.stock_item_id)
        if current is None or batch.expiry_date < current:
            earliest[batch.stock_item_id] = batch.expiry_date
    return earliest
