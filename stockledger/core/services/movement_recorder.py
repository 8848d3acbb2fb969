"""
Movement recorder.

Validates an entry, exit or adjustment against an item and its batches
and turns it into a MovementPlan. The plan carries every write the
movement needs; the stock store applies it in a single transaction.
Validation failures raise before anything is planned, so a rejected
movement mutates nothing.
"""

from collections.abc import Sequence

from stockledger.config import get_logger
from stockledger.core.entities.stock import (
    Batch,
    BatchChange,
    BatchDeduction,
    BatchTarget,
    Movement,
    MovementKind,
    MovementPlan,
    MovementSource,
    StockItem,
)
from stockledger.core.exceptions import InsufficientStockError, ValidationError
from stockledger.core.services.batch_allocation import (
    DEFAULT_EPSILON,
    active_batches,
    fifo_allocate,
    validate_deductions,
)

logger = get_logger(__name__)


class MovementRecorder:
    """Pure planner for ledger movements."""

    def __init__(self, epsilon: float = DEFAULT_EPSILON) -> None:
        self._epsilon = epsilon

    @property
    def epsilon(self) -> float:
        return self._epsilon

    def suggest_fifo(
        self, item: StockItem, batches: Sequence[Batch], quantity: float
    ) -> list[BatchDeduction]:
        """FIFO deductions for an exit of ``quantity``. Not enforced."""
        return fifo_allocate(item.id, batches, quantity, self._epsilon)

    def plan(
        self,
        item: StockItem,
        batches: Sequence[Batch],
        kind: MovementKind,
        quantity: float,
        deductions: Sequence[BatchDeduction] | None = None,
        batch: BatchTarget | None = None,
        auto_fifo: bool = False,
        source: MovementSource = MovementSource.MANUAL,
        notes: str | None = None,
        actor_id: str | None = None,
        movement_key: str | None = None,
    ) -> MovementPlan:
        """
        Validate a movement and build the writes it implies.

        Args:
            item: Stock item as currently stored.
            batches: The item's batches.
            kind: Entry, exit or adjustment.
            quantity: Amount moved; for adjustments the absolute target.
            deductions: Explicit batch deductions for an exit.
            batch: Batch an entry goes into, created when missing.
            auto_fifo: Use FIFO deductions when none are given.

        Returns:
            MovementPlan to hand to the stock store.
        """
        if kind == MovementKind.ADJUSTMENT:
            if quantity < 0:
                raise ValidationError("quantity", "adjustment target cannot be negative", quantity)
        elif quantity <= 0:
            raise ValidationError("quantity", "must be greater than zero", quantity)

        if kind == MovementKind.ENTRY:
            new_quantity, changes, applied = self._plan_entry(item, batches, quantity, batch)
        elif kind == MovementKind.EXIT:
            new_quantity, changes, applied = self._plan_exit(
                item, batches, quantity, deductions, auto_fifo
            )
        else:
            new_quantity, changes, applied = quantity, (), ()

        movement = Movement(
            stock_item_id=item.id,
            kind=kind,
            quantity=quantity,
            previous_quantity=item.current_quantity,
            new_quantity=new_quantity,
            deductions=applied,
            batch=batch if kind == MovementKind.ENTRY else None,
            source=source,
            notes=notes,
            actor_id=actor_id,
            movement_key=movement_key,
        )

        logger.debug(
            "movement_planned",
            item_id=item.id,
            kind=kind.value,
            quantity=quantity,
            new_quantity=new_quantity,
            batch_changes=len(changes),
        )

        return MovementPlan(
            stock_item_id=item.id,
            expected_version=item.version,
            new_quantity=new_quantity,
            batch_changes=changes,
            movement=movement,
        )

    def _plan_entry(
        self,
        item: StockItem,
        batches: Sequence[Batch],
        quantity: float,
        target: BatchTarget | None,
    ) -> tuple[float, tuple[BatchChange, ...], tuple[BatchDeduction, ...]]:
        new_quantity = item.current_quantity + quantity
        if target is None:
            return new_quantity, (), ()

        existing = next(
            (
                b
                for b in batches
                if b.expiry_date == target.expiry_date and b.lot == target.lot
            ),
            None,
        )
        if existing is not None:
            change = BatchChange(
                batch_id=existing.id,
                expiry_date=existing.expiry_date,
                lot=existing.lot,
                new_quantity=existing.quantity + quantity,
            )
        else:
            change = BatchChange(
                batch_id=None,
                expiry_date=target.expiry_date,
                lot=target.lot,
                new_quantity=quantity,
            )
        return new_quantity, (change,), ()

    def _plan_exit(
        self,
        item: StockItem,
        batches: Sequence[Batch],
        quantity: float,
        deductions: Sequence[BatchDeduction] | None,
        auto_fifo: bool,
    ) -> tuple[float, tuple[BatchChange, ...], tuple[BatchDeduction, ...]]:
        new_quantity = item.current_quantity - quantity
        holding = active_batches(batches, self._epsilon)

        if not holding:
            if new_quantity < -self._epsilon:
                raise InsufficientStockError(item.id, quantity, item.current_quantity)
            return max(new_quantity, 0.0), (), ()

        if not deductions and auto_fifo:
            deductions = fifo_allocate(item.id, holding, quantity, self._epsilon)

        requested = validate_deductions(item.id, batches, quantity, deductions, self._epsilon)

        if new_quantity < -self._epsilon:
            raise InsufficientStockError(item.id, quantity, item.current_quantity)

        by_id = {b.id: b for b in batches}
        changes: list[BatchChange] = []
        for batch_id, amount in requested.items():
            source_batch = by_id[batch_id]
            remaining = max(source_batch.quantity - amount, 0.0)
            changes.append(
                BatchChange(
                    batch_id=batch_id,
                    expiry_date=source_batch.expiry_date,
                    lot=source_batch.lot,
                    new_quantity=0.0 if remaining <= self._epsilon else remaining,
                    remove=remaining <= self._epsilon,
                )
            )

        return max(new_quantity, 0.0), tuple(changes), tuple(deductions or ())
