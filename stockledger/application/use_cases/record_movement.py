"""
Record Movement Use Case.

Entry, exit or adjustment against one stock item, applied under the
item's lock. Entries also settle the item's open order.
"""

from dataclasses import dataclass, field

from stockledger.application.dto.requests import RecordMovementRequest
from stockledger.application.dto.responses import (
    BatchDeductionResponse,
    FifoSuggestionResponse,
    RecordMovementResponse,
    batch_response,
    integrity_fault_response,
    movement_response,
    pending_delivery_response,
    stock_item_response,
)
from stockledger.config import get_audit_logger, get_logger
from stockledger.core.entities.identity import Actor, Capability
from stockledger.core.entities.purchasing import PendingDelivery
from stockledger.core.entities.stock import (
    Batch,
    BatchDeduction,
    BatchTarget,
    Movement,
    MovementKind,
    StockItem,
)
from stockledger.core.exceptions import LedgerIntegrityFault, StockItemNotFoundError
from stockledger.core.interfaces.stock_store import IStockStore
from stockledger.core.services.batch_allocation import check_integrity
from stockledger.core.services.item_locks import ItemLockRegistry, get_item_locks
from stockledger.core.services.movement_recorder import MovementRecorder
from stockledger.core.services.pending_deliveries import PendingDeliveryTracker

logger = get_logger(__name__)
audit = get_audit_logger()


@dataclass
class RecordMovementResult:
    """Result of a recorded movement."""

    item: StockItem
    movement: Movement
    batches: list[Batch] = field(default_factory=list)
    integrity_fault: LedgerIntegrityFault | None = None
    pending_delivery: PendingDelivery | None = None


class RecordMovementUseCase:
    """
    Use case for applying a stock movement.

    Flow:
    1. Take the item's lock
    2. Load item and batches, plan the movement (validates everything)
    3. Apply the plan in one transaction
    4. For entries, settle the open pending delivery (still under the lock)
    5. Check the batch invariant and report any divergence

    The movement commit and the order update are separate transactions.
    If the order update fails the movement stands, the error propagates
    and the order stays open until the next receipt or a cancel.
    """

    def __init__(
        self,
        stock_store: IStockStore | None = None,
        pending_tracker: PendingDeliveryTracker | None = None,
        recorder: MovementRecorder | None = None,
        locks: ItemLockRegistry | None = None,
    ):
        self._stock_store = stock_store
        self._pending_tracker = pending_tracker
        self._recorder = recorder
        self._locks = locks if locks is not None else get_item_locks()

    async def _get_stock_store(self) -> IStockStore:
        if self._stock_store is None:
            from stockledger.infrastructure.storage.sqlite import get_stock_store

            self._stock_store = await get_stock_store()
        return self._stock_store

    async def _get_pending_tracker(self) -> PendingDeliveryTracker:
        if self._pending_tracker is None:
            from stockledger.application.services import get_pending_delivery_tracker

            self._pending_tracker = await get_pending_delivery_tracker()
        return self._pending_tracker

    def _get_recorder(self) -> MovementRecorder:
        if self._recorder is None:
            from stockledger.application.services import get_movement_recorder

            self._recorder = get_movement_recorder()
        return self._recorder

    async def execute(
        self,
        item_id: str,
        request: RecordMovementRequest,
        actor: Actor | None = None,
    ) -> RecordMovementResult:
        """Execute record movement use case."""
        if actor is not None:
            actor.require(Capability.STOCK)

        logger.info(
            "record_movement_started",
            item_id=item_id,
            kind=request.kind.value,
            quantity=request.quantity,
        )

        store = await self._get_stock_store()
        recorder = self._get_recorder()

        deductions = (
            [BatchDeduction(batch_id=d.batch_id, quantity=d.quantity) for d in request.deductions]
            if request.deductions
            else None
        )
        target = (
            BatchTarget(expiry_date=request.batch.expiry_date, lot=request.batch.lot)
            if request.batch
            else None
        )

        async with self._locks.hold(item_id):
            item = await store.get_item(item_id)
            if item is None:
                raise StockItemNotFoundError(item_id)
            batches = await store.list_batches(item_id)

            plan = recorder.plan(
                item,
                batches,
                request.kind,
                request.quantity,
                deductions=deductions,
                batch=target,
                auto_fifo=request.auto_fifo,
                source=request.source,
                notes=request.notes,
                actor_id=actor.id if actor else None,
                movement_key=request.movement_key,
            )
            movement = await store.apply_movement(plan)

            item = await store.get_item(item_id)
            if item is None:
                raise StockItemNotFoundError(item_id)
            batches = await store.list_batches(item_id)

            # Order update shares the movement's lock.
            pending = None
            if request.kind == MovementKind.ENTRY:
                tracker = await self._get_pending_tracker()
                pending = await tracker.apply_receipt(item_id, request.quantity)

        fault = check_integrity(item, batches, recorder.epsilon)
        if fault is not None:
            audit.warning("ledger_integrity_fault", **fault.details)

        audit.info(
            "movement_recorded",
            item_id=item_id,
            movement_id=movement.id,
            kind=movement.kind.value,
            quantity=movement.quantity,
            previous_quantity=movement.previous_quantity,
            new_quantity=movement.new_quantity,
            deductions=[(d.batch_id, d.quantity) for d in movement.deductions],
            actor_id=movement.actor_id,
            movement_key=movement.movement_key,
        )

        return RecordMovementResult(
            item=item,
            movement=movement,
            batches=batches,
            integrity_fault=fault,
            pending_delivery=pending,
        )

    async def suggest_fifo(self, item_id: str, quantity: float) -> list[BatchDeduction]:
        """FIFO deductions for an exit, without applying anything."""
        store = await self._get_stock_store()
        item = await store.get_item(item_id)
        if item is None:
            raise StockItemNotFoundError(item_id)
        batches = await store.list_batches(item_id)
        return self._get_recorder().suggest_fifo(item, batches, quantity)

    def to_response(self, result: RecordMovementResult) -> RecordMovementResponse:
        """Convert result to API response."""
        return RecordMovementResponse(
            item=stock_item_response(result.item),
            movement=movement_response(result.movement),
            batches=[batch_response(b) for b in result.batches],
            integrity_fault=integrity_fault_response(result.integrity_fault),
            pending_delivery=(
                pending_delivery_response(result.pending_delivery)
                if result.pending_delivery
                else None
            ),
        )

    @staticmethod
    def fifo_to_response(
        item_id: str, quantity: float, deductions: list[BatchDeduction]
    ) -> FifoSuggestionResponse:
        return FifoSuggestionResponse(
            stock_item_id=item_id,
            quantity=quantity,
            deductions=[
                BatchDeductionResponse(batch_id=d.batch_id, quantity=d.quantity)
                for d in deductions
            ],
        )
