"""Mark Ordered Use Case - records an order and clears the manual entry."""

from dataclasses import dataclass
from datetime import date

from stockledger.application.dto.requests import MarkOrderedRequest
from stockledger.application.dto.responses import PendingDeliveryResponse, pending_delivery_response
from stockledger.config import get_logger
from stockledger.core.entities.identity import Actor, Capability
from stockledger.core.entities.purchasing import PendingDelivery
from stockledger.core.exceptions import StockItemNotFoundError
from stockledger.core.interfaces.stock_store import IStockStore
from stockledger.core.services.manual_purchase_list import ManualPurchaseList
from stockledger.core.services.pending_deliveries import PendingDeliveryTracker

logger = get_logger(__name__)


@dataclass
class MarkOrderedResult:
    pending: PendingDelivery
    manual_entries_removed: int = 0


class MarkOrderedUseCase:
    """Mark a purchase-list item as ordered."""

    def __init__(
        self,
        stock_store: IStockStore | None = None,
        pending_tracker: PendingDeliveryTracker | None = None,
        manual_list: ManualPurchaseList | None = None,
    ):
        self._stock_store = stock_store
        self._pending_tracker = pending_tracker
        self._manual_list = manual_list

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

    async def _get_manual_list(self) -> ManualPurchaseList:
        if self._manual_list is None:
            from stockledger.application.services import get_manual_purchase_list

            self._manual_list = await get_manual_purchase_list()
        return self._manual_list

    async def execute(
        self,
        request: MarkOrderedRequest,
        today: date | None = None,
        actor: Actor | None = None,
    ) -> MarkOrderedResult:
        """Execute mark ordered use case."""
        if actor is not None:
            actor.require(Capability.PURCHASING)

        store = await self._get_stock_store()
        item = await store.get_item(request.stock_item_id)
        if item is None:
            raise StockItemNotFoundError(request.stock_item_id)

        tracker = await self._get_pending_tracker()
        pending = await tracker.mark_ordered(
            request.stock_item_id,
            request.ordered_quantity,
            suggested_quantity=request.suggested_quantity,
            supplier_id=request.supplier_id or item.supplier_id,
            expected_delivery_date=request.expected_delivery_date,
            today=today,
        )

        manual_list = await self._get_manual_list()
        removed = await manual_list.remove_for_item(request.stock_item_id)

        logger.info(
            "mark_ordered_complete",
            item_id=request.stock_item_id,
            pending_id=pending.id,
            manual_entries_removed=removed,
        )
        return MarkOrderedResult(pending=pending, manual_entries_removed=removed)

    def to_response(self, result: MarkOrderedResult) -> PendingDeliveryResponse:
        return pending_delivery_response(result.pending)
