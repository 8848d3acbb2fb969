"""
Compute Purchase List Use Case.

Gathers catalog items, projected production need, open orders, the
manual list and batch expiries, then runs the purchase need calculator.
Reads only; takes no locks.
"""

from dataclasses import dataclass
from datetime import date

from stockledger.application.dto.requests import PurchaseListRequest
from stockledger.application.dto.responses import PurchaseListResponse, line_item_response
from stockledger.config import get_logger, get_settings
from stockledger.core.entities.identity import Actor, Capability
from stockledger.core.entities.purchasing import (
    ManualPurchaseEntry,
    PendingDeliveryStatus,
    PeriodType,
    PlanningWindow,
    PurchaseList,
)
from stockledger.core.entities.stock import StockItem
from stockledger.core.exceptions import ValidationError
from stockledger.core.interfaces.production_store import IProductionStore
from stockledger.core.interfaces.purchasing_store import (
    IManualPurchaseListStore,
    IPendingDeliveryStore,
)
from stockledger.core.interfaces.stock_store import IStockStore
from stockledger.core.services.batch_allocation import earliest_expiry_by_item
from stockledger.core.services.production_demand import ProductionDemandProjector
from stockledger.core.services.purchase_need import MergePolicy, PurchaseNeedCalculator
from stockledger.core.services.purchase_schedule import PurchaseScheduleAdvisor

logger = get_logger(__name__)

# Items read per catalog page
CATALOG_PAGE_SIZE = 500


@dataclass
class PurchaseListResult:
    window: PlanningWindow
    merge_policy: MergePolicy
    purchase_list: PurchaseList


class ComputePurchaseListUseCase:
    """Use case for computing the purchase list of a planning window."""

    def __init__(
        self,
        stock_store: IStockStore | None = None,
        production_store: IProductionStore | None = None,
        pending_store: IPendingDeliveryStore | None = None,
        manual_store: IManualPurchaseListStore | None = None,
        calculator: PurchaseNeedCalculator | None = None,
        projector: ProductionDemandProjector | None = None,
    ):
        self._stock_store = stock_store
        self._production_store = production_store
        self._pending_store = pending_store
        self._manual_store = manual_store
        self._calculator = calculator
        self._projector = projector
        self._advisor = PurchaseScheduleAdvisor()

    async def _get_stock_store(self) -> IStockStore:
        if self._stock_store is None:
            from stockledger.infrastructure.storage.sqlite import get_stock_store

            self._stock_store = await get_stock_store()
        return self._stock_store

    async def _get_production_store(self) -> IProductionStore:
        if self._production_store is None:
            from stockledger.infrastructure.storage.sqlite import get_production_store

            self._production_store = await get_production_store()
        return self._production_store

    async def _get_pending_store(self) -> IPendingDeliveryStore:
        if self._pending_store is None:
            from stockledger.infrastructure.storage.sqlite import get_pending_delivery_store

            self._pending_store = await get_pending_delivery_store()
        return self._pending_store

    async def _get_manual_store(self) -> IManualPurchaseListStore:
        if self._manual_store is None:
            from stockledger.infrastructure.storage.sqlite import get_manual_purchase_store

            self._manual_store = await get_manual_purchase_store()
        return self._manual_store

    def _get_projector(self) -> ProductionDemandProjector:
        if self._projector is None:
            from stockledger.application.services import get_demand_projector

            self._projector = get_demand_projector()
        return self._projector

    def _get_calculator(self) -> PurchaseNeedCalculator:
        if self._calculator is None:
            from stockledger.application.services import get_purchase_need_calculator

            self._calculator = get_purchase_need_calculator()
        return self._calculator

    def resolve_window(self, request: PurchaseListRequest, today: date) -> PlanningWindow:
        """Explicit start/end wins; otherwise the period around the reference date."""
        if request.start is not None or request.end is not None:
            start = request.start or request.end
            end = request.end or request.start
            if start > end:  # type: ignore[operator]
                raise ValidationError("end", "window end is before its start", end)
            return PlanningWindow(start=start, end=end)  # type: ignore[arg-type]
        return self._advisor.period_window(
            request.period or PeriodType.WEEK,
            request.reference or today,
        )

    @staticmethod
    async def _load_catalog(stock_store: IStockStore) -> list[StockItem]:
        items: list[StockItem] = []
        while True:
            page = await stock_store.list_items(limit=CATALOG_PAGE_SIZE, offset=len(items))
            items.extend(page)
            if len(page) < CATALOG_PAGE_SIZE:
                return items

    async def execute(
        self,
        request: PurchaseListRequest,
        today: date | None = None,
        actor: Actor | None = None,
    ) -> PurchaseListResult:
        """Execute compute purchase list use case."""
        if actor is not None:
            actor.require(Capability.PURCHASING)

        today = today or date.today()
        window = self.resolve_window(request, today)
        policy = MergePolicy(request.merge_policy or get_settings().purchase.merge_policy)

        stock_store = await self._get_stock_store()
        items = await self._load_catalog(stock_store)
        batches = await stock_store.list_all_batches()

        production_store = await self._get_production_store()
        productions = await production_store.list_productions(window.start, window.end)
        production_need = self._get_projector().project(productions, window)

        pending_store = await self._get_pending_store()
        # At most one open order per item
        pending = await pending_store.list_by_status(
            PendingDeliveryStatus.ORDERED, limit=max(len(items), CATALOG_PAGE_SIZE)
        )

        manual: dict[str, ManualPurchaseEntry] = {}
        if request.include_stored_manual:
            manual_store = await self._get_manual_store()
            for entry in await manual_store.list_entries():
                manual[entry.stock_item_id] = entry
        for entry_request in request.manual_entries:
            if entry_request.suggested_quantity <= 0:
                raise ValidationError(
                    "manual_entries",
                    "suggested_quantity must be greater than zero",
                    entry_request.suggested_quantity,
                )
            manual[entry_request.stock_item_id] = ManualPurchaseEntry(
                stock_item_id=entry_request.stock_item_id,
                suggested_quantity=entry_request.suggested_quantity,
                supplier_id=entry_request.supplier_id,
                notes=entry_request.notes,
            )

        purchase_list = self._get_calculator().calculate(
            items,
            production_need=production_need,
            pending_deliveries=pending,
            manual_entries=list(manual.values()),
            earliest_expiry=earliest_expiry_by_item(batches),
            merge_policy=policy,
        )

        logger.info(
            "purchase_list_computed",
            window_start=window.start.isoformat(),
            window_end=window.end.isoformat(),
            productions=len(productions),
            rows=len(purchase_list.items),
            urgent=purchase_list.urgent_count,
            pending=purchase_list.pending_count,
        )
        return PurchaseListResult(window=window, merge_policy=policy, purchase_list=purchase_list)

    def to_response(self, result: PurchaseListResult) -> PurchaseListResponse:
        """Convert result to API response."""
        purchase_list = result.purchase_list
        return PurchaseListResponse(
            window_start=result.window.start,
            window_end=result.window.end,
            merge_policy=result.merge_policy.value,
            items=[line_item_response(row) for row in purchase_list.items],
            urgent_count=purchase_list.urgent_count,
            pending_count=purchase_list.pending_count,
            purchased_count=purchase_list.purchased_count,
            total_estimated_cost=purchase_list.total_estimated_cost,
        )
