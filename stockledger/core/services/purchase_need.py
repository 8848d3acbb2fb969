"""
Purchase need calculator.

Merges the minimum-stock floor, projected production consumption,
open orders and the manual shopping list into a ranked purchase list.
"""

import math
from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import date
from enum import Enum

from stockledger.config import get_logger
from stockledger.core.entities.purchasing import (
    ManualPurchaseEntry,
    PendingDelivery,
    PurchaseLineItem,
    PurchaseList,
)
from stockledger.core.entities.stock import StockItem

logger = get_logger(__name__)


class MergePolicy(str, Enum):
    """How a manual entry combines with the computed suggestion."""

    MAX = "max"
    SUM = "sum"
    OVERRIDE = "override"

    def apply(self, computed: float, manual: float) -> float:
        if self == MergePolicy.SUM:
            return computed + manual
        if self == MergePolicy.OVERRIDE:
            return manual
        return max(computed, manual)


class PurchaseNeedCalculator:
    """
    Stateless reconciliation of stock against demand.

    Never raises business errors: negative intermediate values are
    clamped to zero and unknown items in the manual list are carried
    with placeholder figures.
    """

    def __init__(self, epsilon: float = 1e-6, round_up: bool = False) -> None:
        self._epsilon = epsilon
        self._round_up = round_up

    def calculate(
        self,
        items: Iterable[StockItem],
        production_need: Mapping[str, float] | None = None,
        pending_deliveries: Iterable[PendingDelivery] = (),
        manual_entries: Iterable[ManualPurchaseEntry] = (),
        earliest_expiry: Mapping[str, date] | None = None,
        merge_policy: MergePolicy | str = MergePolicy.MAX,
    ) -> PurchaseList:
        """Build the purchase list, urgent rows first, then by name."""
        policy = MergePolicy(merge_policy)
        production_need = production_need or {}
        earliest_expiry = earliest_expiry or {}
        eps = self._epsilon

        ordered: dict[str, float] = defaultdict(float)
        for pending in pending_deliveries:
            if pending.is_open:
                ordered[pending.stock_item_id] += max(pending.ordered_quantity, 0.0)

        manual: dict[str, ManualPurchaseEntry] = {}
        manual_qty: dict[str, float] = defaultdict(float)
        for entry in manual_entries:
            manual.setdefault(entry.stock_item_id, entry)
            manual_qty[entry.stock_item_id] += max(entry.suggested_quantity, 0.0)

        rows: dict[str, PurchaseLineItem] = {}
        for item in items:
            if item.id in rows:
                continue

            projected = max(production_need.get(item.id, 0.0), 0.0)
            need = projected * (1 + item.waste_factor / 100)
            base_need = max(0.0, item.minimum_quantity + need - item.current_quantity)
            if self._round_up and base_need > eps:
                base_need = float(math.ceil(base_need - eps))

            already_ordered = ordered.get(item.id, 0.0)
            suggested = max(0.0, base_need - already_ordered)

            entry = manual.get(item.id)
            if entry is not None:
                suggested = max(0.0, policy.apply(suggested, manual_qty[item.id]))
            if suggested <= eps:
                suggested = 0.0

            include = (
                suggested > 0
                or already_ordered > eps
                or (entry is not None and manual_qty[item.id] > eps)
            )
            if not include:
                continue

            rows[item.id] = PurchaseLineItem(
                stock_item_id=item.id,
                name=item.name,
                category=item.category.value,
                unit=item.unit.value,
                current_quantity=item.current_quantity,
                minimum_quantity=item.minimum_quantity,
                production_need=need,
                waste_factor=item.waste_factor,
                suggested_quantity=suggested,
                unit_price=item.unit_price,
                estimated_cost=suggested * item.unit_price,
                supplier_id=entry.supplier_id if entry and entry.supplier_id else item.supplier_id,
                ordered_quantity=already_ordered,
                earliest_expiry=earliest_expiry.get(item.id),
                is_urgent=item.current_quantity <= item.minimum_quantity,
                is_purchased=already_ordered > eps and suggested == 0.0,
                is_manual=entry is not None,
            )

        # Manual entries for items missing from the catalog
        for item_id, entry in manual.items():
            if item_id in rows or manual_qty[item_id] <= eps:
                continue
            rows[item_id] = PurchaseLineItem(
                stock_item_id=item_id,
                name=item_id,
                suggested_quantity=manual_qty[item_id],
                supplier_id=entry.supplier_id,
                ordered_quantity=ordered.get(item_id, 0.0),
                is_manual=True,
                in_catalog=False,
            )

        line_items = sorted(
            rows.values(),
            key=lambda row: (not row.is_urgent, row.name.lower(), row.stock_item_id),
        )
        result = self.summarize(line_items)

        logger.debug(
            "purchase_list_calculated",
            rows=len(line_items),
            urgent=result.urgent_count,
            purchased=result.purchased_count,
            merge_policy=policy.value,
        )
        return result

    @staticmethod
    def summarize(line_items: list[PurchaseLineItem]) -> PurchaseList:
        """Wrap rows with urgent / pending / purchased counters."""
        open_rows = [row for row in line_items if not row.is_purchased]
        return PurchaseList(
            items=line_items,
            urgent_count=sum(1 for row in line_items if row.is_urgent),
            pending_count=len(open_rows),
            purchased_count=len(line_items) - len(open_rows),
            total_estimated_cost=sum(row.estimated_cost for row in open_rows),
        )
