"""Tests for PurchaseNeedCalculator."""

from datetime import date

import pytest

from stockledger.core.entities import (
    ManualPurchaseEntry,
    PendingDelivery,
    PendingDeliveryStatus,
    StockItem,
)
from stockledger.core.services import MergePolicy, PurchaseNeedCalculator


@pytest.fixture
def calculator() -> PurchaseNeedCalculator:
    return PurchaseNeedCalculator()


def _row(purchase_list, item_id):
    return next(row for row in purchase_list.items if row.stock_item_id == item_id)


class TestComputedNeed:
    def test_minimum_plus_production_minus_stock(self, calculator, flour: StockItem):
        result = calculator.calculate([flour], production_need={"flour": 6})
        row = _row(result, "flour")
        assert row.suggested_quantity == 12
        assert row.is_urgent is True
        assert row.is_purchased is False
        assert row.estimated_cost == pytest.approx(14.4)
        assert result.urgent_count == 1

    def test_open_order_covers_need(self, calculator, flour: StockItem):
        pending = PendingDelivery(stock_item_id="flour", ordered_quantity=12)
        result = calculator.calculate(
            [flour], production_need={"flour": 6}, pending_deliveries=[pending]
        )
        row = _row(result, "flour")
        assert row.suggested_quantity == 0
        assert row.is_purchased is True
        assert row.ordered_quantity == 12
        assert result.purchased_count == 1
        assert result.pending_count == 0
        assert result.total_estimated_cost == 0

    def test_partial_order_leaves_remainder(self, calculator, flour: StockItem):
        pending = PendingDelivery(stock_item_id="flour", ordered_quantity=5)
        result = calculator.calculate(
            [flour], production_need={"flour": 6}, pending_deliveries=[pending]
        )
        row = _row(result, "flour")
        assert row.suggested_quantity == 7
        assert row.is_purchased is False

    def test_closed_orders_ignored(self, calculator, flour: StockItem):
        pending = PendingDelivery(
            stock_item_id="flour",
            ordered_quantity=12,
            status=PendingDeliveryStatus.DELIVERED,
        )
        result = calculator.calculate([flour], pending_deliveries=[pending])
        assert _row(result, "flour").suggested_quantity == 6

    def test_waste_factor_inflates_production_need(self, calculator, flour: StockItem):
        flour.waste_factor = 50
        result = calculator.calculate([flour], production_need={"flour": 6})
        row = _row(result, "flour")
        assert row.production_need == 9
        assert row.suggested_quantity == 15

    def test_well_stocked_item_omitted(self, calculator, milk: StockItem):
        result = calculator.calculate([milk])
        assert result.items == []

    def test_never_negative(self, calculator, milk: StockItem):
        result = calculator.calculate(
            [milk],
            pending_deliveries=[PendingDelivery(stock_item_id="milk", ordered_quantity=100)],
        )
        row = _row(result, "milk")
        assert row.suggested_quantity == 0
        assert row.is_purchased is True

    def test_round_up(self, flour: StockItem):
        calculator = PurchaseNeedCalculator(round_up=True)
        flour.current_quantity = 3.4
        result = calculator.calculate([flour])
        assert _row(result, "flour").suggested_quantity == 7


class TestManualEntries:
    def test_manual_entry_survives_zero_need(self, calculator, milk: StockItem):
        entry = ManualPurchaseEntry(stock_item_id="milk", suggested_quantity=5)
        result = calculator.calculate([milk], manual_entries=[entry])
        row = _row(result, "milk")
        assert row.is_manual is True
        assert row.suggested_quantity == 5

    @pytest.mark.parametrize(
        "policy,expected",
        [
            (MergePolicy.MAX, 12),
            (MergePolicy.SUM, 17),
            (MergePolicy.OVERRIDE, 5),
        ],
    )
    def test_merge_policy(self, calculator, flour: StockItem, policy, expected):
        entry = ManualPurchaseEntry(stock_item_id="flour", suggested_quantity=5)
        result = calculator.calculate(
            [flour],
            production_need={"flour": 6},
            manual_entries=[entry],
            merge_policy=policy,
        )
        assert _row(result, "flour").suggested_quantity == expected

    def test_policy_accepts_string(self, calculator, flour: StockItem):
        entry = ManualPurchaseEntry(stock_item_id="flour", suggested_quantity=1)
        result = calculator.calculate([flour], manual_entries=[entry], merge_policy="sum")
        assert _row(result, "flour").suggested_quantity == 7

    def test_duplicate_entries_are_summed(self, calculator, milk: StockItem):
        entries = [
            ManualPurchaseEntry(stock_item_id="milk", suggested_quantity=2),
            ManualPurchaseEntry(stock_item_id="milk", suggested_quantity=3),
        ]
        result = calculator.calculate([milk], manual_entries=entries)
        assert len(result.items) == 1
        assert _row(result, "milk").suggested_quantity == 5

    def test_unknown_item_kept_as_placeholder(self, calculator):
        entry = ManualPurchaseEntry(
            stock_item_id="saffron", suggested_quantity=0.1, supplier_id="spice-co"
        )
        result = calculator.calculate([], manual_entries=[entry])
        row = _row(result, "saffron")
        assert row.in_catalog is False
        assert row.name == "saffron"
        assert row.supplier_id == "spice-co"
        assert row.is_urgent is False

    def test_entry_supplier_overrides_catalog(self, calculator, flour: StockItem):
        entry = ManualPurchaseEntry(
            stock_item_id="flour", suggested_quantity=1, supplier_id="other-mill"
        )
        result = calculator.calculate([flour], manual_entries=[entry])
        assert _row(result, "flour").supplier_id == "other-mill"


class TestOrdering:
    def test_urgent_first_then_name(self, calculator, flour: StockItem):
        items = [
            StockItem(id="z", name="apples", current_quantity=5, minimum_quantity=4),
            flour,
            StockItem(id="b", name="Butter", current_quantity=5, minimum_quantity=4),
            StockItem(id="e", name="eggs", current_quantity=0, minimum_quantity=12),
        ]
        entries = [
            ManualPurchaseEntry(stock_item_id="z", suggested_quantity=1),
            ManualPurchaseEntry(stock_item_id="b", suggested_quantity=1),
        ]
        result = calculator.calculate(items, manual_entries=entries)
        assert [row.stock_item_id for row in result.items] == ["e", "flour", "z", "b"]

    def test_expiry_carried(self, calculator, flour: StockItem):
        result = calculator.calculate([flour], earliest_expiry={"flour": date(2024, 6, 30)})
        assert _row(result, "flour").earliest_expiry == date(2024, 6, 30)


class TestIdempotence:
    def test_same_inputs_same_output(self, calculator, flour: StockItem, milk: StockItem):
        pending = [PendingDelivery(stock_item_id="flour", ordered_quantity=3)]
        manual = [ManualPurchaseEntry(stock_item_id="milk", suggested_quantity=2)]
        kwargs = dict(
            production_need={"flour": 6},
            pending_deliveries=pending,
            manual_entries=manual,
        )
        first = calculator.calculate([flour, milk], **kwargs)
        second = calculator.calculate([flour, milk], **kwargs)
        assert first == second
        assert flour.current_quantity == 4
        assert pending[0].ordered_quantity == 3
