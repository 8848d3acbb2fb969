"""Tests for ComputePurchaseListUseCase."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from stockledger.application.dto.requests import ManualEntryRequest, PurchaseListRequest
from stockledger.application.use_cases import compute_purchase_list
from stockledger.application.use_cases.compute_purchase_list import (
    CATALOG_PAGE_SIZE,
    ComputePurchaseListUseCase,
)
from stockledger.core.entities import (
    Actor,
    Capability,
    ManualPurchaseEntry,
    PendingDelivery,
    PendingDeliveryStatus,
    PeriodType,
)
from stockledger.core.exceptions import PermissionDeniedError, ValidationError
from stockledger.core.services import (
    MergePolicy,
    ProductionDemandProjector,
    PurchaseNeedCalculator,
)


@pytest.fixture
def production_store():
    store = AsyncMock()
    store.list_productions.return_value = []
    return store


@pytest.fixture
def pending_store():
    store = AsyncMock()
    store.list_by_status.return_value = []
    return store


@pytest.fixture
def manual_store():
    store = AsyncMock()
    store.list_entries.return_value = []
    return store


@pytest.fixture
def use_case(mock_stock_store, production_store, pending_store, manual_store, flour, milk):
    mock_stock_store.list_items.return_value = [flour, milk]
    mock_stock_store.list_all_batches.return_value = []
    return ComputePurchaseListUseCase(
        stock_store=mock_stock_store,
        production_store=production_store,
        pending_store=pending_store,
        manual_store=manual_store,
        calculator=PurchaseNeedCalculator(),
        projector=ProductionDemandProjector(),
    )


def _row(result, item_id):
    return next(r for r in result.purchase_list.items if r.stock_item_id == item_id)


class TestResolveWindow:
    def test_defaults_to_current_week(self, use_case, today):
        window = use_case.resolve_window(PurchaseListRequest(), today)
        assert window.start == date(2024, 6, 10)
        assert window.end == date(2024, 6, 16)

    def test_explicit_bounds(self, use_case, today):
        request = PurchaseListRequest(start=date(2024, 6, 1), end=date(2024, 6, 3))
        window = use_case.resolve_window(request, today)
        assert (window.start, window.end) == (date(2024, 6, 1), date(2024, 6, 3))

    def test_single_bound_is_one_day(self, use_case, today):
        window = use_case.resolve_window(PurchaseListRequest(start=date(2024, 6, 5)), today)
        assert window.start == window.end == date(2024, 6, 5)

    def test_inverted_bounds_rejected(self, use_case, today):
        request = PurchaseListRequest(start=date(2024, 6, 5), end=date(2024, 6, 1))
        with pytest.raises(ValidationError):
            use_case.resolve_window(request, today)

    def test_month_around_reference(self, use_case, today):
        request = PurchaseListRequest(period=PeriodType.MONTH, reference=date(2024, 2, 10))
        window = use_case.resolve_window(request, today)
        assert (window.start, window.end) == (date(2024, 2, 1), date(2024, 2, 29))


class TestExecute:
    async def test_production_drives_need(
        self, use_case, production_store, bread_production, today
    ):
        production_store.list_productions.return_value = [
            bread_production.model_copy(update={"planned_quantity": 100.0})
        ]

        result = await use_case.execute(PurchaseListRequest(), today=today)

        row = _row(result, "flour")
        assert row.production_need == pytest.approx(6.0)
        assert row.suggested_quantity == pytest.approx(12.0)
        assert row.is_urgent is True
        assert [r.stock_item_id for r in result.purchase_list.items] == ["flour"]
        production_store.list_productions.assert_awaited_once_with(
            date(2024, 6, 10), date(2024, 6, 16)
        )

    async def test_open_orders_read_by_status(self, use_case, pending_store, today):
        pending_store.list_by_status.return_value = [
            PendingDelivery(id=3, stock_item_id="flour", ordered_quantity=6.0)
        ]

        result = await use_case.execute(PurchaseListRequest(), today=today)

        assert _row(result, "flour").is_purchased is True
        pending_store.list_by_status.assert_awaited_once_with(
            PendingDeliveryStatus.ORDERED, limit=CATALOG_PAGE_SIZE
        )

    async def test_catalog_read_page_by_page(
        self, use_case, mock_stock_store, pending_store, monkeypatch, flour, milk, today
    ):
        monkeypatch.setattr(compute_purchase_list, "CATALOG_PAGE_SIZE", 1)
        mock_stock_store.list_items.side_effect = [[flour], [milk], []]

        result = await use_case.execute(PurchaseListRequest(), today=today)

        offsets = [c.kwargs["offset"] for c in mock_stock_store.list_items.await_args_list]
        assert offsets == [0, 1, 2]
        assert [r.stock_item_id for r in result.purchase_list.items] == ["flour"]
        pending_store.list_by_status.assert_awaited_once_with(
            PendingDeliveryStatus.ORDERED, limit=2
        )

    async def test_request_entry_overrides_stored_entry(self, use_case, manual_store, today):
        manual_store.list_entries.return_value = [
            ManualPurchaseEntry(id=1, stock_item_id="milk", suggested_quantity=3.0)
        ]
        request = PurchaseListRequest(
            manual_entries=[ManualEntryRequest(stock_item_id="milk", suggested_quantity=5.0)]
        )

        result = await use_case.execute(request, today=today)

        row = _row(result, "milk")
        assert row.suggested_quantity == 5.0
        assert row.is_manual is True

    async def test_stored_manual_list_can_be_skipped(self, use_case, manual_store, today):
        request = PurchaseListRequest(include_stored_manual=False)
        await use_case.execute(request, today=today)
        manual_store.list_entries.assert_not_awaited()

    async def test_non_positive_manual_quantity_rejected(self, use_case, today):
        request = PurchaseListRequest(
            manual_entries=[ManualEntryRequest(stock_item_id="milk", suggested_quantity=0)]
        )
        with pytest.raises(ValidationError):
            await use_case.execute(request, today=today)

    async def test_merge_policy_from_request(self, use_case, manual_store, today):
        manual_store.list_entries.return_value = [
            ManualPurchaseEntry(id=1, stock_item_id="flour", suggested_quantity=5.0)
        ]
        request = PurchaseListRequest(merge_policy=MergePolicy.SUM)

        result = await use_case.execute(request, today=today)

        assert result.merge_policy is MergePolicy.SUM
        assert _row(result, "flour").suggested_quantity == pytest.approx(11.0)

    async def test_requires_purchasing_capability(self, use_case, today):
        actor = Actor(id="cook", capabilities=Capability.PRODUCTION)
        with pytest.raises(PermissionDeniedError):
            await use_case.execute(PurchaseListRequest(), today=today, actor=actor)

    async def test_to_response(self, use_case, today):
        result = await use_case.execute(PurchaseListRequest(), today=today)
        response = use_case.to_response(result)
        assert response.window_start == date(2024, 6, 10)
        assert response.urgent_count == 1
        assert response.total_estimated_cost == pytest.approx(7.2)
