"""API tests for stock ledger endpoints."""

from datetime import date
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from stockledger.api.dependencies import (
    get_add_expiry_batch_use_case,
    get_check_expiring_batches_use_case,
    get_record_movement_use_case,
    get_stock_item_store,
    get_today,
)
from stockledger.api.main import app
from stockledger.application.use_cases import (
    AddExpiryBatchUseCase,
    CheckExpiringBatchesUseCase,
    RecordMovementUseCase,
)
from stockledger.core.entities import Batch, Movement, MovementKind
from stockledger.core.exceptions import DuplicateStockItemError
from stockledger.core.services import MovementRecorder

OVERRIDES = (
    get_stock_item_store,
    get_record_movement_use_case,
    get_add_expiry_batch_use_case,
    get_check_expiring_batches_use_case,
    get_today,
)


@pytest.fixture
def mock_store(milk, milk_batches):
    store = AsyncMock()
    store.get_item.return_value = milk
    store.list_items.return_value = [milk]
    store.list_batches.return_value = milk_batches
    store.list_all_batches.return_value = milk_batches
    store.get_movements.return_value = []
    store.apply_movement.side_effect = lambda plan: plan.movement.model_copy(update={"id": 1})
    return store


@pytest.fixture
def mock_tracker():
    tracker = AsyncMock()
    tracker.apply_receipt.return_value = None
    return tracker


@pytest.fixture
async def stock_client(mock_store, mock_tracker, locks, today):
    app.dependency_overrides[get_stock_item_store] = lambda: mock_store
    app.dependency_overrides[get_record_movement_use_case] = lambda: RecordMovementUseCase(
        stock_store=mock_store,
        pending_tracker=mock_tracker,
        recorder=MovementRecorder(),
        locks=locks,
    )
    app.dependency_overrides[get_add_expiry_batch_use_case] = lambda: AddExpiryBatchUseCase(
        stock_store=mock_store, locks=locks
    )
    app.dependency_overrides[get_check_expiring_batches_use_case] = (
        lambda: CheckExpiringBatchesUseCase(stock_store=mock_store)
    )
    app.dependency_overrides[get_today] = lambda: today
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    for dependency in OVERRIDES:
        app.dependency_overrides.pop(dependency, None)


class TestItems:
    async def test_create_item(self, stock_client: AsyncClient, mock_store):
        mock_store.create_item.side_effect = lambda item: item

        response = await stock_client.post(
            "/api/stock/items",
            json={"id": "salt", "name": "Sea salt", "unit": "kg", "minimum_quantity": 2},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == "salt"
        assert data["unit_dimension"] == "mass"
        assert data["stock_status"] == "critical"

    async def test_duplicate_item_conflicts(self, stock_client: AsyncClient, mock_store):
        mock_store.create_item.side_effect = DuplicateStockItemError("milk")

        response = await stock_client.post(
            "/api/stock/items", json={"id": "milk", "name": "Whole milk"}
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_STOCK_ITEM"

    async def test_create_requires_catalog_capability(self, stock_client: AsyncClient):
        response = await stock_client.post(
            "/api/stock/items",
            json={"id": "salt", "name": "Sea salt"},
            headers={"X-Actor-Id": "cook", "X-Actor-Capabilities": "stock"},
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "PERMISSION_DENIED"

    async def test_list_items(self, stock_client: AsyncClient):
        response = await stock_client.get("/api/stock/items")
        assert response.status_code == 200
        assert response.json()["total"] == 1

    async def test_get_missing_item(self, stock_client: AsyncClient, mock_store):
        mock_store.get_item.return_value = None

        response = await stock_client.get("/api/stock/items/nope")

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "STOCK_ITEM_NOT_FOUND"
        assert body["hint"]

    async def test_patch_updates_catalog_fields(self, stock_client: AsyncClient, mock_store):
        mock_store.update_item_details.side_effect = lambda item: item

        response = await stock_client.patch("/api/stock/items/milk", json={"minimum_quantity": 12})

        assert response.status_code == 200
        stored = mock_store.update_item_details.call_args[0][0]
        assert stored.minimum_quantity == 12
        assert stored.name == "Whole milk"


class TestMovements:
    async def test_fifo_exit(self, stock_client: AsyncClient, mock_store):
        response = await stock_client.post(
            "/api/stock/items/milk/movements",
            json={"kind": "exit", "quantity": 14, "auto_fifo": True},
            headers={"X-Actor-Id": "chef", "X-Actor-Capabilities": "stock"},
        )

        assert response.status_code == 201
        movement = response.json()["movement"]
        assert movement["kind"] == "exit"
        assert movement["actor_id"] == "chef"
        assert movement["deductions"] == [
            {"batch_id": 1, "quantity": 10.0},
            {"batch_id": 2, "quantity": 4.0},
        ]

    async def test_deduction_mismatch_is_422(self, stock_client: AsyncClient, mock_store):
        response = await stock_client.post(
            "/api/stock/items/milk/movements",
            json={
                "kind": "exit",
                "quantity": 10,
                "deductions": [{"batch_id": 1, "quantity": 5}],
            },
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "DEDUCTION_MISMATCH"
        mock_store.apply_movement.assert_not_awaited()

    async def test_non_positive_quantity_is_400(self, stock_client: AsyncClient):
        response = await stock_client.post(
            "/api/stock/items/milk/movements",
            json={"kind": "entry", "quantity": 0},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_missing_stock_capability_is_403(self, stock_client: AsyncClient):
        response = await stock_client.post(
            "/api/stock/items/milk/movements",
            json={"kind": "entry", "quantity": 1},
            headers={"X-Actor-Id": "buyer", "X-Actor-Capabilities": "purchasing"},
        )
        assert response.status_code == 403

    async def test_unknown_kind_is_request_validation_error(self, stock_client: AsyncClient):
        response = await stock_client.post(
            "/api/stock/items/milk/movements",
            json={"kind": "teleport", "quantity": 1},
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_list_movements(self, stock_client: AsyncClient, mock_store):
        mock_store.get_movements.return_value = [
            Movement(
                id=3,
                stock_item_id="milk",
                kind=MovementKind.ENTRY,
                quantity=5,
                previous_quantity=25,
                new_quantity=30,
            )
        ]

        response = await stock_client.get("/api/stock/items/milk/movements?limit=5")

        assert response.status_code == 200
        assert response.json()[0]["id"] == 3
        mock_store.get_movements.assert_awaited_once_with("milk", limit=5)

    async def test_fifo_suggestion(self, stock_client: AsyncClient):
        response = await stock_client.get("/api/stock/items/milk/fifo?quantity=12")

        assert response.status_code == 200
        assert [d["batch_id"] for d in response.json()["deductions"]] == [1, 2]


class TestBatches:
    async def test_list_batches(self, stock_client: AsyncClient):
        response = await stock_client.get("/api/stock/items/milk/batches")
        assert response.status_code == 200
        assert [b["id"] for b in response.json()] == [1, 2, 3]

    async def test_add_batch_reports_divergence(self, stock_client: AsyncClient, mock_store, milk_batches):
        new_batch = Batch(id=4, stock_item_id="milk", expiry_date=date(2024, 7, 1), quantity=2)
        mock_store.upsert_batch.return_value = new_batch
        mock_store.list_batches.return_value = milk_batches + [new_batch]

        response = await stock_client.post(
            "/api/stock/items/milk/batches",
            json={"expiry_date": "2024-07-01", "quantity": 2},
        )

        assert response.status_code == 201
        fault = response.json()["integrity_fault"]
        assert fault["batch_total"] == 32
        assert fault["difference"] == -2

    async def test_delete_missing_batch(self, stock_client: AsyncClient, mock_store):
        mock_store.get_batch.return_value = None

        response = await stock_client.delete("/api/stock/batches/99")

        assert response.status_code == 404
        assert response.json()["error_code"] == "BATCH_NOT_FOUND"

    async def test_expiry_alerts(self, stock_client: AsyncClient):
        response = await stock_client.get("/api/stock/expiry-alerts?days=3")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["alerts"][0]["item_name"] == "Whole milk"
        assert data["alerts"][0]["days_until"] == 2
