"""Fixtures for use case tests."""

from unittest.mock import AsyncMock

import pytest


@pytest.fixture
def mock_stock_store():
    store = AsyncMock()
    store.apply_movement.side_effect = lambda plan: plan.movement.model_copy(update={"id": 1})
    return store


@pytest.fixture
def mock_pending_tracker():
    tracker = AsyncMock()
    tracker.apply_receipt.return_value = None
    return tracker
