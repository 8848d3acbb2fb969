"""Pytest configuration and shared fixtures."""

from datetime import date

import pytest

from stockledger.core.entities import (
    Batch,
    Production,
    ProductionStatus,
    Recipe,
    RecipeIngredient,
    StockCategory,
    StockItem,
    StockUnit,
)
from stockledger.core.services import ItemLockRegistry


@pytest.fixture
def today() -> date:
    """A Wednesday."""
    return date(2024, 6, 12)


@pytest.fixture
def flour() -> StockItem:
    return StockItem(
        id="flour",
        name="Flour T55",
        category=StockCategory.DRY_GOODS,
        unit=StockUnit.KG,
        current_quantity=4.0,
        minimum_quantity=10.0,
        unit_price=1.2,
        supplier_id="mill-co",
    )


@pytest.fixture
def milk() -> StockItem:
    return StockItem(
        id="milk",
        name="Whole milk",
        category=StockCategory.DAIRY,
        unit=StockUnit.L,
        current_quantity=30.0,
        minimum_quantity=10.0,
        unit_price=0.9,
    )


@pytest.fixture
def milk_batches() -> list[Batch]:
    """Three batches summing to milk's 30 l, soonest expiry first."""
    return [
        Batch(id=1, stock_item_id="milk", expiry_date=date(2024, 6, 14), quantity=10.0),
        Batch(id=2, stock_item_id="milk", expiry_date=date(2024, 6, 18), quantity=8.0),
        Batch(id=3, stock_item_id="milk", expiry_date=date(2024, 6, 25), quantity=12.0),
    ]


@pytest.fixture
def bread_recipe() -> Recipe:
    """One run of 10 loaves takes 0.6 kg of flour."""
    return Recipe(
        id="bread",
        name="Country bread",
        yield_quantity=10.0,
        ingredients=[RecipeIngredient(stock_item_id="flour", quantity_per_yield=0.6)],
    )


@pytest.fixture
def bread_production(bread_recipe: Recipe, today: date) -> Production:
    return Production(
        id="prod-1",
        recipe=bread_recipe,
        scheduled_date=today,
        planned_quantity=10.0,
        status=ProductionStatus.PLANNED,
    )


@pytest.fixture
def locks() -> ItemLockRegistry:
    """Fresh lock registry so locks never outlive a test's event loop."""
    return ItemLockRegistry()
