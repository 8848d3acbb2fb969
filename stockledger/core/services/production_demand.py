"""Projects ingredient requirements from scheduled productions."""

from collections import defaultdict
from collections.abc import Iterable

from stockledger.config import get_logger
from stockledger.core.entities.production import Production
from stockledger.core.entities.purchasing import PlanningWindow
from stockledger.core.exceptions import InvalidRecipeYieldError

logger = get_logger(__name__)


class ProductionDemandProjector:
    """
    Sums recipe consumption of planned productions inside a window.

    Each production scales its recipe by planned_quantity / yield_quantity.
    Productions in any other status than planned are ignored.
    """

    def project(
        self, productions: Iterable[Production], window: PlanningWindow
    ) -> dict[str, float]:
        """Return required quantity per stock item id; zero needs are omitted."""
        required: dict[str, float] = defaultdict(float)
        counted = 0

        for production in productions:
            if not production.is_planned or not window.contains(production.scheduled_date):
                continue

            recipe = production.recipe
            if recipe.yield_quantity <= 0:
                raise InvalidRecipeYieldError(recipe.id, recipe.yield_quantity)

            multiplier = production.planned_quantity / recipe.yield_quantity
            for ingredient in recipe.ingredients:
                required[ingredient.stock_item_id] += ingredient.quantity_per_yield * multiplier
            counted += 1

        result = {item_id: qty for item_id, qty in required.items() if qty > 0}

        logger.debug(
            "production_demand_projected",
            window_start=window.start.isoformat(),
            window_end=window.end.isoformat(),
            productions=counted,
            items=len(result),
        )
        return result
