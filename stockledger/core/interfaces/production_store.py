"""Abstract interface for the production schedule feed."""

from abc import ABC, abstractmethod
from datetime import date

from stockledger.core.entities.production import Production, Recipe


class IProductionStore(ABC):
    """Read access to scheduled productions and their recipes."""

    @abstractmethod
    async def save_recipe(self, recipe: Recipe) -> Recipe:
        """Insert or replace a recipe with its ingredients."""
        pass

    @abstractmethod
    async def get_recipe(self, recipe_id: str) -> Recipe | None:
        """Get recipe by ID."""
        pass

    @abstractmethod
    async def save_production(self, production: Production) -> Production:
        """Insert or replace a production."""
        pass

    @abstractmethod
    async def list_productions(
        self, start: date | None = None, end: date | None = None
    ) -> list[Production]:
        """List productions scheduled within [start, end], any status."""
        pass
