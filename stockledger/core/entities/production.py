"""Production scheduling entities (read from the scheduling collaborator)."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class ProductionStatus(str, Enum):
    """Lifecycle status of a scheduled production."""

    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RecipeIngredient(BaseModel):
    """Stock item consumed per unit of recipe yield."""

    stock_item_id: str
    quantity_per_yield: float = Field(..., ge=0)


class Recipe(BaseModel):
    """Recipe (technical sheet) with yield and ingredient list."""

    id: str
    name: str = ""
    yield_quantity: float = 1.0
    ingredients: list[RecipeIngredient] = Field(default_factory=list)


class Production(BaseModel):
    """A scheduled production run of a recipe."""

    id: str
    recipe: Recipe
    scheduled_date: date
    planned_quantity: float = Field(..., ge=0)
    status: ProductionStatus = ProductionStatus.PLANNED
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_planned(self) -> bool:
        return self.status == ProductionStatus.PLANNED
