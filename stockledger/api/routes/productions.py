"""Production feed endpoints.

Scheduled productions come from the scheduling collaborator. They feed
demand projection for the purchase list and purchase-day suggestions.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import (
    get_actor,
    get_advisor,
    get_app_settings,
    get_production_feed_store,
    get_today,
)
from stockledger.application.dto.requests import ProductionRequest
from stockledger.application.dto.responses import (
    ErrorResponse,
    ProductionListResponse,
    ProductionResponse,
    production_response,
)
from stockledger.config import Settings
from stockledger.core.entities.identity import Actor, Capability
from stockledger.core.entities.production import Production, Recipe, RecipeIngredient
from stockledger.core.exceptions import ValidationError
from stockledger.core.interfaces import IProductionStore
from stockledger.core.services import PurchaseScheduleAdvisor

router = APIRouter(prefix="/api/productions", tags=["productions"])


@router.post(
    "",
    response_model=ProductionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}},
)
async def save_production(
    request: ProductionRequest,
    store: IProductionStore = Depends(get_production_feed_store),
    actor: Actor | None = Depends(get_actor),
) -> ProductionResponse:
    """Insert or replace a scheduled production with its recipe."""
    if actor is not None:
        actor.require(Capability.PRODUCTION)
    recipe = Recipe(
        id=request.recipe.id,
        name=request.recipe.name,
        yield_quantity=request.recipe.yield_quantity,
        ingredients=[
            RecipeIngredient(
                stock_item_id=ing.stock_item_id,
                quantity_per_yield=ing.quantity_per_yield,
            )
            for ing in request.recipe.ingredients
        ],
    )
    production = await store.save_production(
        Production(
            id=request.id,
            recipe=recipe,
            scheduled_date=request.scheduled_date,
            planned_quantity=request.planned_quantity,
            status=request.status,
        )
    )
    return production_response(production)


@router.get(
    "",
    response_model=ProductionListResponse,
    responses={400: {"model": ErrorResponse}},
)
async def list_productions(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    store: IProductionStore = Depends(get_production_feed_store),
    advisor: PurchaseScheduleAdvisor = Depends(get_advisor),
    settings: Settings = Depends(get_app_settings),
    today: date = Depends(get_today),
) -> ProductionListResponse:
    """List productions in the window with suggested purchase days."""
    if start and end and start > end:
        raise ValidationError("start", "must not be after end", start.isoformat())

    productions = await store.list_productions(start=start, end=end)
    suggested_date = advisor.suggested_purchase_date(
        productions, today, lead_days=settings.purchase.lead_days
    )
    return ProductionListResponse(
        productions=[production_response(p) for p in productions],
        total=len(productions),
        suggested_purchase_weekdays=[
            w.name.lower() for w in advisor.suggest_purchase_weekdays(productions)
        ],
        suggested_purchase_date=suggested_date,
    )
