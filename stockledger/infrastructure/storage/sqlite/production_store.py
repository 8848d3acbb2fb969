"""SQLite implementation of the production schedule feed."""

from collections import defaultdict
from datetime import date, datetime

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.production import (
    Production,
    ProductionStatus,
    Recipe,
    RecipeIngredient,
)
from stockledger.core.interfaces.production_store import IProductionStore
from stockledger.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


class SQLiteProductionStore(IProductionStore):
    """Recipes and scheduled productions as written by the scheduling collaborator."""

    async def save_recipe(self, recipe: Recipe) -> Recipe:
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO recipes (id, name, yield_quantity) VALUES (?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET
                    name = excluded.name,
                    yield_quantity = excluded.yield_quantity
                """,
                (recipe.id, recipe.name, recipe.yield_quantity),
            )
            await conn.execute(
                "DELETE FROM recipe_ingredients WHERE recipe_id = ?", (recipe.id,)
            )
            await conn.executemany(
                """
                INSERT INTO recipe_ingredients (recipe_id, stock_item_id, quantity_per_yield)
                VALUES (?, ?, ?)
                """,
                [
                    (recipe.id, ing.stock_item_id, ing.quantity_per_yield)
                    for ing in recipe.ingredients
                ],
            )
        logger.info(
            "recipe_saved",
            recipe_id=recipe.id,
            ingredients=len(recipe.ingredients),
        )
        return recipe

    async def get_recipe(self, recipe_id: str) -> Recipe | None:
        async with get_connection() as conn:
            recipes = await self._load_recipes(conn, [recipe_id])
        return recipes.get(recipe_id)

    async def save_production(self, production: Production) -> Production:
        await self.save_recipe(production.recipe)
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO productions (
                    id, recipe_id, scheduled_date, planned_quantity, status, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET
                    recipe_id = excluded.recipe_id,
                    scheduled_date = excluded.scheduled_date,
                    planned_quantity = excluded.planned_quantity,
                    status = excluded.status
                """,
                (
                    production.id,
                    production.recipe.id,
                    production.scheduled_date.isoformat(),
                    production.planned_quantity,
                    production.status.value,
                    production.created_at.isoformat(),
                ),
            )
        logger.info(
            "production_saved",
            production_id=production.id,
            scheduled_date=production.scheduled_date.isoformat(),
            status=production.status.value,
        )
        return production

    async def list_productions(
        self, start: date | None = None, end: date | None = None
    ) -> list[Production]:
        query = "SELECT * FROM productions WHERE 1 = 1"
        params: list = []
        if start is not None:
            query += " AND scheduled_date >= ?"
            params.append(start.isoformat())
        if end is not None:
            query += " AND scheduled_date <= ?"
            params.append(end.isoformat())
        query += " ORDER BY scheduled_date, id"

        async with get_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            recipes = await self._load_recipes(conn, list({row["recipe_id"] for row in rows}))

        productions = []
        for row in rows:
            recipe = recipes.get(row["recipe_id"])
            if recipe is None:
                logger.warning(
                    "production_recipe_missing",
                    production_id=row["id"],
                    recipe_id=row["recipe_id"],
                )
                continue
            productions.append(
                Production(
                    id=row["id"],
                    recipe=recipe,
                    scheduled_date=date.fromisoformat(row["scheduled_date"]),
                    planned_quantity=float(row["planned_quantity"]),
                    status=ProductionStatus(row["status"]),
                    created_at=datetime.fromisoformat(row["created_at"]),
                )
            )
        return productions

    @staticmethod
    async def _load_recipes(
        conn: aiosqlite.Connection, recipe_ids: list[str]
    ) -> dict[str, Recipe]:
        if not recipe_ids:
            return {}
        placeholders = ",".join("?" for _ in recipe_ids)

        cursor = await conn.execute(
            f"SELECT * FROM recipe_ingredients WHERE recipe_id IN ({placeholders}) "
            "ORDER BY stock_item_id",
            recipe_ids,
        )
        ingredients: dict[str, list[RecipeIngredient]] = defaultdict(list)
        for row in await cursor.fetchall():
            ingredients[row["recipe_id"]].append(
                RecipeIngredient(
                    stock_item_id=row["stock_item_id"],
                    quantity_per_yield=float(row["quantity_per_yield"]),
                )
            )

        cursor = await conn.execute(
            f"SELECT * FROM recipes WHERE id IN ({placeholders})", recipe_ids
        )
        return {
            row["id"]: Recipe(
                id=row["id"],
                name=row["name"],
                yield_quantity=float(row["yield_quantity"]),
                ingredients=ingredients.get(row["id"], []),
            )
            for row in await cursor.fetchall()
        }
