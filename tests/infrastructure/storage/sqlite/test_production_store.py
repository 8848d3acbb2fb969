"""Tests for SQLiteProductionStore."""

from datetime import date

from stockledger.core.entities import ProductionStatus, Recipe, RecipeIngredient


class TestProductionStore:
    async def test_recipe_round_trip(self, production_store, bread_recipe):
        await production_store.save_recipe(bread_recipe)

        stored = await production_store.get_recipe("bread")

        assert stored.yield_quantity == 10
        assert stored.ingredients == bread_recipe.ingredients

    async def test_saving_recipe_replaces_ingredients(self, production_store, bread_recipe):
        await production_store.save_recipe(bread_recipe)
        bread_recipe.ingredients = [
            RecipeIngredient(stock_item_id="rye", quantity_per_yield=0.4)
        ]

        await production_store.save_recipe(bread_recipe)

        stored = await production_store.get_recipe("bread")
        assert [i.stock_item_id for i in stored.ingredients] == ["rye"]

    async def test_missing_recipe(self, production_store):
        assert await production_store.get_recipe("nope") is None

    async def test_list_in_window(self, production_store, bread_production):
        await production_store.save_production(bread_production)
        await production_store.save_production(
            bread_production.model_copy(
                update={"id": "prod-2", "scheduled_date": date(2024, 7, 1)}
            )
        )

        productions = await production_store.list_productions(
            date(2024, 6, 10), date(2024, 6, 16)
        )

        assert [p.id for p in productions] == ["prod-1"]
        assert productions[0].recipe.ingredients[0].stock_item_id == "flour"
        assert productions[0].status == ProductionStatus.PLANNED

    async def test_save_production_updates_status(self, production_store, bread_production):
        await production_store.save_production(bread_production)
        bread_production.status = ProductionStatus.CANCELLED

        await production_store.save_production(bread_production)

        [stored] = await production_store.list_productions()
        assert stored.status == ProductionStatus.CANCELLED

    async def test_recipe_without_ingredients(self, production_store):
        await production_store.save_recipe(Recipe(id="water", yield_quantity=1))
        stored = await production_store.get_recipe("water")
        assert stored.ingredients == []
