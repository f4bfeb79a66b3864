"""
Интеграционные тесты каталога: рецепты, меню и порции по умолчанию.

Сценарии:
- /recipes: создание, дубликат названия -> 409, удаление используемого -> 409
- /menu: выборка по диапазону, upsert слота, удаление
- /settings/portions: чтение сотрудником, запись только admin, значения > 0
"""

import pytest
from datetime import date

from mealops.core.errors import ConstraintKind, ConstraintViolation
from mealops.models.customer import MealType
from mealops.models.menu import MonthlyMenu
from mealops.models.recipe import RecipeCategory
from mealops.services.nutrition_calculator import PortionDefaults

pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# /recipes
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_recipes_by_category(ops_client, repos, chicken):
    repos["recipes"].list_recipes.return_value = [chicken]

    response = await ops_client.get("/api/v1/recipes", params={"category": "protein", "active_only": "true"})

    assert response.status_code == 200
    assert response.json()[0]["name"] == "Frango grelhado"
    repos["recipes"].list_recipes.assert_called_once_with(RecipeCategory.protein, True)


@pytest.mark.asyncio
async def test_create_recipe(ops_client, repos):
    async def _create(recipe):
        recipe.id = 21
        return recipe

    repos["recipes"].create.side_effect = _create

    response = await ops_client.post("/api/v1/recipes", json={
        "name": "Carne moída",
        "category": "protein",
        "kcal_per_100g": 212,
        "protein_per_100g": 26,
        "fat_per_100g": 12,
        "cost_per_100g": 4.2,
    })

    assert response.status_code == 201
    assert response.json()["id"] == 21
    assert response.json()["carb_per_100g"] == 0


@pytest.mark.asyncio
async def test_create_recipe_duplicate_name_returns_409(ops_client, repos):
    repos["recipes"].create.side_effect = ConstraintViolation(
        ConstraintKind.duplicate_recipe_name, "A recipe named 'Frango grelhado' already exists"
    )

    response = await ops_client.post("/api/v1/recipes", json={"name": "Frango grelhado", "category": "protein"})

    assert response.status_code == 409
    assert response.json()["kind"] == "duplicate_recipe_name"


@pytest.mark.asyncio
async def test_create_recipe_negative_macros_returns_422(ops_client):
    response = await ops_client.post("/api/v1/recipes", json={
        "name": "Errado", "category": "protein", "kcal_per_100g": -1,
    })
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_recipe(ops_client, repos, chicken):
    repos["recipes"].get_by_id.return_value = chicken

    async def _update(recipe, changes):
        for key, value in changes.items():
            setattr(recipe, key, value)
        return recipe

    repos["recipes"].update.side_effect = _update

    response = await ops_client.put("/api/v1/recipes/1", json={"price_per_kg": 65.5})

    assert response.status_code == 200
    assert response.json()["price_per_kg"] == 65.5
    repos["recipes"].update.assert_called_once_with(chicken, {"price_per_kg": 65.5})


@pytest.mark.asyncio
async def test_delete_recipe_in_use_returns_409(ops_client, repos, chicken):
    repos["recipes"].get_by_id.return_value = chicken
    repos["recipes"].delete.side_effect = ConstraintViolation(
        ConstraintKind.recipe_in_use, "Recipe 'Frango grelhado' is used by existing orders or menus"
    )

    response = await ops_client.delete("/api/v1/recipes/1")

    assert response.status_code == 409
    assert response.json()["kind"] == "recipe_in_use"


@pytest.mark.asyncio
async def test_delete_missing_recipe_returns_404(ops_client, repos):
    repos["recipes"].get_by_id.return_value = None
    response = await ops_client.delete("/api/v1/recipes/999")
    assert response.status_code == 404


# ---------------------------------------------------------------------------
# /menu
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_menu_range(ops_client, repos, lunch_menu, chicken):
    lunch_menu.protein_recipe = chicken
    repos["menus"].list_range.return_value = [lunch_menu]

    response = await ops_client.get("/api/v1/menu", params={"start": "2024-03-01", "end": "2024-03-31"})

    assert response.status_code == 200
    data = response.json()
    assert data[0]["protein_recipe"] == {"id": 1, "name": "Frango grelhado"}
    repos["menus"].list_range.assert_called_once_with(date(2024, 3, 1), date(2024, 3, 31))


@pytest.mark.asyncio
async def test_list_menu_reversed_range_returns_400(ops_client):
    response = await ops_client.get("/api/v1/menu", params={"start": "2024-03-31", "end": "2024-03-01"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_upsert_menu_slot(ops_client, repos):
    saved = MonthlyMenu(id=11, menu_date=date(2024, 3, 5), meal_type=MealType.dinner, protein_recipe_id=1)
    repos["menus"].upsert.return_value = saved

    response = await ops_client.put("/api/v1/menu", json={
        "menu_date": "2024-03-05",
        "meal_type": "dinner",
        "protein_recipe_id": 1,
    })

    assert response.status_code == 200
    assert response.json()["id"] == 11
    args = repos["menus"].upsert.call_args.args
    assert args[0] == date(2024, 3, 5)
    assert args[1] == MealType.dinner
    assert args[2]["protein_recipe_id"] == 1
    assert args[2]["carb_recipe_id"] is None


@pytest.mark.asyncio
async def test_delete_missing_menu_returns_404(ops_client, repos):
    repos["menus"].get_by_id.return_value = None
    response = await ops_client.delete("/api/v1/menu/77")
    assert response.status_code == 404


# ---------------------------------------------------------------------------
# /settings/portions
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_portions_as_ops(ops_client, repos):
    repos["settings"].get_portion_defaults.return_value = PortionDefaults(120, 80, 25)

    response = await ops_client.get("/api/v1/settings/portions")

    assert response.status_code == 200
    assert response.json() == {"vegetables_amount": 120, "salad_amount": 80, "salad_dressing_amount": 25}


@pytest.mark.asyncio
async def test_update_portions_as_admin(admin_client, repos):
    repos["settings"].update_portion_defaults.side_effect = lambda defaults: defaults

    response = await admin_client.put("/api/v1/settings/portions", json={
        "vegetables_amount": 110, "salad_amount": 90, "salad_dressing_amount": 20,
    })

    assert response.status_code == 200
    saved = repos["settings"].update_portion_defaults.call_args.args[0]
    assert saved == PortionDefaults(110, 90, 20)


@pytest.mark.asyncio
async def test_update_portions_as_ops_returns_403(ops_client):
    response = await ops_client.put("/api/v1/settings/portions", json={
        "vegetables_amount": 110, "salad_amount": 90, "salad_dressing_amount": 20,
    })
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_portions_rejects_zero(admin_client):
    response = await admin_client.put("/api/v1/settings/portions", json={
        "vegetables_amount": 0, "salad_amount": 90, "salad_dressing_amount": 20,
    })
    assert response.status_code == 422
