"""
Модульные тесты для NutritionCalculator.

Покрываемые методы:
- day_of_week_remap / day_of_week: нумерация 1=пн..7=вс
- compute_quantity: граммы блюда по целевому макросу
- calculate_quantities: белок/углеводы по целям клиента, остальное из порций по умолчанию
- aggregate_macros: соус и приправы не входят в КБЖУ, но входят в себестоимость
- target_kcal: коэффициенты Этуотера
- session_summary: итоги сессии заготовки по категориям

Расчёт не зависит от БД или внешних сервисов.
"""

import pytest
from datetime import date

from mealops.models.customer import MealType
from mealops.models.recipe import RecipeCategory
from mealops.services.nutrition_calculator import NutritionCalculator, PortionDefaults
from tests.conftest import make_customer, make_recipe

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# day_of_week
# ---------------------------------------------------------------------------

def test_day_of_week_remap_sunday_becomes_seven():
    """0 (воскресенье в нумерации JS) превращается в 7."""
    assert NutritionCalculator.day_of_week_remap(0) == 7


@pytest.mark.parametrize("js_day", [1, 2, 3, 4, 5, 6])
def test_day_of_week_remap_identity_for_weekdays(js_day):
    assert NutritionCalculator.day_of_week_remap(js_day) == js_day


def test_day_of_week_for_dates():
    """2024-03-04 понедельник, 2024-03-10 воскресенье."""
    assert NutritionCalculator.day_of_week(date(2024, 3, 4)) == 1
    assert NutritionCalculator.day_of_week(date(2024, 3, 10)) == 7


# ---------------------------------------------------------------------------
# compute_quantity
# ---------------------------------------------------------------------------

def test_compute_quantity_example():
    """40 г белка при 20 г/100 г -> 200 г блюда."""
    assert NutritionCalculator.compute_quantity(40, 20) == 200


def test_compute_quantity_rounds_to_whole_grams():
    """50 / 23 * 100 = 217.39 -> 217"""
    assert NutritionCalculator.compute_quantity(50, 23) == 217


@pytest.mark.parametrize("target,per100", [(40, 0), (40, None), (None, 20), (0, 20), (40, -5)])
def test_compute_quantity_zero_when_inputs_missing(target, per100):
    assert NutritionCalculator.compute_quantity(target, per100) == 0


# ---------------------------------------------------------------------------
# calculate_quantities
# ---------------------------------------------------------------------------

def test_calculate_quantities_uses_meal_targets_and_defaults(chicken, rice):
    customer = make_customer(lunch_protein=40, lunch_carbs=50, dinner_protein=30, dinner_carbs=25)
    defaults = PortionDefaults(vegetables_amount=120, salad_amount=80, salad_dressing_amount=25)

    lunch = NutritionCalculator.calculate_quantities(customer, MealType.lunch, chicken, rice, defaults)
    dinner = NutritionCalculator.calculate_quantities(customer, MealType.dinner, chicken, rice, defaults)

    assert lunch == {"protein": 200, "carb": 200, "vegetable": 120, "salad": 80, "sauce": 25}
    assert dinner["protein"] == 150
    assert dinner["carb"] == 100


def test_calculate_quantities_without_recipes_gives_zero(portion_defaults):
    customer = make_customer()
    quantities = NutritionCalculator.calculate_quantities(
        customer, MealType.lunch, None, None, portion_defaults
    )
    assert quantities["protein"] == 0
    assert quantities["carb"] == 0
    assert quantities["vegetable"] == 100


def test_portion_defaults_from_missing_row_uses_builtin_values():
    defaults = PortionDefaults.from_model(None)
    assert defaults == PortionDefaults(100, 100, 30)
    assert defaults.for_component("sauce") == 30
    assert defaults.for_component("protein") is None


# ---------------------------------------------------------------------------
# aggregate_macros / target_kcal
# ---------------------------------------------------------------------------

def test_aggregate_macros_excludes_sauce_from_nutrition(chicken, rice, vinaigrette):
    totals = NutritionCalculator.aggregate_macros([
        ("protein", chicken, 200),
        ("carb", rice, 200),
        ("sauce", vinaigrette, 30),
    ])

    assert totals.protein == pytest.approx(40 + 5)
    assert totals.carb == pytest.approx(0 + 50)
    assert totals.fat == pytest.approx(10 + 2)
    assert totals.kcal == pytest.approx(330 + 220)
    # соус учитывается в себестоимости и весе
    assert totals.cost == pytest.approx(6.0 + 1.6 + 0.6)
    assert totals.weight_gr == 430


def test_aggregate_macros_excludes_marinade_in_any_slot():
    marinade = make_recipe(9, "Marinada de limão", RecipeCategory.marinade, kcal=100, fat=10, cost=1)
    totals = NutritionCalculator.aggregate_macros([("protein", marinade, 50)])
    assert totals.kcal == 0
    assert totals.fat == 0
    assert totals.cost == pytest.approx(0.5)


def test_aggregate_macros_skips_missing_recipe_and_zero_grams(chicken):
    totals = NutritionCalculator.aggregate_macros([("protein", None, 200), ("carb", chicken, 0)])
    assert totals.kcal == 0
    assert totals.weight_gr == 0


def test_target_kcal_uses_atwater_factors():
    """40*4 + 50*4 + 15*9 = 495"""
    assert NutritionCalculator.target_kcal(40, 50, 15) == 495
    assert NutritionCalculator.target_kcal(None, None, None) == 0


# ---------------------------------------------------------------------------
# session_summary
# ---------------------------------------------------------------------------

def test_session_summary_groups_by_category(chicken, rice, vinaigrette):
    summary = NutritionCalculator.session_summary([
        (chicken, 1000),
        (rice, 2000),
        (vinaigrette, 500),
    ])

    assert summary.totals_by_category[RecipeCategory.protein].protein == pytest.approx(200)
    assert summary.totals_by_category[RecipeCategory.dressing].fat == pytest.approx(150)
    assert summary.totals_by_category[RecipeCategory.salad].weight_gr == 0

    # Итог без заправки по КБЖУ, но с ней по весу и стоимости
    assert summary.grand_totals.fat == pytest.approx(50 + 20)
    assert summary.grand_totals.weight_gr == 3500
    assert summary.grand_totals.cost == pytest.approx(30 + 16 + 10)
