from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, Optional, Sequence, Tuple

from mealops.models.customer import Customer, MealType
from mealops.models.recipe import Recipe, RecipeCategory, FLAVORING_CATEGORIES

# Слоты блюда в порядке сборки контейнера
MEAL_COMPONENTS = ("protein", "carb", "vegetable", "salad", "sauce")

COMPONENT_CATEGORIES = {
    "protein": RecipeCategory.protein,
    "carb": RecipeCategory.carbohydrate,
    "vegetable": RecipeCategory.vegetable,
    "salad": RecipeCategory.salad,
    "sauce": RecipeCategory.dressing,
}


@dataclass(frozen=True)
class PortionDefaults:
    """Порции по умолчанию для овощей, салата и заправки, граммы."""
    vegetables_amount: float = 100
    salad_amount: float = 100
    salad_dressing_amount: float = 30

    @classmethod
    def from_model(cls, row) -> "PortionDefaults":
        if row is None:
            return cls()
        return cls(
            vegetables_amount=row.vegetables_amount or cls.vegetables_amount,
            salad_amount=row.salad_amount or cls.salad_amount,
            salad_dressing_amount=row.salad_dressing_amount or cls.salad_dressing_amount,
        )

    def for_component(self, component: str) -> Optional[float]:
        return {
            "vegetable": self.vegetables_amount,
            "salad": self.salad_amount,
            "sauce": self.salad_dressing_amount,
        }.get(component)


@dataclass
class MacroTotals:
    kcal: float = 0.0
    protein: float = 0.0
    carb: float = 0.0
    fat: float = 0.0
    cost: float = 0.0
    weight_gr: float = 0.0

    def add_nutrition(self, other: "MacroTotals") -> None:
        self.kcal += other.kcal
        self.protein += other.protein
        self.carb += other.carb
        self.fat += other.fat

    def add_all(self, other: "MacroTotals") -> None:
        self.add_nutrition(other)
        self.cost += other.cost
        self.weight_gr += other.weight_gr


@dataclass
class SessionSummary:
    totals_by_category: Dict[RecipeCategory, MacroTotals] = field(default_factory=dict)
    grand_totals: MacroTotals = field(default_factory=MacroTotals)


class NutritionCalculator:
    # Коэффициенты Этуотера, ккал на грамм
    ATWATER_FACTORS = {
        "protein": 4,
        "carbs": 4,
        "fat": 9
    }

    @classmethod
    def day_of_week_remap(cls, js_day: int) -> int:
        """0=воскресенье (как в JS getDay) -> 7, остальные без изменений."""
        return 7 if js_day == 0 else js_day

    @classmethod
    def day_of_week(cls, day: date) -> int:
        """1=понедельник..7=воскресенье"""
        return day.isoweekday()

    @classmethod
    def compute_quantity(cls, target_grams: Optional[float], macro_per_100g: Optional[float]) -> int:
        """Сколько граммов блюда нужно, чтобы получить target_grams макроса."""
        if not target_grams or not macro_per_100g or macro_per_100g <= 0:
            return 0
        return round(target_grams / macro_per_100g * 100)

    @classmethod
    def calculate_quantities(
        cls,
        customer: Customer,
        meal_type: MealType,
        protein_recipe: Optional[Recipe],
        carb_recipe: Optional[Recipe],
        defaults: PortionDefaults,
    ) -> Dict[str, float]:
        target_protein, target_carbs, _ = customer.macro_targets(meal_type)

        return {
            "protein": cls.compute_quantity(
                target_protein, protein_recipe.protein_per_100g if protein_recipe else None
            ),
            "carb": cls.compute_quantity(
                target_carbs, carb_recipe.carb_per_100g if carb_recipe else None
            ),
            "vegetable": defaults.vegetables_amount,
            "salad": defaults.salad_amount,
            "sauce": defaults.salad_dressing_amount,
        }

    @classmethod
    def calculate_item_macros(cls, recipe: Recipe, weight_gr: float) -> MacroTotals:
        factor = (weight_gr or 0) / 100
        return MacroTotals(
            kcal=(recipe.kcal_per_100g or 0) * factor,
            protein=(recipe.protein_per_100g or 0) * factor,
            carb=(recipe.carb_per_100g or 0) * factor,
            fat=(recipe.fat_per_100g or 0) * factor,
            cost=(recipe.cost_per_100g or 0) * factor,
            weight_gr=weight_gr or 0,
        )

    @classmethod
    def counts_for_nutrition(cls, component: Optional[str], recipe: Recipe) -> bool:
        if component == "sauce":
            return False
        return recipe.category not in FLAVORING_CATEGORIES

    @classmethod
    def aggregate_macros(
        cls, items: Iterable[Tuple[Optional[str], Optional[Recipe], Optional[float]]]
    ) -> MacroTotals:
        """
        Фактические КБЖУ набора (слот, рецепт, граммы).
        Соус/маринад идут только в себестоимость и вес.
        """
        totals = MacroTotals()
        for component, recipe, grams in items:
            if recipe is None or not grams or grams <= 0:
                continue
            item = cls.calculate_item_macros(recipe, grams)
            if cls.counts_for_nutrition(component, recipe):
                totals.add_nutrition(item)
            totals.cost += item.cost
            totals.weight_gr += item.weight_gr
        return totals

    @classmethod
    def target_kcal(cls, protein: Optional[float], carbs: Optional[float], fat: Optional[float]) -> float:
        return (
            (protein or 0) * cls.ATWATER_FACTORS["protein"]
            + (carbs or 0) * cls.ATWATER_FACTORS["carbs"]
            + (fat or 0) * cls.ATWATER_FACTORS["fat"]
        )

    @classmethod
    def session_summary(cls, items: Sequence[Tuple[Recipe, float]]) -> SessionSummary:
        summary = SessionSummary(
            totals_by_category={category: MacroTotals() for category in RecipeCategory}
        )
        for recipe, weight_gr in items:
            item = cls.calculate_item_macros(recipe, weight_gr)
            summary.totals_by_category[recipe.category].add_all(item)
            if recipe.category not in FLAVORING_CATEGORIES:
                summary.grand_totals.add_nutrition(item)
            summary.grand_totals.cost += item.cost
            summary.grand_totals.weight_gr += item.weight_gr
        return summary
