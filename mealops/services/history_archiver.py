"""
Архивация заказов в историю.

Снимок пишется один раз на (клиент, дата, приём пищи): названия рецептов,
граммы, целевые и фактические КБЖУ. Повторная архивация не ошибка,
а пропуск.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, time
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from mealops.core.config import settings as app_settings
from mealops.core.errors import ConstraintViolation, NotFoundError
from mealops.models.customer import Customer
from mealops.models.history import OrderHistory
from mealops.models.menu import MonthlyMenu
from mealops.models.order import Order, OrderStatus
from mealops.models.recipe import Recipe
from mealops.repositories.customer_repository import CustomerRepository
from mealops.repositories.history_repository import HistoryRepository
from mealops.repositories.menu_repository import MenuRepository
from mealops.repositories.order_repository import OrderRepository
from mealops.repositories.recipe_repository import RecipeRepository
from mealops.repositories.settings_repository import SettingsRepository
from mealops.services.nutrition_calculator import (
    COMPONENT_CATEGORIES,
    MEAL_COMPONENTS,
    NutritionCalculator,
    PortionDefaults,
)
from mealops.services.recipe_resolution import (
    CatalogReference,
    MenuDefault,
    NameOverride,
    RecipeSource,
    resolve_source,
)

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


@dataclass
class ArchiveResult:
    order_id: int
    status: str
    reason: Optional[str] = None
    history_id: Optional[int] = None


def pickup_time(delivery_time: Optional[time], offset_minutes: int) -> Optional[time]:
    """Время выдачи курьеру: доставка минус offset, по модулю суток (00:05 -> 23:55)."""
    if delivery_time is None:
        return None
    total = (delivery_time.hour * 60 + delivery_time.minute - offset_minutes) % MINUTES_PER_DAY
    return time(hour=total // 60, minute=total % 60)


def final_statuses(order: Order) -> Tuple[str, str]:
    """(kitchen_status, delivery_status) для записи в историю"""
    if order.status == OrderStatus.cancelled:
        return "cancelled", "cancelled"
    return "ready", "delivered"


class HistoryArchiver:
    def __init__(
        self,
        orders: OrderRepository,
        customers: CustomerRepository,
        menus: MenuRepository,
        recipes: RecipeRepository,
        history: HistoryRepository,
        settings: SettingsRepository,
        pickup_offset_minutes: int = app_settings.PICKUP_OFFSET_MINUTES,
    ):
        self.orders = orders
        self.customers = customers
        self.menus = menus
        self.recipes = recipes
        self.history = history
        self.settings = settings
        self.pickup_offset_minutes = pickup_offset_minutes

    @staticmethod
    def component_sources(order: Order, menu: Optional[MonthlyMenu]) -> Dict[str, RecipeSource]:
        sources = {}
        for component in MEAL_COMPONENTS:
            override = getattr(order, f"modified_{component}_name", None)
            menu_recipe_id = getattr(menu, f"{component}_recipe_id") if menu else None
            sources[component] = resolve_source(
                getattr(order, f"{component}_recipe_id"), override, menu_recipe_id
            )
        return sources

    async def resolve_recipe(
        self, component: str, source: RecipeSource
    ) -> Tuple[Optional[str], Optional[Recipe]]:
        """(название для истории, рецепт для расчёта КБЖУ)"""
        if isinstance(source, NameOverride):
            # Название остаётся строкой; КБЖУ берём у одноимённого рецепта, если он есть
            recipe = await self.recipes.get_by_name(source.name, COMPONENT_CATEGORIES[component])
            return source.name, recipe

        if isinstance(source, (CatalogReference, MenuDefault)) and source.recipe_id:
            recipe = await self.recipes.get_by_id(source.recipe_id)
            return (recipe.name if recipe else None), recipe

        return None, None

    @staticmethod
    def quantities_for(
        order: Order,
        customer: Customer,
        protein_recipe: Optional[Recipe],
        carb_recipe: Optional[Recipe],
        defaults: PortionDefaults,
    ) -> Dict[str, float]:
        if order.protein_amount_gr is not None and order.carb_amount_gr is not None:
            quantities = {
                "protein": order.protein_amount_gr,
                "carb": order.carb_amount_gr,
            }
        else:
            computed = NutritionCalculator.calculate_quantities(
                customer, order.meal_type, protein_recipe, carb_recipe, defaults
            )
            quantities = {"protein": computed["protein"], "carb": computed["carb"]}

        for component in ("vegetable", "salad", "sauce"):
            stored = getattr(order, f"{component}_amount_gr")
            quantities[component] = stored if stored is not None else defaults.for_component(component)
        return quantities

    async def build_record(
        self, order: Order, customer: Customer, defaults: PortionDefaults
    ) -> OrderHistory:
        menu = await self.menus.get_slot(order.order_date, order.meal_type)
        sources = self.component_sources(order, menu)

        names: Dict[str, Optional[str]] = {}
        recipes: Dict[str, Optional[Recipe]] = {}
        for component, source in sources.items():
            names[component], recipes[component] = await self.resolve_recipe(component, source)

        quantities = self.quantities_for(
            order, customer, recipes["protein"], recipes["carb"], defaults
        )

        target_protein, target_carbs, target_fat = customer.macro_targets(order.meal_type)
        delivered = NutritionCalculator.aggregate_macros(
            (component, recipes[component], quantities[component]) for component in MEAL_COMPONENTS
        )
        kitchen_status, delivery_status = final_statuses(order)
        delivery_time = order.effective_time

        return OrderHistory(
            customer_id=customer.id,
            customer_name=customer.name,
            order_date=order.order_date,
            meal_type=order.meal_type,
            delivery_time=delivery_time,
            pickup_time=pickup_time(delivery_time, self.pickup_offset_minutes),
            delivery_address=order.effective_address,
            protein_name=names["protein"],
            protein_quantity=quantities["protein"] or 0,
            carb_name=names["carb"],
            carb_quantity=quantities["carb"] or 0,
            vegetable_name=names["vegetable"],
            vegetable_quantity=quantities["vegetable"] or 0,
            salad_name=names["salad"],
            salad_quantity=quantities["salad"] or 0,
            sauce_name=names["sauce"],
            sauce_quantity=quantities["sauce"] or 0,
            target_kcal=NutritionCalculator.target_kcal(target_protein, target_carbs, target_fat),
            target_protein=target_protein or 0,
            target_carbs=target_carbs or 0,
            target_fat=target_fat or 0,
            delivered_kcal=round(delivered.kcal, 1),
            delivered_protein=round(delivered.protein, 1),
            delivered_carbs=round(delivered.carb, 1),
            delivered_fat=round(delivered.fat, 1),
            kitchen_status=kitchen_status,
            delivery_status=delivery_status,
        )

    async def _archive(self, order: Order, defaults: PortionDefaults) -> ArchiveResult:
        if await self.history.exists(order.customer_id, order.order_date, order.meal_type):
            return ArchiveResult(order_id=order.id, status="skipped", reason="already_archived")

        customer = order.customer or await self.customers.get_by_id(order.customer_id)
        if customer is None:
            return ArchiveResult(order_id=order.id, status="skipped", reason="customer_not_found")

        record = await self.build_record(order, customer, defaults)
        try:
            record = await self.history.add(record)
        except ConstraintViolation:
            return ArchiveResult(order_id=order.id, status="skipped", reason="already_archived")

        logger.info(f"Заказ {order.id} ({customer.name}, {order.order_date}) перенесён в историю")
        return ArchiveResult(order_id=order.id, status="archived", history_id=record.id)

    async def archive_order(self, order_id: int) -> ArchiveResult:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        defaults = await self.settings.get_portion_defaults()
        return await self._archive(order, defaults)

    @staticmethod
    def is_due(order: Order, now: datetime) -> bool:
        """Окно доставки (дата заказа + фактическое время) уже прошло."""
        if order.order_date < now.date():
            return True
        if order.order_date > now.date():
            return False
        effective = order.effective_time
        return effective is None or effective <= now.time()

    async def archive_due(self, now: datetime) -> List[ArchiveResult]:
        defaults = await self.settings.get_portion_defaults()
        candidates = await self.orders.list_finished_until(now.date())

        results = []
        for order in candidates:
            if not self.is_due(order, now):
                continue
            try:
                results.append(await self._archive(order, defaults))
            except SQLAlchemyError as e:
                logger.error(f"Ошибка архивации заказа {order.id}: {e}")
                await self.orders.rollback()
                results.append(ArchiveResult(order_id=order.id, status="error", reason=str(e)))

        archived = sum(1 for result in results if result.status == "archived")
        logger.info(f"Архивация на {now:%Y-%m-%d %H:%M}: архивировано {archived} из {len(results)}")
        return results
