"""
Материализация заказов на дату.

Активные клиенты × активные расписания на этот день недели × меню на дату
дают по одному заказу. Повторный запуск ничего не перезаписывает: уже
существующий заказ пропускается.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from mealops.core.errors import ConstraintViolation
from mealops.models.customer import Customer, DeliverySchedule, MealType
from mealops.models.menu import MonthlyMenu
from mealops.models.order import Order, OrderStatus
from mealops.models.recipe import Recipe
from mealops.repositories.customer_repository import CustomerRepository
from mealops.repositories.menu_repository import MenuRepository, MENU_RECIPE_FIELDS
from mealops.repositories.order_repository import OrderRepository
from mealops.repositories.recipe_repository import RecipeRepository
from mealops.repositories.settings_repository import SettingsRepository
from mealops.services.nutrition_calculator import NutritionCalculator, PortionDefaults

logger = logging.getLogger(__name__)

SKIP_INCOMPLETE_SCHEDULE = "incomplete_schedule"
SKIP_NO_MENU = "no_menu"
SKIP_ORDER_EXISTS = "order_exists"
SKIP_ERROR = "error"


@dataclass
class MaterializationItem:
    customer_id: int
    customer_name: str
    meal_type: MealType
    status: str
    reason: Optional[str] = None
    order_id: Optional[int] = None


@dataclass
class MaterializationReport:
    order_date: date
    day_of_week: int
    created: int = 0
    skipped: int = 0
    items: List[MaterializationItem] = field(default_factory=list)

    def record_created(self, customer: Customer, meal_type: MealType, order: Order) -> None:
        self.created += 1
        self.items.append(MaterializationItem(
            customer_id=customer.id,
            customer_name=customer.name,
            meal_type=meal_type,
            status="created",
            order_id=order.id,
        ))

    def record_skip(self, customer: Customer, meal_type: MealType, reason: str) -> None:
        self.skipped += 1
        self.items.append(MaterializationItem(
            customer_id=customer.id,
            customer_name=customer.name,
            meal_type=meal_type,
            status="skipped",
            reason=reason,
        ))


class OrderMaterializer:
    def __init__(
        self,
        customers: CustomerRepository,
        menus: MenuRepository,
        recipes: RecipeRepository,
        orders: OrderRepository,
        settings: SettingsRepository,
    ):
        self.customers = customers
        self.menus = menus
        self.recipes = recipes
        self.orders = orders
        self.settings = settings

    @staticmethod
    def matching_schedules(
        customer: Customer, day_of_week: int, meal_type: Optional[MealType] = None
    ) -> List[DeliverySchedule]:
        return [
            schedule for schedule in customer.delivery_schedules or []
            if schedule.is_active
            and schedule.day_of_week == day_of_week
            and (meal_type is None or schedule.meal_type == meal_type)
        ]

    @staticmethod
    def build_order(
        customer: Customer,
        schedule: DeliverySchedule,
        menu: MonthlyMenu,
        recipes: Dict[int, Recipe],
        defaults: PortionDefaults,
        order_date: date,
    ) -> Order:
        protein_recipe = recipes.get(menu.protein_recipe_id)
        carb_recipe = recipes.get(menu.carb_recipe_id)
        quantities = NutritionCalculator.calculate_quantities(
            customer, schedule.meal_type, protein_recipe, carb_recipe, defaults
        )

        return Order(
            customer_id=customer.id,
            order_date=order_date,
            meal_type=schedule.meal_type,
            protein_recipe_id=menu.protein_recipe_id,
            protein_amount_gr=quantities["protein"],
            carb_recipe_id=menu.carb_recipe_id,
            carb_amount_gr=quantities["carb"],
            vegetable_recipe_id=menu.vegetable_recipe_id,
            vegetable_amount_gr=quantities["vegetable"],
            salad_recipe_id=menu.salad_recipe_id,
            salad_amount_gr=quantities["salad"],
            sauce_recipe_id=menu.sauce_recipe_id,
            sauce_amount_gr=quantities["sauce"],
            delivery_address=schedule.delivery_address,
            delivery_time=schedule.delivery_time,
            status=OrderStatus.pending,
        )

    async def _load_menus(self, order_date: date, meal_type: Optional[MealType]) -> Dict[MealType, MonthlyMenu]:
        meal_types = [meal_type] if meal_type else list(MealType)
        menus = {}
        for current in meal_types:
            menu = await self.menus.get_slot(order_date, current)
            if menu is not None:
                menus[current] = menu
        return menus

    async def materialize(self, order_date: date, meal_type: Optional[MealType] = None) -> MaterializationReport:
        day_of_week = NutritionCalculator.day_of_week(order_date)
        report = MaterializationReport(order_date=order_date, day_of_week=day_of_week)

        defaults = await self.settings.get_portion_defaults()
        menus = await self._load_menus(order_date, meal_type)
        recipes = await self.recipes.get_many(
            getattr(menu, field_name) for menu in menus.values() for field_name in MENU_RECIPE_FIELDS
        )
        customers = await self.customers.list_active_with_schedules()

        logger.info(
            "Материализация заказов на %s (день недели %s): клиентов %s, меню %s",
            order_date, day_of_week, len(customers), [m.value for m in menus],
        )

        for customer in customers:
            for schedule in self.matching_schedules(customer, day_of_week, meal_type):
                slot = schedule.meal_type

                if not schedule.is_complete:
                    logger.info("Пропуск %s - %s: нет времени или адреса", customer.name, slot.value)
                    report.record_skip(customer, slot, SKIP_INCOMPLETE_SCHEDULE)
                    continue

                menu = menus.get(slot)
                if menu is None:
                    logger.info("Пропуск %s - %s: нет меню", customer.name, slot.value)
                    report.record_skip(customer, slot, SKIP_NO_MENU)
                    continue

                existing = await self.orders.get_for_slot(customer.id, order_date, slot)
                if existing is not None:
                    report.record_skip(customer, slot, SKIP_ORDER_EXISTS)
                    continue

                order = self.build_order(customer, schedule, menu, recipes, defaults, order_date)
                try:
                    order = await self.orders.create(order)
                except ConstraintViolation:
                    report.record_skip(customer, slot, SKIP_ORDER_EXISTS)
                    continue
                except SQLAlchemyError as e:
                    logger.error(f"Ошибка создания заказа для {customer.name}: {e}")
                    await self.orders.rollback()
                    report.record_skip(customer, slot, SKIP_ERROR)
                    continue

                report.record_created(customer, slot, order)

        logger.info("Заказы на %s: создано %s, пропущено %s", order_date, report.created, report.skipped)
        return report
