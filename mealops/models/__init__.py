from mealops.models.user import StaffUser
from mealops.models.recipe import Recipe
from mealops.models.customer import Customer, DeliverySchedule
from mealops.models.menu import MonthlyMenu
from mealops.models.order import Order
from mealops.models.history import OrderHistory
from mealops.models.settings import GlobalSettings
from mealops.models.prep import PrepSession, PrepItem

__all__ = [
    "StaffUser",
    "Recipe",
    "Customer", "DeliverySchedule",
    "MonthlyMenu",
    "Order",
    "OrderHistory",
    "GlobalSettings",
    "PrepSession", "PrepItem",
]
