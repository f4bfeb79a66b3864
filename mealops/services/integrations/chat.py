"""
Чат-платформа (BotConversa): синхронизация заказов в поля подписчиков,
входящий вебхук с правками от клиента и справка о заказе для чат-бота.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

import httpx

from mealops.core.config import settings
from mealops.core.errors import IntegrationNotConfigured, NotFoundError, UpstreamError
from mealops.models.customer import MealType
from mealops.models.menu import MonthlyMenu
from mealops.models.order import Order, OrderStatus
from mealops.models.recipe import RecipeCategory
from mealops.repositories.customer_repository import CustomerRepository
from mealops.repositories.menu_repository import MenuRepository
from mealops.repositories.order_repository import OrderRepository
from mealops.repositories.recipe_repository import RecipeRepository
from mealops.services.customer_service import normalize_phone
from mealops.services.nutrition_calculator import MEAL_COMPONENTS, NutritionCalculator
from mealops.services.order_query import component_name, format_time, parse_time, sort_by_delivery_time

logger = logging.getLogger(__name__)

# Поля подписчика в порядке обновления
REQUIRED_FIELDS = [
    "Nome", "Endereço", "Horário do Pedido", "Proteina", "Carboidrato",
    "Legumes", "Salada", "Molho Salada", "Refeição",
]

# Ключ поля вебхука -> (слот заказа, категория рецепта)
WEBHOOK_RECIPE_FIELDS = {
    "proteina": ("protein", RecipeCategory.protein),
    "carboidrato": ("carb", RecipeCategory.carbohydrate),
    "legumes": ("vegetable", RecipeCategory.vegetable),
    "salada": ("salad", RecipeCategory.salad),
    "molho_salada": ("sauce", RecipeCategory.dressing),
}

MEAL_TYPE_ALIASES = {
    "lunch": MealType.lunch,
    "almoço": MealType.lunch,
    "almoco": MealType.lunch,
    "dinner": MealType.dinner,
    "jantar": MealType.dinner,
}


def subscriber_values(order: Order) -> List[str]:
    """Значения полей в порядке REQUIRED_FIELDS"""
    return [
        order.customer.name,
        order.effective_address or "",
        format_time(order.effective_time),
        component_name(order, "protein") or "",
        component_name(order, "carb") or "",
        component_name(order, "vegetable") or "",
        component_name(order, "salad") or "",
        component_name(order, "sauce") or "",
        order.meal_type.value,
    ]


@dataclass
class SyncResult:
    customer_id: int
    customer_name: str
    success: bool
    phone: Optional[str] = None
    subscriber_id: Optional[str] = None
    error: Optional[str] = None


class ChatClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = settings.CHAT_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = settings.HTTP_TIMEOUT,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "ChatClient":
        if not settings.CHAT_API_KEY:
            raise IntegrationNotConfigured("CHAT_API_KEY is not configured")
        return cls(settings.CHAT_API_KEY, transport=transport)

    def session(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"API-KEY": self.api_key},
            timeout=self.timeout,
            transport=self.transport,
        )

    @staticmethod
    async def _request(client: httpx.AsyncClient, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Чат-платформа недоступна: {method} {url}: {e}")
            raise UpstreamError("chat", f"Chat platform request failed: {e}") from e

    @classmethod
    async def field_ids(cls, client: httpx.AsyncClient) -> Dict[str, str]:
        response = await cls._request(client, "GET", "/custom-fields/")
        if response.is_error:
            raise UpstreamError("chat", "Failed to fetch chat custom fields", response.status_code, response.text)

        mapping = {item["name"]: item["id"] for item in response.json() if item.get("name") in REQUIRED_FIELDS}
        missing = [name for name in REQUIRED_FIELDS if name not in mapping]
        if missing:
            raise UpstreamError("chat", "Chat custom fields not found", body={"missing": missing})
        return mapping

    @classmethod
    async def find_or_create_subscriber(cls, client: httpx.AsyncClient, phone: str, name: str) -> str:
        response = await cls._request(client, "GET", "/subscribers/", params={"phone": phone})
        if response.is_error:
            raise UpstreamError("chat", "Failed to search subscriber", response.status_code, response.text)
        subscribers = response.json()
        if subscribers:
            return str(subscribers[0]["id"])

        response = await cls._request(client, "POST", "/subscribers/", json={"phone": phone, "name": name})
        if response.is_error:
            raise UpstreamError("chat", "Failed to create subscriber", response.status_code, response.text)
        return str(response.json()["id"])

    @classmethod
    async def set_field(cls, client: httpx.AsyncClient, subscriber_id: str, field_id: str, value: str) -> bool:
        response = await cls._request(
            client,
            "PUT",
            f"/subscribers/{subscriber_id}/custom-fields/{field_id}/",
            json={"value": value},
        )
        return not response.is_error


class ChatSyncService:
    def __init__(self, orders: OrderRepository, client: ChatClient):
        self.orders = orders
        self.client = client

    async def _sync_order(self, client: httpx.AsyncClient, fields: Dict[str, str], order: Order) -> SyncResult:
        customer = order.customer
        result = SyncResult(customer_id=customer.id, customer_name=customer.name, success=False, phone=customer.phone)
        if not customer.phone:
            result.error = "Customer has no phone"
            return result

        try:
            result.subscriber_id = await self.client.find_or_create_subscriber(client, customer.phone, customer.name)
        except UpstreamError as e:
            result.error = e.message
            return result

        failed_fields = []
        for name, value in zip(REQUIRED_FIELDS, subscriber_values(order)):
            try:
                updated = await self.client.set_field(client, result.subscriber_id, fields[name], value)
            except UpstreamError:
                updated = False
            if not updated:
                failed_fields.append(name)

        result.success = not failed_fields
        if failed_fields:
            result.error = f"Some custom fields were not updated: {', '.join(failed_fields)}"
        return result

    async def sync(self, order_date: date, meal_type: MealType) -> dict:
        orders = sort_by_delivery_time(
            await self.orders.list_for_slot(order_date, meal_type, include_cancelled=False)
        )
        results: List[SyncResult] = []

        if orders:
            async with self.client.session() as client:
                fields = await self.client.field_ids(client)
                for order in orders:
                    result = await self._sync_order(client, fields, order)
                    if not result.success:
                        logger.warning(f"Синхронизация {result.customer_name} не удалась: {result.error}")
                    results.append(result)

        synced = sum(1 for result in results if result.success)
        logger.info(f"Чат: синхронизировано {synced} из {len(results)} на {order_date} ({meal_type.value})")
        return {
            "order_date": order_date,
            "meal_type": meal_type,
            "synced": synced,
            "failed": len(results) - synced,
            "results": results,
        }


def webhook_meal_type(value: Optional[str]) -> MealType:
    if not value:
        return MealType.lunch
    return MEAL_TYPE_ALIASES.get(value.strip().lower(), MealType.lunch)


class ChatWebhookService:
    def __init__(self, customers: CustomerRepository, orders: OrderRepository, recipes: RecipeRepository):
        self.customers = customers
        self.orders = orders
        self.recipes = recipes

    async def apply_update(self, phone: str, custom_fields: Dict[str, Optional[str]], order_date: date) -> dict:
        customer = await self.customers.get_by_phone(normalize_phone(phone))
        if customer is None:
            raise NotFoundError("Customer not found for this phone")

        meal_type = webhook_meal_type(custom_fields.get("refeicao"))
        order = await self.orders.get_for_slot(customer.id, order_date, meal_type, include_cancelled=False)
        if order is None:
            raise NotFoundError(
                f"Order not found for customer {customer.id} on {order_date.isoformat()} ({meal_type.value})"
            )

        updated = []
        address = (custom_fields.get("endereco") or "").strip()
        if address:
            order.modified_delivery_address = address
            updated.append("delivery_address")

        new_time = parse_time(custom_fields.get("horario_pedido"))
        if new_time:
            order.modified_delivery_time = new_time
            updated.append("delivery_time")

        for key, (component, category) in WEBHOOK_RECIPE_FIELDS.items():
            name = (custom_fields.get(key) or "").strip()
            if not name:
                continue
            recipe = await self.recipes.get_by_name(name, category)
            if recipe is not None:
                setattr(order, f"{component}_recipe_id", recipe.id)
                setattr(order, f"{component}_recipe", recipe)
                if component in ("protein", "carb"):
                    setattr(order, f"modified_{component}_name", None)
                updated.append(f"{component}_recipe_id")

        if updated:
            await self.orders.save(order)
            logger.info(f"Заказ {order.id} обновлён из чата: {', '.join(updated)}")

        return {"order_id": order.id, "updated_fields": updated}


class ChatOrderLookupService:
    """
    Заказ клиента на слот для чат-бота: доставка, блюда и статус.

    Блюда берутся из заказа, если он уже создан (с учётом правок),
    иначе из меню на эту дату.
    """

    def __init__(self, customers: CustomerRepository, menus: MenuRepository, orders: OrderRepository):
        self.customers = customers
        self.menus = menus
        self.orders = orders

    @staticmethod
    def menu_names(menu: Optional[MonthlyMenu]) -> Dict[str, Optional[str]]:
        names = {}
        for component in MEAL_COMPONENTS:
            recipe = getattr(menu, f"{component}_recipe", None) if menu else None
            names[component] = recipe.name if recipe else None
        return names

    async def lookup(self, phone: str, order_date: date, meal_type: MealType) -> dict:
        customer = await self.customers.get_active_by_contact(normalize_phone(phone) or "")
        if customer is None:
            raise NotFoundError(f"No active customer found with phone number: {phone}")

        day_of_week = NutritionCalculator.day_of_week(order_date)
        schedule = await self.customers.find_schedule(customer.id, day_of_week, meal_type)
        if schedule is None or not schedule.is_complete:
            raise NotFoundError(
                f"Customer {customer.name} does not have a delivery scheduled "
                f"for {meal_type.value} on {order_date.isoformat()}"
            )

        order = await self.orders.get_for_slot(customer.id, order_date, meal_type)
        if order is not None:
            meal = {component: component_name(order, component) for component in MEAL_COMPONENTS}
            address, delivery_time = order.effective_address, order.effective_time
        else:
            meal = self.menu_names(await self.menus.get_slot(order_date, meal_type))
            address, delivery_time = schedule.delivery_address, schedule.delivery_time

        return {
            "order_date": order_date,
            "meal_type": meal_type,
            "day_of_week": day_of_week,
            "customer": {
                "id": customer.id,
                "name": customer.name,
                "phone": customer.phone,
                "whatsapp": customer.whatsapp,
            },
            "delivery": {"address": address, "time": format_time(delivery_time)},
            "meal": meal,
            "order_id": order.id if order else None,
            "status": order.status if order else OrderStatus.pending,
        }
