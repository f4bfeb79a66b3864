import logging
import secrets
from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from mealops.api.v1.orders import parse_meal_type
from mealops.core.config import settings
from mealops.core.dependencies import (
    get_customer_repository,
    get_menu_repository,
    get_order_repository,
    get_recipe_repository,
    get_settings_repository,
)
from mealops.core.rbac import require_staff
from mealops.core.timeutils import local_today
from mealops.models.user import StaffUser
from mealops.repositories.customer_repository import CustomerRepository
from mealops.repositories.menu_repository import MenuRepository
from mealops.repositories.order_repository import OrderRepository
from mealops.repositories.recipe_repository import RecipeRepository
from mealops.repositories.settings_repository import SettingsRepository
from mealops.schemas.integrations import (
    ChatWebhookPayload,
    ChatWebhookResponse,
    CustomerOrderResponse,
    ErpOrderRequest,
    SlotRequest,
    TravelTimeRecalculation,
    TravelTimeRequest,
    TravelTimeResponse,
)
from mealops.services.integrations.chat import ChatClient, ChatOrderLookupService, ChatSyncService, ChatWebhookService
from mealops.services.integrations.erp import ErpClient, ErpService
from mealops.services.integrations.sheets import SheetsClient, SheetsExporter, SheetsImporter
from mealops.services.integrations.travel_time import DistanceMatrixClient, TravelTimeService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["integrations"])


# Клиенты внешних сервисов; в тестах подменяются через dependency_overrides

def get_sheets_client() -> SheetsClient:
    return SheetsClient.from_settings()


def get_erp_client() -> ErpClient:
    return ErpClient.from_settings()


def get_chat_client() -> ChatClient:
    return ChatClient.from_settings()


def get_maps_client() -> DistanceMatrixClient:
    return DistanceMatrixClient.from_settings()


def verify_webhook_token(x_webhook_token: Optional[str] = Header(None)) -> None:
    if not settings.CHAT_WEBHOOK_SECRET:
        return
    if not x_webhook_token or not secrets.compare_digest(x_webhook_token, settings.CHAT_WEBHOOK_SECRET):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook token")


@router.post("/sheets/export")
async def export_to_sheets(
    request: SlotRequest,
    current_user: StaffUser = Depends(require_staff),
    orders: OrderRepository = Depends(get_order_repository),
    client: SheetsClient = Depends(get_sheets_client),
):
    return await SheetsExporter(orders, client).export(request.order_date, request.meal_type)


@router.post("/sheets/import")
async def import_from_sheets(
    request: SlotRequest,
    current_user: StaffUser = Depends(require_staff),
    customers: CustomerRepository = Depends(get_customer_repository),
    orders: OrderRepository = Depends(get_order_repository),
    recipes: RecipeRepository = Depends(get_recipe_repository),
    menus: MenuRepository = Depends(get_menu_repository),
    settings_repo: SettingsRepository = Depends(get_settings_repository),
    client: SheetsClient = Depends(get_sheets_client),
):
    importer = SheetsImporter(customers, orders, recipes, menus, settings_repo, client)
    report = await importer.import_corrections(request.order_date, request.meal_type)
    return asdict(report)


@router.post("/erp/orders")
async def send_order_to_erp(
    request: ErpOrderRequest,
    current_user: StaffUser = Depends(require_staff),
    orders: OrderRepository = Depends(get_order_repository),
    client: ErpClient = Depends(get_erp_client),
):
    return await ErpService(orders, client).send_order(request.order_id)


@router.get("/erp/products/{product_id}")
async def get_erp_product(
    product_id: str,
    current_user: StaffUser = Depends(require_staff),
    client: ErpClient = Depends(get_erp_client),
):
    return await client.get_product(product_id)


@router.post("/chat/sync")
async def sync_chat(
    request: SlotRequest,
    current_user: StaffUser = Depends(require_staff),
    orders: OrderRepository = Depends(get_order_repository),
    client: ChatClient = Depends(get_chat_client),
):
    result = await ChatSyncService(orders, client).sync(request.order_date, request.meal_type)
    result["results"] = [asdict(item) for item in result["results"]]
    return result


@router.post("/chat/webhook", response_model=ChatWebhookResponse, dependencies=[Depends(verify_webhook_token)])
async def chat_webhook(
    payload: ChatWebhookPayload,
    customers: CustomerRepository = Depends(get_customer_repository),
    orders: OrderRepository = Depends(get_order_repository),
    recipes: RecipeRepository = Depends(get_recipe_repository),
):
    """Правки заказа от клиента через чат-бота (без JWT, опционально по общему секрету)"""
    service = ChatWebhookService(customers, orders, recipes)
    return await service.apply_update(payload.phone, payload.custom_fields, payload.order_date or local_today())


@router.get(
    "/chat/customer-order",
    response_model=CustomerOrderResponse,
    dependencies=[Depends(verify_webhook_token)],
)
async def chat_customer_order(
    phone: Optional[str] = Query(None),
    meal_type: Optional[str] = Query(None),
    order_date: Optional[date] = Query(None),
    customers: CustomerRepository = Depends(get_customer_repository),
    menus: MenuRepository = Depends(get_menu_repository),
    orders: OrderRepository = Depends(get_order_repository),
):
    """Заказ клиента на слот для чат-бота; дата по умолчанию сегодня по времени кухни"""
    if not phone:
        raise HTTPException(status_code=400, detail="phone parameter is required")
    slot = parse_meal_type(meal_type)
    service = ChatOrderLookupService(customers, menus, orders)
    return await service.lookup(phone, order_date or local_today(), slot)


@router.post("/maps/travel-time", response_model=TravelTimeResponse)
async def calculate_travel_time(
    request: TravelTimeRequest,
    current_user: StaffUser = Depends(require_staff),
    client: DistanceMatrixClient = Depends(get_maps_client),
):
    return asdict(await client.travel_time(request.destination))


@router.post("/maps/travel-time/recalculate", response_model=TravelTimeRecalculation)
async def recalculate_travel_times(
    current_user: StaffUser = Depends(require_staff),
    customers: CustomerRepository = Depends(get_customer_repository),
    client: DistanceMatrixClient = Depends(get_maps_client),
):
    """Пересчитать время в пути для всех расписаний с адресом"""
    return asdict(await TravelTimeService(customers, client).recalculate_all())
