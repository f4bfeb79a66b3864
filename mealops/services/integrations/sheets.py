"""
Google Sheets: выгрузка маршрутов для курьеров и загрузка их правок.

Выгрузка полностью перезаписывает лист слота. Загрузка читает лист
"Volta da Informação": правки адреса/времени/блюд и отмены.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional
from urllib.parse import quote

import httpx
from sqlalchemy.exc import SQLAlchemyError

from mealops.core.config import settings
from mealops.core.errors import IntegrationNotConfigured, MealOpsError, UpstreamError
from mealops.models.customer import Customer, DeliverySchedule, MealType
from mealops.models.order import Order, OrderStatus
from mealops.models.recipe import RecipeCategory
from mealops.repositories.customer_repository import CustomerRepository
from mealops.repositories.menu_repository import MenuRepository, MENU_RECIPE_FIELDS
from mealops.repositories.order_repository import OrderRepository
from mealops.repositories.recipe_repository import RecipeRepository
from mealops.repositories.settings_repository import SettingsRepository
from mealops.services.customer_service import normalize_phone
from mealops.services.integrations.google_auth import ServiceAccount, mint_access_token
from mealops.services.nutrition_calculator import NutritionCalculator
from mealops.services.order_materializer import OrderMaterializer
from mealops.services.order_query import component_name, format_time, parse_time, sort_by_delivery_time

logger = logging.getLogger(__name__)

EXPORT_HEADER = [
    "Nome", "Telefone", "Endereço", "Horário", "Proteína",
    "Carboidrato", "Legumes", "Salada", "Molho Salada", "Refeição",
]
MEAL_LABELS = {MealType.lunch: "Almoço", MealType.dinner: "Jantar"}
CANCELLED_MARKER = "cancelado"

# Колонки листа правок
COL_NAME, COL_PHONE = 0, 1
COL_ADDRESS, COL_TIME, COL_PROTEIN, COL_CARB = 11, 12, 13, 14


def export_sheet_name(meal_type: MealType) -> str:
    return settings.SHEETS_EXPORT_LUNCH if meal_type == MealType.lunch else settings.SHEETS_EXPORT_DINNER


def import_sheet_name(meal_type: MealType) -> str:
    return settings.SHEETS_IMPORT_LUNCH if meal_type == MealType.lunch else settings.SHEETS_IMPORT_DINNER


class SheetsClient:
    def __init__(
        self,
        spreadsheet_id: str,
        account: ServiceAccount,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        api_url: str = settings.SHEETS_API_URL,
        scope: str = settings.SHEETS_SCOPE,
        timeout: float = settings.HTTP_TIMEOUT,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.account = account
        self.transport = transport
        self.api_url = api_url.rstrip("/")
        self.scope = scope
        self.timeout = timeout

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "SheetsClient":
        if not settings.SHEETS_SPREADSHEET_ID:
            raise IntegrationNotConfigured("SHEETS_SPREADSHEET_ID is not configured")
        account = ServiceAccount.from_json(settings.SHEETS_SERVICE_ACCOUNT_JSON)
        return cls(settings.SHEETS_SPREADSHEET_ID, account, transport=transport)

    def _values_url(self, cell_range: str) -> str:
        return f"{self.api_url}/{self.spreadsheet_id}/values/{quote(cell_range)}"

    @staticmethod
    def _check(response: httpx.Response, action: str) -> None:
        if response.is_error:
            logger.error(f"Google Sheets {action} failed: {response.status_code} {response.text}")
            raise UpstreamError("sheets", f"Google Sheets {action} failed", response.status_code, response.text)

    @staticmethod
    def _unreachable(action: str, error: httpx.HTTPError) -> UpstreamError:
        logger.error(f"Google Sheets {action} failed: {error}")
        return UpstreamError("sheets", f"Google Sheets {action} failed: {error}")

    async def _session(self, client: httpx.AsyncClient) -> dict:
        token = await mint_access_token(client, self.account, self.scope)
        return {"Authorization": f"Bearer {token}"}

    async def overwrite(self, sheet: str, rows: List[List[str]]) -> int:
        """Очистить лист и записать строки; возвращает число записанных строк."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                headers = await self._session(client)

                response = await client.post(f"{self._values_url(f'{sheet}!A1:Z1000')}:clear", headers=headers)
                self._check(response, "clear")

                response = await client.put(
                    self._values_url(f"{sheet}!A1"),
                    params={"valueInputOption": "RAW"},
                    headers=headers,
                    json={"values": rows},
                )
                self._check(response, "update")
        except httpx.HTTPError as e:
            raise self._unreachable("update", e) from e
        return len(rows)

    async def read(self, cell_range: str) -> List[List[str]]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                headers = await self._session(client)
                response = await client.get(self._values_url(cell_range), headers=headers)
                self._check(response, "read")
        except httpx.HTTPError as e:
            raise self._unreachable("read", e) from e
        return response.json().get("values", [])


def export_rows(orders: List[Order], meal_type: MealType) -> List[List[str]]:
    rows = [list(EXPORT_HEADER)]
    for order in sort_by_delivery_time(o for o in orders if not o.is_cancelled):
        customer = order.customer
        rows.append([
            customer.name if customer else "",
            (customer.phone or "") if customer else "",
            order.effective_address or "",
            format_time(order.effective_time),
            component_name(order, "protein") or "",
            component_name(order, "carb") or "",
            component_name(order, "vegetable") or "",
            component_name(order, "salad") or "",
            component_name(order, "sauce") or "",
            MEAL_LABELS[meal_type],
        ])
    return rows


class SheetsExporter:
    def __init__(self, orders: OrderRepository, client: SheetsClient):
        self.orders = orders
        self.client = client

    async def export(self, order_date: date, meal_type: MealType) -> dict:
        orders = await self.orders.list_for_slot(order_date, meal_type, include_cancelled=False)
        sheet = export_sheet_name(meal_type)
        rows = export_rows(orders, meal_type)
        await self.client.overwrite(sheet, rows)
        logger.info(f"Выгружено {len(rows) - 1} заказов на {order_date} ({meal_type.value}) в лист '{sheet}'")
        return {"sheet": sheet, "exported": len(rows) - 1}


@dataclass
class ImportCorrection:
    address: Optional[str] = None
    delivery_time: Optional[str] = None
    protein: Optional[str] = None
    carb: Optional[str] = None

    @classmethod
    def from_row(cls, row: List[str]) -> "ImportCorrection":
        def cell(index: int) -> Optional[str]:
            value = row[index].strip() if len(row) > index and row[index] else ""
            return value or None

        return cls(
            address=cell(COL_ADDRESS),
            delivery_time=cell(COL_TIME),
            protein=cell(COL_PROTEIN),
            carb=cell(COL_CARB),
        )

    @property
    def is_cancellation(self) -> bool:
        return bool(self.address) and self.address.lower() == CANCELLED_MARKER

    @property
    def is_empty(self) -> bool:
        return not any((self.address, self.delivery_time, self.protein, self.carb))


@dataclass
class ImportRowResult:
    row: int
    name: Optional[str]
    phone: Optional[str]
    status: str
    order_id: Optional[int] = None
    error: Optional[str] = None


@dataclass
class ImportReport:
    sheet: str
    processed: int = 0
    updated: int = 0
    created: int = 0
    cancelled: int = 0
    skipped: int = 0
    rows: List[ImportRowResult] = field(default_factory=list)


class SheetsImporter:
    def __init__(
        self,
        customers: CustomerRepository,
        orders: OrderRepository,
        recipes: RecipeRepository,
        menus: MenuRepository,
        settings_repo: SettingsRepository,
        client: SheetsClient,
    ):
        self.customers = customers
        self.orders = orders
        self.recipes = recipes
        self.menus = menus
        self.settings = settings_repo
        self.client = client

    async def _order_from_schedule(
        self, customer: Customer, schedule: DeliverySchedule, order_date: date
    ) -> Order:
        """Новый заказ по расписанию, с блюдами из меню, если оно есть."""
        menu = await self.menus.get_slot(order_date, schedule.meal_type)
        if menu is None:
            return Order(
                customer_id=customer.id,
                order_date=order_date,
                meal_type=schedule.meal_type,
                delivery_address=schedule.delivery_address,
                delivery_time=schedule.delivery_time,
                status=OrderStatus.pending,
            )
        recipes = await self.recipes.get_many(getattr(menu, name) for name in MENU_RECIPE_FIELDS)
        defaults = await self.settings.get_portion_defaults()
        return OrderMaterializer.build_order(customer, schedule, menu, recipes, defaults, order_date)

    async def _apply_name(self, order: Order, component: str, name: str, category: RecipeCategory) -> None:
        """Правка названием: id рецепта из каталога, иначе слот держит только название."""
        recipe = await self.recipes.get_by_name(name, category)
        setattr(order, f"modified_{component}_name", name)
        setattr(order, f"{component}_recipe_id", recipe.id if recipe else None)
        setattr(order, f"{component}_recipe", recipe)

    async def _apply_corrections(self, order: Order, correction: ImportCorrection) -> None:
        if correction.address:
            order.modified_delivery_address = correction.address
        new_time = parse_time(correction.delivery_time)
        if new_time:
            order.modified_delivery_time = new_time
        if correction.protein:
            await self._apply_name(order, "protein", correction.protein, RecipeCategory.protein)
        if correction.carb:
            await self._apply_name(order, "carb", correction.carb, RecipeCategory.carbohydrate)
        order.status = OrderStatus.pending

    async def _import_row(
        self, row: List[str], order_date: date, meal_type: MealType, day_of_week: int
    ) -> ImportRowResult:
        name = row[COL_NAME].strip() if len(row) > COL_NAME else ""
        phone = normalize_phone(row[COL_PHONE]) if len(row) > COL_PHONE else None
        result = ImportRowResult(row=0, name=name or None, phone=phone, status="")

        if not name or not phone:
            result.status = "invalid_row"
            return result

        customer = await self.customers.get_by_phone(phone)
        if customer is None:
            result.status = "customer_not_found"
            return result

        schedule = await self.customers.find_schedule(customer.id, day_of_week, meal_type)
        if schedule is None:
            result.status = "no_schedule"
            return result

        correction = ImportCorrection.from_row(row)
        order = await self.orders.get_for_slot(customer.id, order_date, meal_type)

        if correction.is_cancellation:
            if order is not None:
                order = await self.orders.update_status(order, OrderStatus.cancelled)
                result.status = "cancelled_updated"
            else:
                order = await self._order_from_schedule(customer, schedule, order_date)
                order.status = OrderStatus.cancelled
                order = await self.orders.create(order)
                result.status = "cancelled_created"
            result.order_id = order.id
            return result

        if correction.is_empty:
            result.status = "no_modifications"
            return result

        if order is not None:
            await self._apply_corrections(order, correction)
            order = await self.orders.save(order)
            result.status = "modified_updated"
        else:
            order = await self._order_from_schedule(customer, schedule, order_date)
            await self._apply_corrections(order, correction)
            order = await self.orders.create(order)
            result.status = "modified_created"
        result.order_id = order.id
        return result

    async def import_corrections(self, order_date: date, meal_type: MealType) -> ImportReport:
        sheet = import_sheet_name(meal_type)
        rows = await self.client.read(f"{sheet}!A2:O")
        day_of_week = NutritionCalculator.day_of_week(order_date)
        report = ImportReport(sheet=sheet)

        for index, row in enumerate(rows, start=2):
            try:
                result = await self._import_row(row, order_date, meal_type, day_of_week)
            except (MealOpsError, SQLAlchemyError) as e:
                logger.error(f"Ошибка импорта строки {index} листа '{sheet}': {e}")
                await self.orders.rollback()
                result = ImportRowResult(
                    row=index, name=row[COL_NAME] if row else None, phone=None, status="error", error=str(e)
                )
            result.row = index
            report.rows.append(result)
            report.processed += 1

            if result.status in ("cancelled_updated", "cancelled_created"):
                report.cancelled += 1
            elif result.status == "modified_updated":
                report.updated += 1
            elif result.status == "modified_created":
                report.created += 1
            else:
                report.skipped += 1

        logger.info(
            f"Импорт '{sheet}' на {order_date}: обновлено {report.updated}, создано {report.created}, "
            f"отменено {report.cancelled}, пропущено {report.skipped}"
        )
        return report
