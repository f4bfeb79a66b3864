"""
Общие фикстуры для всех тестов MealOps backend.

Стратегия:
- Тестовое FastAPI-приложение создаётся без startup-событий (нет подключения к БД).
- Репозитории заменяются на AsyncMock(spec=...) через dependency_overrides.
- get_current_user подменяется лямбдой с нужным сотрудником (admin / ops).
- JWT-токены создаются через auth_service.create_access_token() для проверки middleware.
- Модели собираются как обычные объекты SQLAlchemy без сессии.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from httpx import AsyncClient, ASGITransport
from fastapi import FastAPI
from datetime import date, datetime, time
from typing import AsyncGenerator

from mealops.api.router import api_router
from mealops.core.errors import register_exception_handlers
from mealops.models.customer import Customer, CustomerStatus, DeliverySchedule, MealType
from mealops.models.menu import MonthlyMenu
from mealops.models.order import Order, OrderStatus
from mealops.models.recipe import Recipe, RecipeCategory
from mealops.models.user import StaffUser, RoleEnum
from mealops.services.auth_service import auth_service
from mealops.services.nutrition_calculator import PortionDefaults
from mealops.repositories.customer_repository import CustomerRepository
from mealops.repositories.history_repository import HistoryRepository
from mealops.repositories.menu_repository import MenuRepository
from mealops.repositories.order_repository import OrderRepository
from mealops.repositories.prep_repository import PrepRepository
from mealops.repositories.recipe_repository import RecipeRepository
from mealops.repositories.settings_repository import SettingsRepository
from mealops.repositories.user_repository import UserRepository
from mealops.core.dependencies import (
    get_current_user,
    get_customer_repository,
    get_history_repository,
    get_menu_repository,
    get_order_repository,
    get_prep_repository,
    get_recipe_repository,
    get_settings_repository,
    get_user_repository,
)
from mealops.core.db import get_db


# ---------------------------------------------------------------------------
# Вспомогательные функции
# ---------------------------------------------------------------------------

def create_test_app() -> FastAPI:
    """Тестовое FastAPI-приложение без startup-событий."""
    test_app = FastAPI(title="MealOps Test App")
    register_exception_handlers(test_app)
    test_app.include_router(api_router, prefix="/api/v1")
    return test_app


def make_auth_headers(user: StaffUser) -> dict:
    """Создать заголовки авторизации с валидным JWT для указанного сотрудника."""
    access_token = auth_service.create_access_token(
        data={"sub": str(user.id), "role": user.role.value}
    )
    return {"Authorization": f"Bearer {access_token}"}


def make_recipe(id, name, category, kcal=0, protein=0, carb=0, fat=0, cost=0, **extra) -> Recipe:
    return Recipe(
        id=id,
        name=name,
        category=category,
        kcal_per_100g=kcal,
        protein_per_100g=protein,
        carb_per_100g=carb,
        fat_per_100g=fat,
        cost_per_100g=cost,
        allergens=[],
        is_active=True,
        **extra,
    )


def make_customer(id=1, name="Ana Souza", phone="5511999990000", schedules=None, **extra) -> Customer:
    fields = dict(
        lunch_protein=40, lunch_carbs=50, lunch_fat=15,
        dinner_protein=35, dinner_carbs=30, dinner_fat=12,
        status=CustomerStatus.active,
        is_active=True,
        allergies=[],
    )
    fields.update(extra)
    return Customer(
        id=id,
        name=name,
        phone=phone,
        delivery_schedules=schedules or [],
        **fields,
    )


def make_schedule(id=1, customer_id=1, day_of_week=1, meal_type=MealType.lunch,
                  delivery_time=time(12, 0), delivery_address="Rua A, 10, Centro, Campinas - SP",
                  is_active=True) -> DeliverySchedule:
    return DeliverySchedule(
        id=id,
        customer_id=customer_id,
        day_of_week=day_of_week,
        meal_type=meal_type,
        delivery_time=delivery_time,
        delivery_address=delivery_address,
        is_active=is_active,
    )


# ---------------------------------------------------------------------------
# Каталог и меню
# ---------------------------------------------------------------------------

@pytest.fixture
def chicken() -> Recipe:
    return make_recipe(1, "Frango grelhado", RecipeCategory.protein,
                       kcal=165, protein=20, carb=0, fat=5, cost=3.0,
                       price_per_kg=60.0, erp_external_id="SKU-FRANGO")


@pytest.fixture
def rice() -> Recipe:
    return make_recipe(2, "Arroz integral", RecipeCategory.carbohydrate,
                       kcal=110, protein=2.5, carb=25, fat=1, cost=0.8,
                       price_per_kg=20.0, erp_external_id="SKU-ARROZ")


@pytest.fixture
def broccoli() -> Recipe:
    return make_recipe(3, "Brócolis", RecipeCategory.vegetable,
                       kcal=35, protein=3, carb=7, fat=0.4, cost=1.0,
                       price_per_kg=25.0, erp_external_id="SKU-BROC")


@pytest.fixture
def greens() -> Recipe:
    return make_recipe(4, "Salada verde", RecipeCategory.salad,
                       kcal=15, protein=1, carb=3, fat=0.2, cost=0.5,
                       price_per_kg=18.0, erp_external_id="SKU-SALADA")


@pytest.fixture
def vinaigrette() -> Recipe:
    return make_recipe(5, "Vinagrete", RecipeCategory.dressing,
                       kcal=300, protein=0, carb=5, fat=30, cost=2.0,
                       price_per_kg=40.0, erp_external_id="SKU-MOLHO")


@pytest.fixture
def recipes_by_id(chicken, rice, broccoli, greens, vinaigrette) -> dict:
    return {r.id: r for r in (chicken, rice, broccoli, greens, vinaigrette)}


@pytest.fixture
def lunch_menu() -> MonthlyMenu:
    """Меню на понедельник 2024-03-04, обед."""
    return MonthlyMenu(
        id=10,
        menu_date=date(2024, 3, 4),
        meal_type=MealType.lunch,
        protein_recipe_id=1,
        carb_recipe_id=2,
        vegetable_recipe_id=3,
        salad_recipe_id=4,
        sauce_recipe_id=5,
    )


@pytest.fixture
def portion_defaults() -> PortionDefaults:
    return PortionDefaults(vegetables_amount=100, salad_amount=100, salad_dressing_amount=30)


@pytest.fixture
def make_order(chicken, rice, broccoli, greens, vinaigrette):
    """Фабрика заказа на 2024-03-04 (обед) с подгруженными рецептами."""
    def _make(id=100, customer=None, status=OrderStatus.delivered, **overrides) -> Order:
        customer = customer or make_customer()
        fields = dict(
            id=id,
            customer_id=customer.id,
            customer=customer,
            order_date=date(2024, 3, 4),
            meal_type=MealType.lunch,
            protein_recipe_id=chicken.id, protein_recipe=chicken, protein_amount_gr=200,
            carb_recipe_id=rice.id, carb_recipe=rice, carb_amount_gr=200,
            vegetable_recipe_id=broccoli.id, vegetable_recipe=broccoli, vegetable_amount_gr=100,
            salad_recipe_id=greens.id, salad_recipe=greens, salad_amount_gr=100,
            sauce_recipe_id=vinaigrette.id, sauce_recipe=vinaigrette, sauce_amount_gr=30,
            delivery_address="Rua A, 10, Centro, Campinas - SP",
            delivery_time=time(12, 0),
            status=status,
        )
        fields.update(overrides)
        return Order(**fields)
    return _make


# ---------------------------------------------------------------------------
# Фикстуры сотрудников
# ---------------------------------------------------------------------------

@pytest.fixture
def ops_fixture() -> StaffUser:
    """Сотрудник кухни с ролью 'ops'."""
    return StaffUser(
        id=1,
        email="ops@example.com",
        name="Kitchen",
        password=auth_service.hash_password("password123"),
        role=RoleEnum.ops,
        created_at=datetime.utcnow(),
    )


@pytest.fixture
def admin_fixture() -> StaffUser:
    """Администратор с ролью 'admin'."""
    return StaffUser(
        id=2,
        email="admin@example.com",
        name="Admin",
        password=auth_service.hash_password("admin123"),
        role=RoleEnum.admin,
        created_at=datetime.utcnow(),
    )


# ---------------------------------------------------------------------------
# Фикстуры для зависимостей
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_repo() -> AsyncMock:
    """Мокированный UserRepository для auth-эндпоинтов."""
    return AsyncMock(spec=UserRepository)


@pytest.fixture
def repos() -> dict:
    """Мокированные доменные репозитории, по одному на тип."""
    settings_repo = AsyncMock(spec=SettingsRepository)
    settings_repo.get_portion_defaults.return_value = PortionDefaults()
    return {
        "customers": AsyncMock(spec=CustomerRepository),
        "recipes": AsyncMock(spec=RecipeRepository),
        "menus": AsyncMock(spec=MenuRepository),
        "orders": AsyncMock(spec=OrderRepository),
        "history": AsyncMock(spec=HistoryRepository),
        "settings": settings_repo,
        "prep": AsyncMock(spec=PrepRepository),
    }


@pytest.fixture
def mock_db() -> MagicMock:
    """Мокированная сессия БД на случай, если эндпоинт дойдёт до get_db."""
    session = AsyncMock()
    default_result = MagicMock()
    default_result.scalar_one_or_none.return_value = None
    default_result.scalars.return_value.all.return_value = []
    session.execute.return_value = default_result
    return session


def _override_repositories(app: FastAPI, mock_repo, repos, mock_db) -> None:
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_user_repository] = lambda: mock_repo
    app.dependency_overrides[get_customer_repository] = lambda: repos["customers"]
    app.dependency_overrides[get_recipe_repository] = lambda: repos["recipes"]
    app.dependency_overrides[get_menu_repository] = lambda: repos["menus"]
    app.dependency_overrides[get_order_repository] = lambda: repos["orders"]
    app.dependency_overrides[get_history_repository] = lambda: repos["history"]
    app.dependency_overrides[get_settings_repository] = lambda: repos["settings"]
    app.dependency_overrides[get_prep_repository] = lambda: repos["prep"]


# ---------------------------------------------------------------------------
# HTTP-клиенты
# ---------------------------------------------------------------------------

@pytest.fixture
def test_app(mock_repo, repos, mock_db) -> FastAPI:
    app = create_test_app()
    _override_repositories(app, mock_repo, repos, mock_db)
    return app


@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """
    Неаутентифицированный клиент: публичные эндпоинты и проверка токенов
    (get_current_user не подменяется).
    """
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
async def ops_client(ops_fixture, mock_repo, repos, mock_db) -> AsyncGenerator[AsyncClient, None]:
    """Клиент, аутентифицированный как сотрудник кухни."""
    app = create_test_app()
    _override_repositories(app, mock_repo, repos, mock_db)
    app.dependency_overrides[get_current_user] = lambda: ops_fixture
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
async def admin_client(admin_fixture, mock_repo, repos, mock_db) -> AsyncGenerator[AsyncClient, None]:
    """Клиент, аутентифицированный как администратор."""
    app = create_test_app()
    _override_repositories(app, mock_repo, repos, mock_db)
    app.dependency_overrides[get_current_user] = lambda: admin_fixture
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ---------------------------------------------------------------------------
# Внешние сервисы
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def rsa_private_key_pem() -> str:
    """PKCS8 PEM, как в JSON сервисного аккаунта Google."""
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def service_account(rsa_private_key_pem):
    from mealops.services.integrations.google_auth import ServiceAccount

    return ServiceAccount(
        client_email="sheets@mealops-test.iam.gserviceaccount.com",
        private_key=rsa_private_key_pem,
        private_key_id="key-123",
    )
