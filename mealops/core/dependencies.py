from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from mealops.core.db import get_db
from mealops.core.config import settings
from mealops.models.user import StaffUser
from mealops.repositories.customer_repository import CustomerRepository
from mealops.repositories.history_repository import HistoryRepository
from mealops.repositories.menu_repository import MenuRepository
from mealops.repositories.order_repository import OrderRepository
from mealops.repositories.prep_repository import PrepRepository
from mealops.repositories.recipe_repository import RecipeRepository
from mealops.repositories.settings_repository import SettingsRepository
from mealops.repositories.user_repository import UserRepository
from mealops.services.customer_service import CustomerService
from mealops.services.history_archiver import HistoryArchiver
from mealops.services.order_materializer import OrderMaterializer
from mealops.services.order_status import OrderStatusService


security = HTTPBearer()


# --- Фабрики репозиториев: инжектируются в эндпоинты через Depends ---

def get_user_repository(db: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_recipe_repository(db: AsyncSession = Depends(get_db)) -> RecipeRepository:
    return RecipeRepository(db)


def get_customer_repository(db: AsyncSession = Depends(get_db)) -> CustomerRepository:
    return CustomerRepository(db)


def get_menu_repository(db: AsyncSession = Depends(get_db)) -> MenuRepository:
    return MenuRepository(db)


def get_order_repository(db: AsyncSession = Depends(get_db)) -> OrderRepository:
    return OrderRepository(db)


def get_history_repository(db: AsyncSession = Depends(get_db)) -> HistoryRepository:
    return HistoryRepository(db)


def get_settings_repository(db: AsyncSession = Depends(get_db)) -> SettingsRepository:
    return SettingsRepository(db)


def get_prep_repository(db: AsyncSession = Depends(get_db)) -> PrepRepository:
    return PrepRepository(db)


# --- Сервисы ---

def get_customer_service(
        customers: CustomerRepository = Depends(get_customer_repository),
) -> CustomerService:
    return CustomerService(customers)


def get_order_materializer(
        customers: CustomerRepository = Depends(get_customer_repository),
        menus: MenuRepository = Depends(get_menu_repository),
        recipes: RecipeRepository = Depends(get_recipe_repository),
        orders: OrderRepository = Depends(get_order_repository),
        settings_repo: SettingsRepository = Depends(get_settings_repository),
) -> OrderMaterializer:
    return OrderMaterializer(customers, menus, recipes, orders, settings_repo)


def get_order_status_service(
        orders: OrderRepository = Depends(get_order_repository),
) -> OrderStatusService:
    return OrderStatusService(orders)


def get_history_archiver(
        orders: OrderRepository = Depends(get_order_repository),
        customers: CustomerRepository = Depends(get_customer_repository),
        menus: MenuRepository = Depends(get_menu_repository),
        recipes: RecipeRepository = Depends(get_recipe_repository),
        history: HistoryRepository = Depends(get_history_repository),
        settings_repo: SettingsRepository = Depends(get_settings_repository),
) -> HistoryArchiver:
    return HistoryArchiver(orders, customers, menus, recipes, history, settings_repo)


async def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        repo: UserRepository = Depends(get_user_repository),
) -> StaffUser:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Невалидный токен доступа",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = await repo.get_by_id(int(user_id))
    if user is None:
        raise credentials_exception

    return user
