from fastapi import APIRouter
from mealops.api.v1.auth import router as auth_router
from mealops.api.v1.admin import router as admin_router
from mealops.api.v1.customers import router as customers_router
from mealops.api.v1.recipes import router as recipes_router
from mealops.api.v1.menu import router as menu_router
from mealops.api.v1.settings import router as settings_router
from mealops.api.v1.orders import router as orders_router
from mealops.api.v1.history import router as history_router
from mealops.api.v1.prep import router as prep_router
from mealops.api.v1.integrations import router as integrations_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(admin_router, prefix="/admin", tags=["admin"])
api_router.include_router(customers_router, prefix="/customers", tags=["customers"])
api_router.include_router(recipes_router, prefix="/recipes", tags=["recipes"])
api_router.include_router(menu_router, prefix="/menu", tags=["menu"])
api_router.include_router(settings_router, prefix="/settings", tags=["settings"])
api_router.include_router(orders_router, prefix="/orders", tags=["orders"])
api_router.include_router(history_router, prefix="/history", tags=["history"])
api_router.include_router(prep_router, prefix="/prep", tags=["prep"])
api_router.include_router(integrations_router, prefix="/integrations", tags=["integrations"])
