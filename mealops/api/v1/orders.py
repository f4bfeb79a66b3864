import logging
from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from mealops.core.dependencies import get_order_materializer, get_order_repository, get_order_status_service
from mealops.core.rbac import require_staff
from mealops.core.timeutils import local_today
from mealops.models.customer import MealType
from mealops.models.user import StaffUser
from mealops.repositories.order_repository import OrderRepository
from mealops.schemas.order import (
    MaterializationReportRead,
    MaterializeRequest,
    OrderRead,
    OrderStatusUpdate,
    ProductionSummary,
)
from mealops.services.order_materializer import OrderMaterializer
from mealops.services.order_query import order_summary, production_summary, sort_by_delivery_time
from mealops.services.order_status import OrderStatusService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["orders"])


def parse_meal_type(meal_type: Optional[str]) -> MealType:
    """meal_type обязателен; ошибка 400, а не 422 валидации"""
    if not meal_type:
        raise HTTPException(status_code=400, detail="meal_type is required and must be 'lunch' or 'dinner'")
    try:
        return MealType(meal_type)
    except ValueError:
        raise HTTPException(status_code=400, detail="meal_type is required and must be 'lunch' or 'dinner'")


@router.get("", response_model=List[OrderRead])
async def list_orders(
    order_date: Optional[date] = Query(None, alias="date"),
    meal_type: Optional[str] = Query(None),
    current_user: StaffUser = Depends(require_staff),
    repo: OrderRepository = Depends(get_order_repository),
):
    slot = parse_meal_type(meal_type)
    orders = await repo.list_for_slot(order_date or local_today(), slot)
    return [order_summary(order) for order in sort_by_delivery_time(orders)]


@router.get("/production", response_model=ProductionSummary)
async def get_production(
    order_date: Optional[date] = Query(None, alias="date"),
    meal_type: Optional[str] = Query(None),
    current_user: StaffUser = Depends(require_staff),
    repo: OrderRepository = Depends(get_order_repository),
):
    slot = parse_meal_type(meal_type)
    target_date = order_date or local_today()
    orders = await repo.list_for_slot(target_date, slot, include_cancelled=False)
    return {
        "order_date": target_date,
        "meal_type": slot,
        "orders": len(orders),
        "items": production_summary(orders),
    }


@router.post("/materialize", response_model=MaterializationReportRead)
async def materialize_orders(
    request: MaterializeRequest,
    current_user: StaffUser = Depends(require_staff),
    materializer: OrderMaterializer = Depends(get_order_materializer),
):
    report = await materializer.materialize(request.order_date, request.meal_type)
    return asdict(report)


@router.patch("/{order_id}/status", response_model=OrderRead)
async def change_status(
    order_id: int,
    request: OrderStatusUpdate,
    current_user: StaffUser = Depends(require_staff),
    service: OrderStatusService = Depends(get_order_status_service),
):
    order = await service.change_status(order_id, request.status)
    logger.info(f"{current_user.email}: заказ {order_id} -> {request.status.value}")
    return order_summary(order)
