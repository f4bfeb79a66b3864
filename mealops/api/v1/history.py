from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from mealops.core.dependencies import get_history_archiver, get_history_repository
from mealops.core.rbac import require_staff
from mealops.core.timeutils import local_now
from mealops.models.customer import MealType
from mealops.models.user import StaffUser
from mealops.repositories.history_repository import HistoryRepository
from mealops.schemas.history import ArchiveRequest, ArchiveResultRead, HistoryRead
from mealops.services.history_archiver import HistoryArchiver

router = APIRouter(tags=["history"])


@router.get("", response_model=List[HistoryRead])
async def list_history(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    meal_type: Optional[MealType] = Query(None),
    customer_id: Optional[int] = Query(None),
    current_user: StaffUser = Depends(require_staff),
    repo: HistoryRepository = Depends(get_history_repository),
):
    return await repo.list_history(start, end, meal_type, customer_id)


@router.post("/archive", response_model=ArchiveResultRead)
async def archive_order(
    request: ArchiveRequest,
    current_user: StaffUser = Depends(require_staff),
    archiver: HistoryArchiver = Depends(get_history_archiver),
):
    return await archiver.archive_order(request.order_id)


@router.post("/archive-due", response_model=List[ArchiveResultRead])
async def archive_due(
    current_user: StaffUser = Depends(require_staff),
    archiver: HistoryArchiver = Depends(get_history_archiver),
):
    """Архивировать все доставленные/отменённые заказы, чьё окно доставки прошло"""
    return await archiver.archive_due(local_now())
