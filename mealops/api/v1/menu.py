from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mealops.core.dependencies import get_menu_repository
from mealops.core.rbac import require_staff
from mealops.models.user import StaffUser
from mealops.repositories.menu_repository import MenuRepository
from mealops.schemas.menu import MenuRead, MenuUpsert

router = APIRouter(tags=["menu"])


@router.get("", response_model=List[MenuRead])
async def list_menu(
    start: date = Query(...),
    end: date = Query(...),
    current_user: StaffUser = Depends(require_staff),
    repo: MenuRepository = Depends(get_menu_repository),
):
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    return await repo.list_range(start, end)


@router.put("", response_model=MenuRead)
async def upsert_menu(
    data: MenuUpsert,
    current_user: StaffUser = Depends(require_staff),
    repo: MenuRepository = Depends(get_menu_repository),
):
    recipes = data.model_dump(exclude={"menu_date", "meal_type"})
    return await repo.upsert(data.menu_date, data.meal_type, recipes)


@router.delete("/{menu_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_menu(
    menu_id: int,
    current_user: StaffUser = Depends(require_staff),
    repo: MenuRepository = Depends(get_menu_repository),
):
    menu = await repo.get_by_id(menu_id)
    if not menu:
        raise HTTPException(status_code=404, detail="Меню не найдено")
    await repo.delete(menu)
