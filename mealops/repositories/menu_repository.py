from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mealops.core.errors import ConstraintKind, ConstraintViolation
from mealops.models.customer import MealType
from mealops.models.menu import MonthlyMenu

MENU_RECIPE_FIELDS = (
    "protein_recipe_id",
    "carb_recipe_id",
    "vegetable_recipe_id",
    "salad_recipe_id",
    "sauce_recipe_id",
)


class MenuRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, menu_id: int) -> Optional[MonthlyMenu]:
        return await self.db.get(MonthlyMenu, menu_id)

    async def get_slot(self, menu_date: date, meal_type: MealType) -> Optional[MonthlyMenu]:
        result = await self.db.execute(
            select(MonthlyMenu).where(
                MonthlyMenu.menu_date == menu_date,
                MonthlyMenu.meal_type == meal_type,
            )
        )
        return result.scalar_one_or_none()

    async def list_range(self, start: date, end: date) -> List[MonthlyMenu]:
        result = await self.db.execute(
            select(MonthlyMenu)
            .where(MonthlyMenu.menu_date >= start, MonthlyMenu.menu_date <= end)
            .order_by(MonthlyMenu.menu_date, MonthlyMenu.meal_type)
        )
        return list(result.scalars().all())

    async def upsert(self, menu_date: date, meal_type: MealType, recipes: dict) -> MonthlyMenu:
        """Один слот меню на дату и приём пищи: существующий обновляется."""
        menu = await self.get_slot(menu_date, meal_type)
        if menu is None:
            menu = MonthlyMenu(menu_date=menu_date, meal_type=meal_type)
            self.db.add(menu)
        for field_name in MENU_RECIPE_FIELDS:
            setattr(menu, field_name, recipes.get(field_name))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConstraintViolation(
                ConstraintKind.duplicate_menu_slot,
                f"Menu for {menu_date.isoformat()} ({meal_type.value}) was modified concurrently",
            )
        await self.db.refresh(menu)
        return menu

    async def delete(self, menu: MonthlyMenu) -> None:
        await self.db.delete(menu)
        await self.db.commit()
