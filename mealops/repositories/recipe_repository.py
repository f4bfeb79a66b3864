from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mealops.core.errors import ConstraintKind, ConstraintViolation
from mealops.models.menu import MonthlyMenu
from mealops.models.order import Order
from mealops.models.prep import PrepItem
from mealops.models.recipe import Recipe, RecipeCategory


class RecipeRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_recipes(
        self,
        category: Optional[RecipeCategory] = None,
        active_only: bool = False,
    ) -> List[Recipe]:
        query = select(Recipe)
        if category:
            query = query.where(Recipe.category == category)
        if active_only:
            query = query.where(Recipe.is_active.is_(True))
        result = await self.db.execute(query.order_by(Recipe.name))
        return list(result.scalars().all())

    async def get_by_id(self, recipe_id: int) -> Optional[Recipe]:
        return await self.db.get(Recipe, recipe_id)

    async def get_many(self, recipe_ids: Iterable[Optional[int]]) -> Dict[int, Recipe]:
        ids = {recipe_id for recipe_id in recipe_ids if recipe_id}
        if not ids:
            return {}
        result = await self.db.execute(select(Recipe).where(Recipe.id.in_(ids)))
        return {recipe.id: recipe for recipe in result.scalars().all()}

    async def get_by_name(
        self, name: str, category: Optional[RecipeCategory] = None
    ) -> Optional[Recipe]:
        query = select(Recipe).where(Recipe.name == name)
        if category:
            query = query.where(Recipe.category == category)
        result = await self.db.execute(query.limit(1))
        return result.scalars().first()

    async def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        query = select(Recipe.id).where(Recipe.name == name)
        if exclude_id is not None:
            query = query.where(Recipe.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        if result.scalars().first() is not None:
            raise ConstraintViolation(
                ConstraintKind.duplicate_recipe_name,
                f"A recipe named '{name}' already exists",
            )

    async def _commit_named(self, name: str) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConstraintViolation(
                ConstraintKind.duplicate_recipe_name,
                f"A recipe named '{name}' already exists",
            )

    async def create(self, recipe: Recipe) -> Recipe:
        await self._ensure_unique_name(recipe.name)
        self.db.add(recipe)
        await self._commit_named(recipe.name)
        await self.db.refresh(recipe)
        return recipe

    async def update(self, recipe: Recipe, changes: dict) -> Recipe:
        if "name" in changes and changes["name"] != recipe.name:
            await self._ensure_unique_name(changes["name"], exclude_id=recipe.id)
        for key, value in changes.items():
            setattr(recipe, key, value)
        await self._commit_named(recipe.name)
        await self.db.refresh(recipe)
        return recipe

    async def is_referenced(self, recipe_id: int) -> bool:
        """Используется ли рецепт в заказах, меню или заготовках."""
        order_refs = await self.db.execute(
            select(func.count(Order.id)).where(or_(
                Order.protein_recipe_id == recipe_id,
                Order.carb_recipe_id == recipe_id,
                Order.vegetable_recipe_id == recipe_id,
                Order.salad_recipe_id == recipe_id,
                Order.sauce_recipe_id == recipe_id,
            ))
        )
        if order_refs.scalar_one():
            return True

        menu_refs = await self.db.execute(
            select(func.count(MonthlyMenu.id)).where(or_(
                MonthlyMenu.protein_recipe_id == recipe_id,
                MonthlyMenu.carb_recipe_id == recipe_id,
                MonthlyMenu.vegetable_recipe_id == recipe_id,
                MonthlyMenu.salad_recipe_id == recipe_id,
                MonthlyMenu.sauce_recipe_id == recipe_id,
            ))
        )
        if menu_refs.scalar_one():
            return True

        prep_refs = await self.db.execute(
            select(func.count(PrepItem.id)).where(PrepItem.recipe_id == recipe_id)
        )
        return bool(prep_refs.scalar_one())

    async def delete(self, recipe: Recipe) -> None:
        if await self.is_referenced(recipe.id):
            raise ConstraintViolation(
                ConstraintKind.recipe_in_use,
                f"Recipe '{recipe.name}' is used by existing orders, menus or prep sessions and cannot be deleted",
            )
        await self.db.delete(recipe)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConstraintViolation(
                ConstraintKind.recipe_in_use,
                f"Recipe '{recipe.name}' is used by existing orders, menus or prep sessions and cannot be deleted",
            )
