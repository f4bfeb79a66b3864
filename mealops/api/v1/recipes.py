from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mealops.core.dependencies import get_recipe_repository
from mealops.core.rbac import require_staff
from mealops.models.recipe import Recipe, RecipeCategory
from mealops.models.user import StaffUser
from mealops.repositories.recipe_repository import RecipeRepository
from mealops.schemas.recipe import RecipeCreate, RecipeRead, RecipeUpdate

router = APIRouter(tags=["recipes"])


async def _get_or_404(recipe_id: int, repo: RecipeRepository) -> Recipe:
    recipe = await repo.get_by_id(recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Рецепт не найден")
    return recipe


@router.get("", response_model=List[RecipeRead])
async def list_recipes(
    category: Optional[RecipeCategory] = Query(None),
    active_only: bool = Query(False),
    current_user: StaffUser = Depends(require_staff),
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    return await repo.list_recipes(category, active_only)


@router.post("", response_model=RecipeRead, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    data: RecipeCreate,
    current_user: StaffUser = Depends(require_staff),
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    return await repo.create(Recipe(**data.model_dump()))


@router.get("/{recipe_id}", response_model=RecipeRead)
async def get_recipe(
    recipe_id: int,
    current_user: StaffUser = Depends(require_staff),
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    return await _get_or_404(recipe_id, repo)


@router.put("/{recipe_id}", response_model=RecipeRead)
async def update_recipe(
    recipe_id: int,
    data: RecipeUpdate,
    current_user: StaffUser = Depends(require_staff),
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    recipe = await _get_or_404(recipe_id, repo)
    return await repo.update(recipe, data.model_dump(exclude_unset=True))


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(
    recipe_id: int,
    current_user: StaffUser = Depends(require_staff),
    repo: RecipeRepository = Depends(get_recipe_repository),
):
    recipe = await _get_or_404(recipe_id, repo)
    await repo.delete(recipe)
