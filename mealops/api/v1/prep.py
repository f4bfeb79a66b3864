from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from mealops.core.dependencies import get_prep_repository, get_recipe_repository
from mealops.core.rbac import require_staff
from mealops.models.prep import PrepItem, PrepSession
from mealops.models.user import StaffUser
from mealops.repositories.prep_repository import PrepRepository
from mealops.repositories.recipe_repository import RecipeRepository
from mealops.schemas.prep import PrepItemCreate, PrepItemRead, PrepSessionCreate, PrepSessionRead, PrepSummaryRead
from mealops.services.nutrition_calculator import NutritionCalculator

router = APIRouter(tags=["prep"])


async def _get_session_or_404(session_id: int, repo: PrepRepository) -> PrepSession:
    session = await repo.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Сессия заготовки не найдена")
    return session


async def _ensure_recipes_exist(recipe_ids, recipes: RecipeRepository) -> None:
    found = await recipes.get_many(recipe_ids)
    missing = sorted(set(recipe_ids) - set(found))
    if missing:
        raise HTTPException(status_code=400, detail=f"Unknown recipes: {missing}")


@router.get("/sessions", response_model=List[PrepSessionRead])
async def list_sessions(
    current_user: StaffUser = Depends(require_staff),
    repo: PrepRepository = Depends(get_prep_repository),
):
    return await repo.list_sessions()


@router.post("/sessions", response_model=PrepSessionRead, status_code=status.HTTP_201_CREATED)
async def create_session(
    data: PrepSessionCreate,
    current_user: StaffUser = Depends(require_staff),
    repo: PrepRepository = Depends(get_prep_repository),
    recipes: RecipeRepository = Depends(get_recipe_repository),
):
    await _ensure_recipes_exist([item.recipe_id for item in data.items], recipes)
    session = PrepSession(
        title=data.title,
        date=data.date,
        notes=data.notes,
        created_by_id=current_user.id,
        items=[PrepItem(**item.model_dump()) for item in data.items],
    )
    return await repo.create_session(session)


@router.get("/sessions/{session_id}", response_model=PrepSessionRead)
async def get_session(
    session_id: int,
    current_user: StaffUser = Depends(require_staff),
    repo: PrepRepository = Depends(get_prep_repository),
):
    return await _get_session_or_404(session_id, repo)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: int,
    current_user: StaffUser = Depends(require_staff),
    repo: PrepRepository = Depends(get_prep_repository),
):
    session = await _get_session_or_404(session_id, repo)
    await repo.delete_session(session)


@router.post("/sessions/{session_id}/items", response_model=PrepItemRead, status_code=status.HTTP_201_CREATED)
async def add_item(
    session_id: int,
    data: PrepItemCreate,
    current_user: StaffUser = Depends(require_staff),
    repo: PrepRepository = Depends(get_prep_repository),
    recipes: RecipeRepository = Depends(get_recipe_repository),
):
    session = await _get_session_or_404(session_id, repo)
    await _ensure_recipes_exist([data.recipe_id], recipes)
    return await repo.add_item(PrepItem(prep_session_id=session.id, **data.model_dump()))


@router.get("/sessions/{session_id}/summary", response_model=PrepSummaryRead)
async def get_summary(
    session_id: int,
    current_user: StaffUser = Depends(require_staff),
    repo: PrepRepository = Depends(get_prep_repository),
):
    session = await _get_session_or_404(session_id, repo)
    summary = NutritionCalculator.session_summary(
        [(item.recipe, item.total_weight_gr) for item in session.items if item.recipe is not None]
    )
    return {
        "session_id": session.id,
        "totals_by_category": {
            category.value: asdict(totals) for category, totals in summary.totals_by_category.items()
        },
        "grand_totals": asdict(summary.grand_totals),
    }
