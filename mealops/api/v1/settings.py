from dataclasses import asdict

from fastapi import APIRouter, Depends

from mealops.core.dependencies import get_settings_repository
from mealops.core.rbac import require_admin, require_staff
from mealops.models.user import StaffUser
from mealops.repositories.settings_repository import SettingsRepository
from mealops.schemas.settings import PortionDefaultsSchema
from mealops.services.nutrition_calculator import PortionDefaults

router = APIRouter(tags=["settings"])


@router.get("/portions", response_model=PortionDefaultsSchema)
async def get_portions(
    current_user: StaffUser = Depends(require_staff),
    repo: SettingsRepository = Depends(get_settings_repository),
):
    return asdict(await repo.get_portion_defaults())


@router.put("/portions", response_model=PortionDefaultsSchema)
async def update_portions(
    data: PortionDefaultsSchema,
    current_user: StaffUser = Depends(require_admin),
    repo: SettingsRepository = Depends(get_settings_repository),
):
    defaults = await repo.update_portion_defaults(PortionDefaults(**data.model_dump()))
    return asdict(defaults)
