from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from mealops.core.dependencies import get_user_repository
from mealops.core.rbac import require_admin
from mealops.models.user import StaffUser, RoleEnum
from mealops.repositories.user_repository import UserRepository
from mealops.schemas.admin import RoleUpdateRequest, RoleUpdateResponse
from mealops.schemas.auth import StaffUserCreate, StaffUserRead
from mealops.services.auth_service import auth_service

router = APIRouter(tags=["admin"])


@router.get("/users", response_model=List[StaffUserRead])
async def list_users(
    current_user: StaffUser = Depends(require_admin),
    repo: UserRepository = Depends(get_user_repository),
):
    return await repo.list_users()


@router.post("/users", response_model=StaffUserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: StaffUserCreate,
    current_user: StaffUser = Depends(require_admin),
    repo: UserRepository = Depends(get_user_repository),
):
    return await auth_service.create_staff_user(repo, user_data)


@router.put("/users/{user_id}/role", response_model=RoleUpdateResponse)
async def update_user_role(
    user_id: int,
    role_data: RoleUpdateRequest,
    current_user: StaffUser = Depends(require_admin),
    repo: UserRepository = Depends(get_user_repository),
):
    if user_id == current_user.id:
        raise HTTPException(
            status_code=400,
            detail="Нельзя изменить свою собственную роль"
        )

    try:
        new_role = RoleEnum(role_data.role)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Недопустимая роль: {role_data.role}. Допустимые: admin, ops"
        )

    user = await repo.get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="Сотрудник не найден")

    user.role = new_role
    await repo.save(user)

    return RoleUpdateResponse(
        message=f"Роль сотрудника {user.email} изменена на {new_role.value}",
        user_id=user.id,
        new_role=new_role,
    )


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    current_user: StaffUser = Depends(require_admin),
    repo: UserRepository = Depends(get_user_repository),
):
    if user_id == current_user.id:
        raise HTTPException(
            status_code=400,
            detail="Нельзя удалить самого себя"
        )

    user = await repo.get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="Сотрудник не найден")

    await repo.delete(user)
    return {"message": f"Сотрудник {user.email} удалён"}
