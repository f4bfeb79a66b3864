"""Доступ сотрудников по ролям: admin управляет персоналом и настройками, ops работает с заказами."""
import logging

from fastapi import Depends, HTTPException, status

from mealops.core.dependencies import get_current_user
from mealops.models.user import RoleEnum, StaffUser

logger = logging.getLogger(__name__)


def require_role(*allowed_roles: RoleEnum):
    allowed = frozenset(allowed_roles)
    required = " or ".join(sorted(role.value for role in allowed))

    async def staff_with_role(staff: StaffUser = Depends(get_current_user)) -> StaffUser:
        if staff.role in allowed:
            return staff
        logger.warning(f"Сотрудник {staff.email} ({staff.role.value}) без доступа: нужна роль {required}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"This action requires the {required} role",
        )

    return staff_with_role


require_admin = require_role(RoleEnum.admin)
require_staff = require_role(RoleEnum.ops, RoleEnum.admin)
