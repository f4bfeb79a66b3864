from pydantic import BaseModel

from mealops.models.user import RoleEnum


class RoleUpdateRequest(BaseModel):
    role: str  # "admin" | "ops"


class RoleUpdateResponse(BaseModel):
    message: str
    user_id: int
    new_role: RoleEnum
