from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from mealops.models.user import RoleEnum


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class StaffUserCreate(BaseModel):
    email: EmailStr
    name: Optional[str] = None
    password: str = Field(..., min_length=6)
    role: RoleEnum = RoleEnum.ops


class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    role: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class StaffUserRead(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    role: RoleEnum
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
