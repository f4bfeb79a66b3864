from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from mealops.models.user import StaffUser


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: int) -> Optional[StaffUser]:
        result = await self.db.execute(select(StaffUser).where(StaffUser.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[StaffUser]:
        result = await self.db.execute(select(StaffUser).where(StaffUser.email == email))
        return result.scalar_one_or_none()

    async def get_by_refresh_token(self, refresh_token: str) -> Optional[StaffUser]:
        result = await self.db.execute(
            select(StaffUser).where(StaffUser.refresh_token == refresh_token)
        )
        return result.scalar_one_or_none()

    async def list_users(self) -> List[StaffUser]:
        result = await self.db.execute(select(StaffUser).order_by(StaffUser.created_at.desc()))
        return list(result.scalars().all())

    async def save_refresh_token(
        self,
        user: StaffUser,
        refresh_token: str,
        expires: datetime,
    ) -> None:
        user.refresh_token = refresh_token
        user.refresh_token_expires = expires
        await self.db.commit()

    async def revoke_refresh_token(self, user: StaffUser) -> None:
        """Аннулировать refresh-токен сотрудника (logout)."""
        user.refresh_token = None
        user.refresh_token_expires = None
        await self.db.commit()

    async def create_user(self, user: StaffUser) -> StaffUser:
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def save(self, user: StaffUser) -> StaffUser:
        await self.db.commit()
        return user

    async def delete(self, user: StaffUser) -> None:
        await self.db.delete(user)
        await self.db.commit()
