from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mealops.models.prep import PrepSession, PrepItem


class PrepRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_sessions(self) -> List[PrepSession]:
        result = await self.db.execute(
            select(PrepSession).order_by(PrepSession.date.desc(), PrepSession.id.desc())
        )
        return list(result.scalars().all())

    async def get_session(self, session_id: int) -> Optional[PrepSession]:
        result = await self.db.execute(select(PrepSession).where(PrepSession.id == session_id))
        return result.scalar_one_or_none()

    async def create_session(self, session: PrepSession) -> PrepSession:
        self.db.add(session)
        await self.db.commit()
        await self.db.refresh(session)
        return session

    async def add_item(self, item: PrepItem) -> PrepItem:
        self.db.add(item)
        await self.db.commit()
        await self.db.refresh(item)
        return item

    async def delete_session(self, session: PrepSession) -> None:
        await self.db.delete(session)
        await self.db.commit()
