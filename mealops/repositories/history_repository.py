from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mealops.core.errors import ConstraintKind, ConstraintViolation
from mealops.models.customer import MealType
from mealops.models.history import OrderHistory


class HistoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, customer_id: int, order_date: date, meal_type: MealType) -> bool:
        result = await self.db.execute(
            select(OrderHistory.id).where(
                OrderHistory.customer_id == customer_id,
                OrderHistory.order_date == order_date,
                OrderHistory.meal_type == meal_type,
            ).limit(1)
        )
        return result.scalars().first() is not None

    async def add(self, record: OrderHistory) -> OrderHistory:
        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConstraintViolation(
                ConstraintKind.duplicate_history,
                "Order is already archived",
            )
        await self.db.refresh(record)
        return record

    async def list_history(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        meal_type: Optional[MealType] = None,
        customer_id: Optional[int] = None,
    ) -> List[OrderHistory]:
        query = select(OrderHistory)
        if start:
            query = query.where(OrderHistory.order_date >= start)
        if end:
            query = query.where(OrderHistory.order_date <= end)
        if meal_type:
            query = query.where(OrderHistory.meal_type == meal_type)
        if customer_id:
            query = query.where(OrderHistory.customer_id == customer_id)
        result = await self.db.execute(
            query.order_by(OrderHistory.order_date.desc(), OrderHistory.delivery_time)
        )
        return list(result.scalars().all())
