from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mealops.core.errors import ConstraintKind, ConstraintViolation
from mealops.models.customer import MealType
from mealops.models.order import Order, OrderStatus


class OrderRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        result = await self.db.execute(select(Order).where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def get_for_slot(
        self,
        customer_id: int,
        order_date: date,
        meal_type: MealType,
        include_cancelled: bool = True,
    ) -> Optional[Order]:
        query = select(Order).where(
            Order.customer_id == customer_id,
            Order.order_date == order_date,
            Order.meal_type == meal_type,
        )
        if not include_cancelled:
            query = query.where(Order.status != OrderStatus.cancelled)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_for_slot(
        self,
        order_date: date,
        meal_type: MealType,
        include_cancelled: bool = True,
    ) -> List[Order]:
        query = select(Order).where(Order.order_date == order_date, Order.meal_type == meal_type)
        if not include_cancelled:
            query = query.where(Order.status != OrderStatus.cancelled)
        result = await self.db.execute(query.order_by(Order.delivery_time, Order.id))
        return list(result.scalars().all())

    async def list_finished_until(self, until: date) -> List[Order]:
        """Доставленные и отменённые заказы до даты включительно."""
        result = await self.db.execute(
            select(Order)
            .where(
                Order.order_date <= until,
                Order.status.in_([OrderStatus.delivered, OrderStatus.cancelled]),
            )
            .order_by(Order.order_date, Order.meal_type, Order.customer_id)
        )
        return list(result.scalars().all())

    async def create(self, order: Order) -> Order:
        self.db.add(order)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConstraintViolation(
                ConstraintKind.duplicate_order,
                "Order already exists for this customer, date and meal",
            )
        await self.db.refresh(order)
        return order

    async def save(self, order: Order) -> Order:
        await self.db.commit()
        await self.db.refresh(order)
        return order

    async def update_status(self, order: Order, status: OrderStatus) -> Order:
        # Без compare-and-swap: последняя запись побеждает
        order.status = status
        return await self.save(order)

    async def rollback(self) -> None:
        await self.db.rollback()
