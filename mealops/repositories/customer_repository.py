from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mealops.models.customer import Customer, CustomerStatus, DeliverySchedule, MealType


class CustomerRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, customer_id: int) -> Optional[Customer]:
        result = await self.db.execute(
            select(Customer)
            .where(Customer.id == customer_id)
            .options(selectinload(Customer.delivery_schedules))
        )
        return result.scalar_one_or_none()

    async def list_customers(self, status: Optional[CustomerStatus] = None) -> List[Customer]:
        query = select(Customer).options(selectinload(Customer.delivery_schedules))
        if status:
            query = query.where(Customer.status == status)
        result = await self.db.execute(query.order_by(Customer.created_at.desc()))
        return list(result.scalars().all())

    async def list_active_with_schedules(self) -> List[Customer]:
        """Одобренные и активные клиенты вместе с расписаниями."""
        result = await self.db.execute(
            select(Customer)
            .where(Customer.status == CustomerStatus.active, Customer.is_active.is_(True))
            .options(selectinload(Customer.delivery_schedules))
            .order_by(Customer.name)
        )
        return list(result.scalars().all())

    async def get_by_phone(self, phone: str) -> Optional[Customer]:
        result = await self.db.execute(
            select(Customer)
            .where(Customer.phone == phone)
            .options(selectinload(Customer.delivery_schedules))
            .order_by(Customer.is_active.desc(), Customer.id)
            .limit(1)
        )
        return result.scalars().first()

    async def get_active_by_contact(self, phone: str) -> Optional[Customer]:
        """Активный клиент по телефону или WhatsApp (для чат-бота)."""
        result = await self.db.execute(
            select(Customer)
            .where(
                Customer.is_active.is_(True),
                or_(Customer.phone == phone, Customer.whatsapp == phone),
            )
            .order_by(Customer.id)
            .limit(1)
        )
        return result.scalars().first()

    async def find_active_by_phone(self, phone: str, exclude_id: Optional[int] = None) -> List[Customer]:
        query = select(Customer).where(
            Customer.phone == phone,
            Customer.status == CustomerStatus.active,
            Customer.is_active.is_(True),
        )
        if exclude_id is not None:
            query = query.where(Customer.id != exclude_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, customer: Customer) -> Customer:
        self.db.add(customer)
        await self.db.commit()
        await self.db.refresh(customer)
        return customer

    async def save(self, customer: Customer) -> Customer:
        await self.db.commit()
        return customer

    async def delete(self, customer: Customer) -> None:
        await self.db.delete(customer)
        await self.db.commit()

    # --- расписания доставки ---

    async def get_schedule(self, customer_id: int, schedule_id: int) -> Optional[DeliverySchedule]:
        result = await self.db.execute(
            select(DeliverySchedule).where(
                DeliverySchedule.id == schedule_id,
                DeliverySchedule.customer_id == customer_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_schedule(
        self, customer_id: int, day_of_week: int, meal_type: MealType
    ) -> Optional[DeliverySchedule]:
        """Активное расписание клиента на день недели и приём пищи."""
        result = await self.db.execute(
            select(DeliverySchedule).where(
                DeliverySchedule.customer_id == customer_id,
                DeliverySchedule.day_of_week == day_of_week,
                DeliverySchedule.meal_type == meal_type,
                DeliverySchedule.is_active.is_(True),
            ).limit(1)
        )
        return result.scalars().first()

    async def add_schedule(self, schedule: DeliverySchedule) -> DeliverySchedule:
        self.db.add(schedule)
        await self.db.commit()
        await self.db.refresh(schedule)
        return schedule

    async def save_schedule(self, schedule: DeliverySchedule) -> DeliverySchedule:
        await self.db.commit()
        return schedule

    async def delete_schedule(self, schedule: DeliverySchedule) -> None:
        await self.db.delete(schedule)
        await self.db.commit()

    async def list_schedules_with_address(self) -> List[DeliverySchedule]:
        result = await self.db.execute(
            select(DeliverySchedule)
            .where(DeliverySchedule.delivery_address.is_not(None))
            .order_by(DeliverySchedule.id)
        )
        return list(result.scalars().all())

    async def rollback(self) -> None:
        await self.db.rollback()
