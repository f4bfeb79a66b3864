import logging
import re
from typing import Optional

from mealops.core.errors import ConstraintKind, ConstraintViolation, InvalidTransition, NotFoundError
from mealops.models.customer import Customer, CustomerStatus, DeliverySchedule
from mealops.repositories.customer_repository import CustomerRepository
from mealops.schemas.customer import (
    CustomerBase,
    CustomerUpdate,
    DeliveryScheduleCreate,
    DeliveryScheduleUpdate,
)

logger = logging.getLogger(__name__)


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """Только цифры: '+55 (11) 99999-0000' -> '5511999990000'"""
    if phone is None:
        return None
    digits = re.sub(r"\D", "", phone)
    return digits or None


class CustomerService:
    def __init__(self, customers: CustomerRepository):
        self.customers = customers

    async def get(self, customer_id: int) -> Customer:
        customer = await self.customers.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found")
        return customer

    async def _ensure_phone_free(self, phone: Optional[str], exclude_id: Optional[int] = None) -> None:
        if not phone:
            return
        conflicts = await self.customers.find_active_by_phone(phone, exclude_id=exclude_id)
        if conflicts:
            raise ConstraintViolation(
                ConstraintKind.duplicate_phone,
                f"An active customer with this phone already exists: {conflicts[0].name}",
            )

    @staticmethod
    def _build(data: CustomerBase, status: CustomerStatus, is_active: bool) -> Customer:
        fields = data.model_dump()
        fields["phone"] = normalize_phone(fields["phone"])
        fields["whatsapp"] = normalize_phone(fields.get("whatsapp"))
        return Customer(**fields, status=status, is_active=is_active)

    async def register(self, data: CustomerBase) -> Customer:
        """Публичная регистрация: клиент ждёт одобрения, конфликт телефона проверяется при одобрении."""
        customer = await self.customers.create(
            self._build(data, CustomerStatus.pending_approval, is_active=False)
        )
        logger.info(f"Новая заявка на регистрацию: {customer.name} ({customer.phone})")
        return customer

    async def create_active(self, data: CustomerBase) -> Customer:
        await self._ensure_phone_free(normalize_phone(data.phone))
        return await self.customers.create(self._build(data, CustomerStatus.active, is_active=True))

    async def update(self, customer_id: int, data: CustomerUpdate) -> Customer:
        customer = await self.get(customer_id)
        changes = data.model_dump(exclude_unset=True)
        if "phone" in changes:
            changes["phone"] = normalize_phone(changes["phone"])
            if customer.status == CustomerStatus.active:
                await self._ensure_phone_free(changes["phone"], exclude_id=customer.id)
        if "whatsapp" in changes:
            changes["whatsapp"] = normalize_phone(changes["whatsapp"])
        for field, value in changes.items():
            setattr(customer, field, value)
        return await self.customers.save(customer)

    async def approve(self, customer_id: int) -> Customer:
        customer = await self.get(customer_id)
        if customer.status == CustomerStatus.active:
            return customer

        # Клиент остаётся pending_approval, если телефон уже занят
        await self._ensure_phone_free(customer.phone, exclude_id=customer.id)

        customer.status = CustomerStatus.active
        customer.is_active = True
        customer = await self.customers.save(customer)
        logger.info(f"Клиент {customer.name} одобрен")
        return customer

    async def reject(self, customer_id: int) -> None:
        customer = await self.get(customer_id)
        if customer.status != CustomerStatus.pending_approval:
            raise InvalidTransition("Only pending registrations can be rejected")
        await self.customers.delete(customer)
        logger.info(f"Заявка клиента {customer.name} отклонена")

    # --- расписания доставки ---

    async def add_schedule(self, customer_id: int, data: DeliveryScheduleCreate) -> DeliverySchedule:
        customer = await self.get(customer_id)
        existing = await self.customers.find_schedule(customer.id, data.day_of_week, data.meal_type)
        if existing is not None:
            # Один слот расписания на (день, приём пищи): перезаписываем
            for field, value in data.model_dump().items():
                setattr(existing, field, value)
            return await self.customers.save_schedule(existing)
        return await self.customers.add_schedule(
            DeliverySchedule(customer_id=customer.id, **data.model_dump())
        )

    async def update_schedule(
        self, customer_id: int, schedule_id: int, data: DeliveryScheduleUpdate
    ) -> DeliverySchedule:
        schedule = await self.customers.get_schedule(customer_id, schedule_id)
        if schedule is None:
            raise NotFoundError(f"Schedule {schedule_id} not found")
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(schedule, field, value)
        return await self.customers.save_schedule(schedule)

    async def delete_schedule(self, customer_id: int, schedule_id: int) -> None:
        schedule = await self.customers.get_schedule(customer_id, schedule_id)
        if schedule is None:
            raise NotFoundError(f"Schedule {schedule_id} not found")
        await self.customers.delete_schedule(schedule)
