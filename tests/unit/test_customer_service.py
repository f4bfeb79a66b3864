"""
Модульные тесты CustomerService: регистрация, одобрение, телефоны, расписания.
"""

import pytest
from datetime import time
from unittest.mock import AsyncMock

from mealops.core.errors import ConstraintKind, ConstraintViolation, InvalidTransition, NotFoundError
from mealops.models.customer import CustomerStatus, MealType
from mealops.repositories.customer_repository import CustomerRepository
from mealops.schemas.customer import CustomerCreate, CustomerRegister, CustomerUpdate, DeliveryScheduleCreate
from mealops.services.customer_service import CustomerService, normalize_phone
from tests.conftest import make_customer, make_schedule

pytestmark = pytest.mark.unit


@pytest.fixture
def customers():
    repo = AsyncMock(spec=CustomerRepository)
    repo.create.side_effect = lambda customer: customer
    repo.save.side_effect = lambda customer: customer
    repo.save_schedule.side_effect = lambda schedule: schedule
    repo.add_schedule.side_effect = lambda schedule: schedule
    repo.find_active_by_phone.return_value = []
    return repo


@pytest.fixture
def service(customers):
    return CustomerService(customers)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("+55 (11) 99999-0000", "5511999990000"),
        ("5511999990000", "5511999990000"),
        ("---", None),
        (None, None),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.asyncio
async def test_register_creates_pending_inactive_customer(service, customers):
    customer = await service.register(CustomerRegister(name="Bruno Lima", phone="+55 11 98888-1111"))

    assert customer.status == CustomerStatus.pending_approval
    assert customer.is_active is False
    assert customer.phone == "5511988881111"
    # Конфликт телефона проверяется только при одобрении
    customers.find_active_by_phone.assert_not_called()


@pytest.mark.asyncio
async def test_create_active_rejects_duplicate_phone(service, customers):
    customers.find_active_by_phone.return_value = [make_customer(name="Ana Souza")]

    with pytest.raises(ConstraintViolation) as exc_info:
        await service.create_active(CustomerCreate(name="Outra Ana", phone="5511999990000"))

    assert exc_info.value.kind == ConstraintKind.duplicate_phone
    assert "Ana Souza" in exc_info.value.message
    customers.create.assert_not_called()


@pytest.mark.asyncio
async def test_approve_activates_pending_customer(service, customers):
    pending = make_customer(id=7, status=CustomerStatus.pending_approval, is_active=False)
    customers.get_by_id.return_value = pending

    approved = await service.approve(7)

    assert approved.status == CustomerStatus.active
    assert approved.is_active is True
    customers.find_active_by_phone.assert_called_once_with("5511999990000", exclude_id=7)


@pytest.mark.asyncio
async def test_approve_with_phone_conflict_keeps_customer_pending(service, customers):
    pending = make_customer(id=7, status=CustomerStatus.pending_approval, is_active=False)
    customers.get_by_id.return_value = pending
    customers.find_active_by_phone.return_value = [make_customer(id=1, name="Ana Souza")]

    with pytest.raises(ConstraintViolation):
        await service.approve(7)

    assert pending.status == CustomerStatus.pending_approval
    assert pending.is_active is False
    customers.save.assert_not_called()


@pytest.mark.asyncio
async def test_approve_missing_customer_raises_not_found(service, customers):
    customers.get_by_id.return_value = None
    with pytest.raises(NotFoundError):
        await service.approve(404)


@pytest.mark.asyncio
async def test_reject_deletes_pending_registration(service, customers):
    pending = make_customer(id=7, status=CustomerStatus.pending_approval, is_active=False)
    customers.get_by_id.return_value = pending

    await service.reject(7)

    customers.delete.assert_called_once_with(pending)


@pytest.mark.asyncio
async def test_reject_active_customer_is_invalid(service, customers):
    customers.get_by_id.return_value = make_customer(id=7)
    with pytest.raises(InvalidTransition):
        await service.reject(7)
    customers.delete.assert_not_called()


@pytest.mark.asyncio
async def test_update_phone_of_active_customer_checks_conflicts(service, customers):
    customer = make_customer(id=3)
    customers.get_by_id.return_value = customer

    updated = await service.update(3, CustomerUpdate(phone="+55 11 97777-2222", lunch_protein=45))

    assert updated.phone == "5511977772222"
    assert updated.lunch_protein == 45
    customers.find_active_by_phone.assert_called_once_with("5511977772222", exclude_id=3)


@pytest.mark.asyncio
async def test_add_schedule_overwrites_existing_slot(service, customers):
    customers.get_by_id.return_value = make_customer(id=1)
    existing = make_schedule(id=5, day_of_week=2, meal_type=MealType.dinner, delivery_time=time(19, 0))
    customers.find_schedule.return_value = existing

    result = await service.add_schedule(
        1,
        DeliveryScheduleCreate(
            day_of_week=2, meal_type=MealType.dinner,
            delivery_time=time(20, 30), delivery_address="Rua B, 20, Cambuí, Campinas - SP",
        ),
    )

    assert result is existing
    assert existing.delivery_time == time(20, 30)
    customers.add_schedule.assert_not_called()


@pytest.mark.asyncio
async def test_add_schedule_creates_new_slot(service, customers):
    customers.get_by_id.return_value = make_customer(id=1)
    customers.find_schedule.return_value = None

    result = await service.add_schedule(
        1, DeliveryScheduleCreate(day_of_week=3, meal_type=MealType.lunch)
    )

    assert result.customer_id == 1
    assert result.day_of_week == 3
    customers.add_schedule.assert_called_once()


@pytest.mark.asyncio
async def test_delete_missing_schedule_raises_not_found(service, customers):
    customers.get_schedule.return_value = None
    with pytest.raises(NotFoundError):
        await service.delete_schedule(1, 99)
