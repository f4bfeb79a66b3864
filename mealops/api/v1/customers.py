from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from mealops.core.dependencies import get_customer_repository, get_customer_service
from mealops.core.rbac import require_staff
from mealops.models.customer import CustomerStatus
from mealops.models.user import StaffUser
from mealops.repositories.customer_repository import CustomerRepository
from mealops.schemas.customer import (
    CustomerCreate,
    CustomerRead,
    CustomerRegister,
    CustomerUpdate,
    DeliveryScheduleCreate,
    DeliveryScheduleRead,
    DeliveryScheduleUpdate,
)
from mealops.services.customer_service import CustomerService

router = APIRouter(tags=["customers"])


@router.post("/register", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
async def register_customer(
    data: CustomerRegister,
    service: CustomerService = Depends(get_customer_service),
):
    """Публичная форма регистрации: клиент появляется в статусе pending_approval"""
    return await service.register(data)


@router.get("", response_model=List[CustomerRead])
async def list_customers(
    status_filter: Optional[CustomerStatus] = Query(None, alias="status"),
    current_user: StaffUser = Depends(require_staff),
    repo: CustomerRepository = Depends(get_customer_repository),
):
    return await repo.list_customers(status_filter)


@router.get("/pending", response_model=List[CustomerRead])
async def list_pending(
    current_user: StaffUser = Depends(require_staff),
    repo: CustomerRepository = Depends(get_customer_repository),
):
    return await repo.list_customers(CustomerStatus.pending_approval)


@router.post("", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
async def create_customer(
    data: CustomerCreate,
    current_user: StaffUser = Depends(require_staff),
    service: CustomerService = Depends(get_customer_service),
):
    return await service.create_active(data)


@router.get("/{customer_id}", response_model=CustomerRead)
async def get_customer(
    customer_id: int,
    current_user: StaffUser = Depends(require_staff),
    service: CustomerService = Depends(get_customer_service),
):
    return await service.get(customer_id)


@router.put("/{customer_id}", response_model=CustomerRead)
async def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    current_user: StaffUser = Depends(require_staff),
    service: CustomerService = Depends(get_customer_service),
):
    return await service.update(customer_id, data)


@router.post("/{customer_id}/approve", response_model=CustomerRead)
async def approve_customer(
    customer_id: int,
    current_user: StaffUser = Depends(require_staff),
    service: CustomerService = Depends(get_customer_service),
):
    return await service.approve(customer_id)


@router.delete("/{customer_id}/reject", status_code=status.HTTP_204_NO_CONTENT)
async def reject_customer(
    customer_id: int,
    current_user: StaffUser = Depends(require_staff),
    service: CustomerService = Depends(get_customer_service),
):
    await service.reject(customer_id)


# --- расписание доставки ---

@router.get("/{customer_id}/schedules", response_model=List[DeliveryScheduleRead])
async def list_schedules(
    customer_id: int,
    current_user: StaffUser = Depends(require_staff),
    service: CustomerService = Depends(get_customer_service),
):
    customer = await service.get(customer_id)
    return sorted(customer.delivery_schedules, key=lambda s: (s.day_of_week, s.meal_type.value))


@router.post("/{customer_id}/schedules", response_model=DeliveryScheduleRead, status_code=status.HTTP_201_CREATED)
async def add_schedule(
    customer_id: int,
    data: DeliveryScheduleCreate,
    current_user: StaffUser = Depends(require_staff),
    service: CustomerService = Depends(get_customer_service),
):
    return await service.add_schedule(customer_id, data)


@router.put("/{customer_id}/schedules/{schedule_id}", response_model=DeliveryScheduleRead)
async def update_schedule(
    customer_id: int,
    schedule_id: int,
    data: DeliveryScheduleUpdate,
    current_user: StaffUser = Depends(require_staff),
    service: CustomerService = Depends(get_customer_service),
):
    return await service.update_schedule(customer_id, schedule_id, data)


@router.delete("/{customer_id}/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    customer_id: int,
    schedule_id: int,
    current_user: StaffUser = Depends(require_staff),
    service: CustomerService = Depends(get_customer_service),
):
    await service.delete_schedule(customer_id, schedule_id)
