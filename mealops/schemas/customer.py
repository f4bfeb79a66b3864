from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from mealops.models.customer import CustomerStatus, MealType


class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=8)
    whatsapp: Optional[str] = None
    email: Optional[EmailStr] = None
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    main_goal: Optional[str] = None
    allergies: List[str] = []
    dietary_notes: Optional[str] = None
    nutritionist_name: Optional[str] = None

    lunch_protein: Optional[float] = Field(None, ge=0)
    lunch_carbs: Optional[float] = Field(None, ge=0)
    lunch_fat: Optional[float] = Field(None, ge=0)
    dinner_protein: Optional[float] = Field(None, ge=0)
    dinner_carbs: Optional[float] = Field(None, ge=0)
    dinner_fat: Optional[float] = Field(None, ge=0)


class CustomerRegister(CustomerBase):
    """Самостоятельная регистрация без расписания, ждёт одобрения."""
    pass


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=8)
    whatsapp: Optional[str] = None
    email: Optional[EmailStr] = None
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    main_goal: Optional[str] = None
    allergies: Optional[List[str]] = None
    dietary_notes: Optional[str] = None
    nutritionist_name: Optional[str] = None
    lunch_protein: Optional[float] = Field(None, ge=0)
    lunch_carbs: Optional[float] = Field(None, ge=0)
    lunch_fat: Optional[float] = Field(None, ge=0)
    dinner_protein: Optional[float] = Field(None, ge=0)
    dinner_carbs: Optional[float] = Field(None, ge=0)
    dinner_fat: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None


class DeliveryScheduleBase(BaseModel):
    day_of_week: int = Field(..., ge=1, le=7)
    meal_type: MealType
    delivery_time: Optional[time] = None
    delivery_address: Optional[str] = None
    is_active: bool = True


class DeliveryScheduleCreate(DeliveryScheduleBase):
    pass


class DeliveryScheduleUpdate(BaseModel):
    delivery_time: Optional[time] = None
    delivery_address: Optional[str] = None
    is_active: Optional[bool] = None


class DeliveryScheduleRead(DeliveryScheduleBase):
    id: int
    customer_id: int
    travel_time_minutes: Optional[int] = None

    class Config:
        from_attributes = True


class CustomerRead(CustomerBase):
    id: int
    phone: Optional[str] = None
    allergies: Optional[List[str]] = None
    status: CustomerStatus
    is_active: bool
    created_at: Optional[datetime] = None
    delivery_schedules: List[DeliveryScheduleRead] = []

    class Config:
        from_attributes = True
