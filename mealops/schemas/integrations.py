from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from mealops.models.customer import MealType
from mealops.models.order import OrderStatus


class SlotRequest(BaseModel):
    order_date: date
    meal_type: MealType


class ErpOrderRequest(BaseModel):
    order_id: int


class ChatWebhookPayload(BaseModel):
    phone: str
    custom_fields: Dict[str, Optional[str]] = {}
    order_date: Optional[date] = None


class ChatWebhookResponse(BaseModel):
    order_id: int
    updated_fields: List[str]


class CustomerContact(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    whatsapp: Optional[str] = None


class DeliveryInfo(BaseModel):
    address: Optional[str] = None
    time: str = ""


class CustomerOrderResponse(BaseModel):
    order_date: date
    meal_type: MealType
    day_of_week: int
    customer: CustomerContact
    delivery: DeliveryInfo
    meal: Dict[str, Optional[str]]
    order_id: Optional[int] = None
    status: OrderStatus


class TravelTimeRequest(BaseModel):
    destination: str = Field(..., min_length=1)


class TravelTimeResponse(BaseModel):
    travel_time_minutes: int
    pickup_time_minutes: int
    distance: str
    duration: str


class TravelTimeRecalculation(BaseModel):
    total_schedules: int
    success_count: int
    error_count: int
    errors: List[str] = []
