from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel

from mealops.models.customer import MealType


class HistoryRead(BaseModel):
    id: int
    customer_id: Optional[int] = None
    customer_name: str
    order_date: date
    meal_type: MealType
    delivery_time: Optional[time] = None
    pickup_time: Optional[time] = None
    delivery_address: Optional[str] = None

    protein_name: Optional[str] = None
    protein_quantity: float = 0
    carb_name: Optional[str] = None
    carb_quantity: float = 0
    vegetable_name: Optional[str] = None
    vegetable_quantity: float = 0
    salad_name: Optional[str] = None
    salad_quantity: float = 0
    sauce_name: Optional[str] = None
    sauce_quantity: float = 0

    target_kcal: float = 0
    target_protein: float = 0
    target_carbs: float = 0
    target_fat: float = 0
    delivered_kcal: float = 0
    delivered_protein: float = 0
    delivered_carbs: float = 0
    delivered_fat: float = 0

    kitchen_status: str
    delivery_status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ArchiveRequest(BaseModel):
    order_id: int


class ArchiveResultRead(BaseModel):
    order_id: int
    status: str
    reason: Optional[str] = None
    history_id: Optional[int] = None

    class Config:
        from_attributes = True
