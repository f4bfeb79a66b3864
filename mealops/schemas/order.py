from datetime import date, time
from typing import List, Optional

from pydantic import BaseModel

from mealops.models.customer import MealType
from mealops.models.order import OrderStatus


class OrderRead(BaseModel):
    id: int
    customer_id: int
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    order_date: date
    meal_type: MealType
    status: OrderStatus
    delivery_address: Optional[str] = None
    delivery_time: Optional[time] = None
    notes: Optional[str] = None

    protein_recipe_id: Optional[int] = None
    protein_name: Optional[str] = None
    protein_amount_gr: Optional[float] = None
    carb_recipe_id: Optional[int] = None
    carb_name: Optional[str] = None
    carb_amount_gr: Optional[float] = None
    vegetable_recipe_id: Optional[int] = None
    vegetable_name: Optional[str] = None
    vegetable_amount_gr: Optional[float] = None
    salad_recipe_id: Optional[int] = None
    salad_name: Optional[str] = None
    salad_amount_gr: Optional[float] = None
    sauce_recipe_id: Optional[int] = None
    sauce_name: Optional[str] = None
    sauce_amount_gr: Optional[float] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class MaterializeRequest(BaseModel):
    order_date: date
    meal_type: Optional[MealType] = None


class MaterializationItemRead(BaseModel):
    customer_id: int
    customer_name: str
    meal_type: MealType
    status: str
    reason: Optional[str] = None
    order_id: Optional[int] = None


class MaterializationReportRead(BaseModel):
    order_date: date
    day_of_week: int
    created: int
    skipped: int
    items: List[MaterializationItemRead]

    class Config:
        from_attributes = True


class ProductionLine(BaseModel):
    component: str
    recipe_name: str
    total_grams: float
    portions: int


class ProductionSummary(BaseModel):
    order_date: date
    meal_type: MealType
    orders: int
    items: List[ProductionLine]
