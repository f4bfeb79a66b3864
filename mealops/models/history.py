from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Time, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from mealops.core.base import Base
from mealops.models.customer import MealType


class OrderHistory(Base):
    """
    Неизменяемый снимок выполненного/отменённого заказа.
    Названия рецептов хранятся строками и переживают удаление и переименование.
    """
    __tablename__ = "order_history"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    customer_name = Column(String, nullable=False)
    order_date = Column(Date, nullable=False, index=True)
    meal_type = Column(Enum(MealType), nullable=False)
    delivery_time = Column(Time, nullable=True)
    pickup_time = Column(Time, nullable=True)
    delivery_address = Column(String, nullable=True)

    protein_name = Column(String, nullable=True)
    protein_quantity = Column(Float, default=0)
    carb_name = Column(String, nullable=True)
    carb_quantity = Column(Float, default=0)
    vegetable_name = Column(String, nullable=True)
    vegetable_quantity = Column(Float, default=0)
    salad_name = Column(String, nullable=True)
    salad_quantity = Column(Float, default=0)
    sauce_name = Column(String, nullable=True)
    sauce_quantity = Column(Float, default=0)

    target_kcal = Column(Float, default=0)
    target_protein = Column(Float, default=0)
    target_carbs = Column(Float, default=0)
    target_fat = Column(Float, default=0)
    delivered_kcal = Column(Float, default=0)
    delivered_protein = Column(Float, default=0)
    delivered_carbs = Column(Float, default=0)
    delivered_fat = Column(Float, default=0)

    kitchen_status = Column(String(20), nullable=False)
    delivery_status = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("customer_id", "order_date", "meal_type", name="uq_order_history_customer_date_meal"),
    )
