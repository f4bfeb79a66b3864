import enum
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Time, Enum, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mealops.core.base import Base
from mealops.models.customer import MealType


class OrderStatus(str, enum.Enum):
    pending = "pending"
    preparing = "preparing"
    ready = "ready"
    delivered = "delivered"
    cancelled = "cancelled"


class Order(Base):
    """Конкретный заказ клиента на дату и приём пищи"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    order_date = Column(Date, nullable=False, index=True)
    meal_type = Column(Enum(MealType), nullable=False)

    protein_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    protein_amount_gr = Column(Float, nullable=True)
    carb_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    carb_amount_gr = Column(Float, nullable=True)
    vegetable_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    vegetable_amount_gr = Column(Float, nullable=True)
    salad_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    salad_amount_gr = Column(Float, nullable=True)
    sauce_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    sauce_amount_gr = Column(Float, nullable=True)

    delivery_address = Column(String, nullable=True)
    delivery_time = Column(Time, nullable=True)

    # Правки от курьера или клиента поверх плана
    modified_delivery_address = Column(String, nullable=True)
    modified_delivery_time = Column(Time, nullable=True)
    modified_protein_name = Column(String, nullable=True)
    modified_carb_name = Column(String, nullable=True)

    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.pending)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", lazy="selectin")
    protein_recipe = relationship("Recipe", foreign_keys=[protein_recipe_id], lazy="selectin")
    carb_recipe = relationship("Recipe", foreign_keys=[carb_recipe_id], lazy="selectin")
    vegetable_recipe = relationship("Recipe", foreign_keys=[vegetable_recipe_id], lazy="selectin")
    salad_recipe = relationship("Recipe", foreign_keys=[salad_recipe_id], lazy="selectin")
    sauce_recipe = relationship("Recipe", foreign_keys=[sauce_recipe_id], lazy="selectin")

    __table_args__ = (
        UniqueConstraint("customer_id", "order_date", "meal_type", name="uq_orders_customer_date_meal"),
    )

    @property
    def effective_address(self):
        return self.modified_delivery_address or self.delivery_address

    @property
    def effective_time(self):
        return self.modified_delivery_time or self.delivery_time

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.cancelled
