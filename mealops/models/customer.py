import enum
from sqlalchemy import Column, Integer, String, Float, Boolean, Date, DateTime, Time, Enum, JSON, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mealops.core.base import Base


class CustomerStatus(str, enum.Enum):
    pending_approval = "pending_approval"
    active = "active"


class MealType(str, enum.Enum):
    lunch = "lunch"
    dinner = "dinner"


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    phone = Column(String(32), nullable=True, index=True)
    whatsapp = Column(String(32), nullable=True)
    email = Column(String, nullable=True)
    birth_date = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    main_goal = Column(String, nullable=True)
    allergies = Column(JSON, default=list)
    dietary_notes = Column(Text, nullable=True)
    nutritionist_name = Column(String, nullable=True)

    # Целевые макросы на приём пищи, граммы
    lunch_protein = Column(Float, nullable=True)
    lunch_carbs = Column(Float, nullable=True)
    lunch_fat = Column(Float, nullable=True)
    dinner_protein = Column(Float, nullable=True)
    dinner_carbs = Column(Float, nullable=True)
    dinner_fat = Column(Float, nullable=True)

    status = Column(Enum(CustomerStatus), nullable=False, default=CustomerStatus.pending_approval)
    is_active = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    delivery_schedules = relationship(
        "DeliverySchedule", back_populates="customer", cascade="all, delete-orphan", lazy="selectin"
    )

    def macro_targets(self, meal_type: MealType):
        """(белки, углеводы, жиры) для обеда или ужина"""
        if meal_type == MealType.lunch:
            return self.lunch_protein, self.lunch_carbs, self.lunch_fat
        return self.dinner_protein, self.dinner_carbs, self.dinner_fat


class DeliverySchedule(Base):
    """Еженедельное расписание доставки: день недели (1=пн..7=вс) × приём пищи"""
    __tablename__ = "delivery_schedules"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    meal_type = Column(Enum(MealType), nullable=False)
    delivery_time = Column(Time, nullable=True)
    delivery_address = Column(String, nullable=True)
    # Время в пути от кухни, минуты (по Distance Matrix)
    travel_time_minutes = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    customer = relationship("Customer", back_populates="delivery_schedules")

    @property
    def is_complete(self) -> bool:
        return bool(self.delivery_time) and bool(self.delivery_address)
