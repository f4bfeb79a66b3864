from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mealops.core.base import Base


class PrepSession(Base):
    """Сессия заготовки: партия блюд, приготовленных за один раз"""
    __tablename__ = "prep_sessions"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship("PrepItem", back_populates="session", cascade="all, delete-orphan", lazy="selectin")


class PrepItem(Base):
    __tablename__ = "prep_items"

    id = Column(Integer, primary_key=True)
    prep_session_id = Column(Integer, ForeignKey("prep_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False)
    total_weight_gr = Column(Float, nullable=False)
    servings = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    session = relationship("PrepSession", back_populates="items")
    recipe = relationship("Recipe", lazy="selectin")

    @property
    def recipe_name(self):
        return self.recipe.name if self.recipe else None
