from sqlalchemy import Column, Integer, Date, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mealops.core.base import Base
from mealops.models.customer import MealType


class MonthlyMenu(Base):
    """Меню на дату и приём пищи: до пяти рецептов"""
    __tablename__ = "monthly_menu"

    id = Column(Integer, primary_key=True)
    menu_date = Column(Date, nullable=False, index=True)
    meal_type = Column(Enum(MealType), nullable=False)
    protein_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    carb_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    vegetable_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    salad_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    sauce_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    protein_recipe = relationship("Recipe", foreign_keys=[protein_recipe_id], lazy="selectin")
    carb_recipe = relationship("Recipe", foreign_keys=[carb_recipe_id], lazy="selectin")
    vegetable_recipe = relationship("Recipe", foreign_keys=[vegetable_recipe_id], lazy="selectin")
    salad_recipe = relationship("Recipe", foreign_keys=[salad_recipe_id], lazy="selectin")
    sauce_recipe = relationship("Recipe", foreign_keys=[sauce_recipe_id], lazy="selectin")

    __table_args__ = (
        UniqueConstraint("menu_date", "meal_type", name="uq_monthly_menu_date_meal"),
    )
