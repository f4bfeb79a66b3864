import enum
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Enum, JSON, Text, Index
from sqlalchemy.sql import func
from mealops.core.base import Base


class RecipeCategory(str, enum.Enum):
    protein = "protein"
    carbohydrate = "carbohydrate"
    vegetable = "vegetable"
    salad = "salad"
    marinade = "marinade"
    dressing = "dressing"


# Категории-приправы: входят в себестоимость, но не в КБЖУ
FLAVORING_CATEGORIES = frozenset({RecipeCategory.marinade, RecipeCategory.dressing})


class Recipe(Base):
    """Каталог рецептов: пищевая ценность и стоимость на 100 грамм"""
    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    category = Column(Enum(RecipeCategory), nullable=False)
    allergens = Column(JSON, default=list)
    notes = Column(Text, nullable=True)

    # КБЖУ на 100 грамм
    kcal_per_100g = Column(Float, nullable=False, default=0)
    protein_per_100g = Column(Float, nullable=False, default=0)
    carb_per_100g = Column(Float, nullable=False, default=0)
    fat_per_100g = Column(Float, nullable=False, default=0)
    cost_per_100g = Column(Float, nullable=False, default=0)

    # Интеграция с ERP
    price_per_kg = Column(Float, nullable=True)
    erp_external_id = Column(String(100), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_recipes_name_unique", "name", unique=True),
        Index("idx_recipes_category", "category"),
    )
