from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from mealops.models.recipe import RecipeCategory


class RecipeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: RecipeCategory
    allergens: List[str] = []
    notes: Optional[str] = None
    kcal_per_100g: float = Field(0, ge=0)
    protein_per_100g: float = Field(0, ge=0)
    carb_per_100g: float = Field(0, ge=0)
    fat_per_100g: float = Field(0, ge=0)
    cost_per_100g: float = Field(0, ge=0)
    price_per_kg: Optional[float] = Field(None, ge=0)
    erp_external_id: Optional[str] = None
    is_active: bool = True


class RecipeCreate(RecipeBase):
    pass


class RecipeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[RecipeCategory] = None
    allergens: Optional[List[str]] = None
    notes: Optional[str] = None
    kcal_per_100g: Optional[float] = Field(None, ge=0)
    protein_per_100g: Optional[float] = Field(None, ge=0)
    carb_per_100g: Optional[float] = Field(None, ge=0)
    fat_per_100g: Optional[float] = Field(None, ge=0)
    cost_per_100g: Optional[float] = Field(None, ge=0)
    price_per_kg: Optional[float] = Field(None, ge=0)
    erp_external_id: Optional[str] = None
    is_active: Optional[bool] = None


class RecipeRead(RecipeBase):
    id: int
    allergens: Optional[List[str]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
