from datetime import date
from typing import Optional

from pydantic import BaseModel

from mealops.models.customer import MealType


class MenuUpsert(BaseModel):
    menu_date: date
    meal_type: MealType
    protein_recipe_id: Optional[int] = None
    carb_recipe_id: Optional[int] = None
    vegetable_recipe_id: Optional[int] = None
    salad_recipe_id: Optional[int] = None
    sauce_recipe_id: Optional[int] = None


class RecipeRef(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class MenuRead(MenuUpsert):
    id: int
    protein_recipe: Optional[RecipeRef] = None
    carb_recipe: Optional[RecipeRef] = None
    vegetable_recipe: Optional[RecipeRef] = None
    salad_recipe: Optional[RecipeRef] = None
    sauce_recipe: Optional[RecipeRef] = None

    class Config:
        from_attributes = True
