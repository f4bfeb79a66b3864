from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class PrepItemCreate(BaseModel):
    recipe_id: int
    total_weight_gr: float = Field(..., gt=0)
    servings: Optional[int] = Field(None, ge=1)


class PrepItemRead(PrepItemCreate):
    id: int
    recipe_name: Optional[str] = None

    class Config:
        from_attributes = True


class PrepSessionCreate(BaseModel):
    title: str = Field(..., min_length=1)
    date: date
    notes: Optional[str] = None
    items: List[PrepItemCreate] = []


class PrepSessionRead(BaseModel):
    id: int
    title: str
    date: date
    notes: Optional[str] = None
    created_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    items: List[PrepItemRead] = []

    class Config:
        from_attributes = True


class MacroTotalsRead(BaseModel):
    kcal: float
    protein: float
    carb: float
    fat: float
    cost: float
    weight_gr: float

    class Config:
        from_attributes = True


class PrepSummaryRead(BaseModel):
    session_id: int
    totals_by_category: Dict[str, MacroTotalsRead]
    grand_totals: MacroTotalsRead
