from pydantic import BaseModel, Field


class PortionDefaultsSchema(BaseModel):
    """Порции по умолчанию, граммы; все значения строго больше нуля"""
    vegetables_amount: float = Field(..., gt=0)
    salad_amount: float = Field(..., gt=0)
    salad_dressing_amount: float = Field(..., gt=0)

    class Config:
        from_attributes = True
