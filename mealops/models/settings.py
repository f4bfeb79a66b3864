from sqlalchemy import Column, Integer, Float, DateTime
from sqlalchemy.sql import func
from mealops.core.base import Base


class GlobalSettings(Base):
    """Единственная строка с порциями по умолчанию (граммы)"""
    __tablename__ = "global_settings"

    SINGLETON_ID = 1

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    vegetables_amount = Column(Float, nullable=False, default=100)
    salad_amount = Column(Float, nullable=False, default=100)
    salad_dressing_amount = Column(Float, nullable=False, default=30)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
