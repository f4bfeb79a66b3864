import enum
from sqlalchemy import Column, Integer, String, Enum, DateTime
from mealops.core.base import Base
from datetime import datetime

class RoleEnum(str, enum.Enum):
    admin = "admin"
    ops = "ops"

class StaffUser(Base):
    """Сотрудник кухни/офиса с доступом к API"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=True)
    password = Column(String, nullable=False)
    role = Column(Enum(RoleEnum), nullable=False, default=RoleEnum.ops)
    refresh_token = Column(String, nullable=True)
    refresh_token_expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
