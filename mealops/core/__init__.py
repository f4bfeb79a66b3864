from mealops.core.config import settings
from mealops.core.base import Base
from mealops.core.db import engine, get_db
from mealops.core.database import init_database

__all__ = ["settings", "engine", "Base", "get_db", "init_database"]
