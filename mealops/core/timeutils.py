from datetime import date, datetime
from zoneinfo import ZoneInfo

from mealops.core.config import settings


def local_now() -> datetime:
    """Текущее время кухни без tzinfo (в БД время доставки хранится без зоны)."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()
