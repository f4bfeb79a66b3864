import logging

from sqlalchemy import select

from mealops.core.base import Base
from mealops.core.config import settings
from mealops.core.db import engine, AsyncSessionLocal

logger = logging.getLogger(__name__)


async def init_database():
    """Инициализация базы данных"""
    # Регистрируем все модели в metadata до create_all
    import mealops.models  # noqa: F401

    async with engine.begin() as conn:
        # Удаляем все таблицы если RESET_DATABASE=true
        if settings.RESET_DATABASE:
            logger.warning("RESET_DATABASE=true - пересоздаем БД")
            await conn.run_sync(Base.metadata.drop_all)

        # Создаем все таблицы
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Таблицы БД созданы/проверены")

    async with AsyncSessionLocal() as session:
        await seed_defaults(session)


async def seed_defaults(session):
    """Строка глобальных настроек и первый администратор."""
    from mealops.models.settings import GlobalSettings
    from mealops.models.user import StaffUser, RoleEnum
    from mealops.services.auth_service import auth_service

    if await session.get(GlobalSettings, GlobalSettings.SINGLETON_ID) is None:
        session.add(GlobalSettings(id=GlobalSettings.SINGLETON_ID))
        logger.info("Созданы глобальные настройки порций по умолчанию")

    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        result = await session.execute(
            select(StaffUser).where(StaffUser.email == settings.ADMIN_EMAIL)
        )
        if result.scalar_one_or_none() is None:
            session.add(StaffUser(
                email=settings.ADMIN_EMAIL,
                name="Admin",
                password=auth_service.hash_password(settings.ADMIN_PASSWORD),
                role=RoleEnum.admin,
            ))
            logger.info("Создан администратор %s", settings.ADMIN_EMAIL)

    await session.commit()
