from sqlalchemy.ext.asyncio import AsyncSession

from mealops.models.settings import GlobalSettings
from mealops.services.nutrition_calculator import PortionDefaults


class SettingsRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_portion_defaults(self) -> PortionDefaults:
        """Загружается один раз на операцию и передаётся в расчёты явно."""
        row = await self.db.get(GlobalSettings, GlobalSettings.SINGLETON_ID)
        return PortionDefaults.from_model(row)

    async def update_portion_defaults(self, defaults: PortionDefaults) -> PortionDefaults:
        row = await self.db.get(GlobalSettings, GlobalSettings.SINGLETON_ID)
        if row is None:
            row = GlobalSettings(id=GlobalSettings.SINGLETON_ID)
            self.db.add(row)
        row.vegetables_amount = defaults.vegetables_amount
        row.salad_amount = defaults.salad_amount
        row.salad_dressing_amount = defaults.salad_dressing_amount
        await self.db.commit()
        return defaults
