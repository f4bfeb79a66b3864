from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql://mealops_user:mealops_password@db:5432/mealops_db"
    SECRET_KEY: str = "SECRET_KEY_FOR_MEALOPS"
    # При продакшн/обычной разработке лучше не пересоздавать БД на каждом старте
    RESET_DATABASE: bool = False
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    REFRESH_SECRET_KEY: str = "SECRET_KEY_FOR_MEALOPS_refresh"

    # Первый администратор создаётся на старте, если задан
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    # "Сегодня" считаем в часовом поясе кухни
    TIMEZONE: str = "America/Sao_Paulo"
    LOG_LEVEL: str = "INFO"
    SQL_ECHO: bool = False
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    HTTP_TIMEOUT: float = 30.0
    PICKUP_OFFSET_MINUTES: int = 10

    # Google Sheets (маршруты курьеров)
    SHEETS_SPREADSHEET_ID: Optional[str] = None
    SHEETS_SERVICE_ACCOUNT_JSON: Optional[str] = None
    SHEETS_API_URL: str = "https://sheets.googleapis.com/v4/spreadsheets"
    SHEETS_SCOPE: str = "https://www.googleapis.com/auth/spreadsheets"
    SHEETS_EXPORT_LUNCH: str = "Almoço"
    SHEETS_EXPORT_DINNER: str = "Jantar"
    SHEETS_IMPORT_LUNCH: str = "Volta da Informação Almoço"
    SHEETS_IMPORT_DINNER: str = "Volta da Informação Jantar"

    # ERP кухни
    ERP_API_URL: str = "https://sistema.sischef.com/api-v2/webhook/integracao"
    ERP_API_TOKEN: Optional[str] = None

    # Чат-платформа
    CHAT_API_URL: str = "https://api.botconversa.com.br"
    CHAT_API_KEY: Optional[str] = None
    CHAT_WEBHOOK_SECRET: Optional[str] = None

    # Google Distance Matrix: время в пути от кухни до клиента
    GOOGLE_MAPS_API_KEY: Optional[str] = None
    DISTANCE_MATRIX_URL: str = "https://maps.googleapis.com/maps/api/distancematrix/json"
    KITCHEN_ADDRESS: str = "Rua Clodomiro Amazonas, 134"
    DRIVER_PREP_MINUTES: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

settings = Settings()
