import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mealops.api.router import api_router
from mealops.core import init_database
from mealops.core.config import settings
from mealops.core.errors import register_exception_handlers

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="MealOps - meal-kit kitchen operations")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    await init_database()
    logger.info("Приложение запущено")


@app.get("/")
async def root():
    return {
        "app": "MealOps",
        "message": "Meal-kit kitchen operations API",
        "docs": "/docs",
    }
