"""
Доменные ошибки.

Репозитории и сервисы бросают типизированные исключения, а не HTTPException:
вид нарушения ограничения известен из самой операции, текст ошибки БД
не разбирается. Преобразование в HTTP-ответы: в register_exception_handlers.
"""
import enum
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class ConstraintKind(str, enum.Enum):
    duplicate_recipe_name = "duplicate_recipe_name"
    recipe_in_use = "recipe_in_use"
    duplicate_phone = "duplicate_phone"
    duplicate_menu_slot = "duplicate_menu_slot"
    duplicate_order = "duplicate_order"
    duplicate_history = "duplicate_history"


class MealOpsError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class NotFoundError(MealOpsError):
    status_code = 404


class ConstraintViolation(MealOpsError):
    status_code = 409

    def __init__(self, kind: ConstraintKind, message: str):
        super().__init__(message)
        self.kind = kind

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "kind": self.kind.value}


class InvalidTransition(MealOpsError):
    status_code = 400


class NotSendableError(MealOpsError):
    """Заказ нельзя отправить в ERP: не хватает данных."""
    status_code = 400

    def __init__(self, message: str, missing: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.missing = missing or []

    def to_dict(self) -> Dict[str, Any]:
        data = {"error": self.message}
        if self.missing:
            data["missing_recipes"] = self.missing
        return data


class IntegrationNotConfigured(MealOpsError):
    status_code = 500


class RouteNotFound(MealOpsError):
    """Distance Matrix не построил маршрут до адреса."""
    status_code = 400


class UpstreamError(MealOpsError):
    """Внешний сервис ответил не-2xx."""
    status_code = 500

    def __init__(self, service: str, message: str, status: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.service = service
        self.status = status
        self.body = body

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "service": self.service,
            "status": self.status,
            "details": self.body,
        }


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(MealOpsError)
    async def mealops_error_handler(request: Request, exc: MealOpsError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
