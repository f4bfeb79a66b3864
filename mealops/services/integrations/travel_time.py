"""
Время в пути от кухни до адреса доставки (Google Distance Matrix).

Курьер выезжает за travel + DRIVER_PREP_MINUTES до времени доставки.
Пересчёт по всем расписаниям идёт последовательно; ошибка по одному
адресу не останавливает остальные.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError

from mealops.core.config import settings
from mealops.core.errors import IntegrationNotConfigured, MealOpsError, RouteNotFound, UpstreamError
from mealops.repositories.customer_repository import CustomerRepository

logger = logging.getLogger(__name__)


@dataclass
class TravelEstimate:
    travel_time_minutes: int
    pickup_time_minutes: int
    distance: str
    duration: str


@dataclass
class RecalculationReport:
    total_schedules: int = 0
    success_count: int = 0
    error_count: int = 0
    errors: List[str] = field(default_factory=list)


def travel_minutes(element: dict) -> int:
    """Секунды в пути (с учётом пробок, если есть) -> минуты с округлением вверх"""
    seconds = (element.get("duration_in_traffic") or element["duration"])["value"]
    return math.ceil(seconds / 60)


class DistanceMatrixClient:
    def __init__(
        self,
        api_key: str,
        origin: str = settings.KITCHEN_ADDRESS,
        prep_minutes: int = settings.DRIVER_PREP_MINUTES,
        url: str = settings.DISTANCE_MATRIX_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = settings.HTTP_TIMEOUT,
    ):
        self.api_key = api_key
        self.origin = origin
        self.prep_minutes = prep_minutes
        self.url = url
        self.transport = transport
        self.timeout = timeout

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "DistanceMatrixClient":
        if not settings.GOOGLE_MAPS_API_KEY:
            raise IntegrationNotConfigured("GOOGLE_MAPS_API_KEY is not configured")
        return cls(settings.GOOGLE_MAPS_API_KEY, transport=transport)

    def session(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def estimate(self, client: httpx.AsyncClient, destination: str) -> TravelEstimate:
        params = {
            "origins": self.origin,
            "destinations": destination,
            "mode": "driving",
            "departure_time": "now",
            "traffic_model": "best_guess",
            "key": self.api_key,
        }
        try:
            response = await client.get(self.url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Distance Matrix недоступен: {e}")
            raise UpstreamError("maps", f"Distance Matrix request failed: {e}") from e
        if response.is_error:
            raise UpstreamError("maps", "Distance Matrix request failed", response.status_code, response.text)

        data = response.json()
        if data.get("status") != "OK":
            raise RouteNotFound(f"Google Maps API error: {data.get('status')}")

        rows = data.get("rows") or [{}]
        elements = rows[0].get("elements") or [{}]
        element = elements[0]
        if element.get("status") != "OK":
            raise RouteNotFound(f"Could not calculate route to '{destination}'")

        minutes = travel_minutes(element)
        return TravelEstimate(
            travel_time_minutes=minutes,
            pickup_time_minutes=minutes + self.prep_minutes,
            distance=element["distance"]["text"],
            duration=element["duration"]["text"],
        )

    async def travel_time(self, destination: str) -> TravelEstimate:
        async with self.session() as client:
            return await self.estimate(client, destination)


class TravelTimeService:
    def __init__(self, customers: CustomerRepository, client: DistanceMatrixClient):
        self.customers = customers
        self.client = client

    async def recalculate_all(self) -> RecalculationReport:
        schedules = await self.customers.list_schedules_with_address()
        report = RecalculationReport(total_schedules=len(schedules))
        if not schedules:
            return report

        async with self.client.session() as client:
            for schedule in schedules:
                try:
                    estimate = await self.client.estimate(client, schedule.delivery_address)
                    schedule.travel_time_minutes = estimate.travel_time_minutes
                    await self.customers.save_schedule(schedule)
                    report.success_count += 1
                except MealOpsError as e:
                    report.error_count += 1
                    report.errors.append(f"Schedule {schedule.id}: {e.message}")
                    logger.warning(f"Время в пути для расписания {schedule.id} не рассчитано: {e.message}")
                except SQLAlchemyError as e:
                    await self.customers.rollback()
                    report.error_count += 1
                    report.errors.append(f"Failed to update schedule {schedule.id}")
                    logger.error(f"Ошибка сохранения расписания {schedule.id}: {e}")

        logger.info(
            f"Время в пути пересчитано: {report.success_count} из {report.total_schedules}, "
            f"ошибок {report.error_count}"
        )
        return report
