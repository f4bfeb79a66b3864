"""
Модульные тесты времени в пути (Google Distance Matrix).

Покрываемые сценарии:
- минуты с округлением вверх, приоритет duration_in_traffic
- время выдачи = путь + подготовка курьера
- ошибки API и маршрута -> RouteNotFound, сеть -> UpstreamError
- пересчёт всех расписаний: ошибка одного адреса не останавливает остальные
"""

import pytest
import httpx
from unittest.mock import AsyncMock
from sqlalchemy.exc import OperationalError

from mealops.core.errors import RouteNotFound, UpstreamError
from mealops.repositories.customer_repository import CustomerRepository
from mealops.services.integrations.travel_time import (
    DistanceMatrixClient,
    TravelTimeService,
    travel_minutes,
)
from tests.conftest import make_schedule

pytestmark = pytest.mark.unit

MAPS_URL = "https://maps.test/distancematrix/json"


def route(seconds, traffic_seconds=None, distance="5,2 km", duration="14 minutos"):
    element = {
        "status": "OK",
        "distance": {"text": distance, "value": 5200},
        "duration": {"text": duration, "value": seconds},
    }
    if traffic_seconds is not None:
        element["duration_in_traffic"] = {"text": "", "value": traffic_seconds}
    return {"status": "OK", "rows": [{"elements": [element]}]}


def make_client(handler, prep_minutes=10) -> DistanceMatrixClient:
    return DistanceMatrixClient(
        "maps-key",
        origin="Rua Clodomiro Amazonas, 134",
        prep_minutes=prep_minutes,
        url=MAPS_URL,
        transport=httpx.MockTransport(handler),
    )


def test_travel_minutes_rounds_up_and_prefers_traffic():
    assert travel_minutes({"duration": {"value": 841}}) == 15
    assert travel_minutes({"duration": {"value": 600}}) == 10
    assert travel_minutes({"duration": {"value": 600}, "duration_in_traffic": {"value": 1201}}) == 21


@pytest.mark.asyncio
async def test_travel_time_adds_driver_prep():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=route(840, traffic_seconds=900))

    estimate = await make_client(handler).travel_time("Rua A, 10, Centro, Campinas - SP")

    assert estimate.travel_time_minutes == 15
    assert estimate.pickup_time_minutes == 25
    assert estimate.distance == "5,2 km"
    params = seen[0].url.params
    assert params["origins"] == "Rua Clodomiro Amazonas, 134"
    assert params["destinations"] == "Rua A, 10, Centro, Campinas - SP"
    assert params["mode"] == "driving"
    assert params["key"] == "maps-key"


@pytest.mark.asyncio
async def test_travel_time_api_status_error():
    client = make_client(lambda request: httpx.Response(200, json={"status": "REQUEST_DENIED"}))

    with pytest.raises(RouteNotFound) as exc_info:
        await client.travel_time("Rua A, 10")
    assert "REQUEST_DENIED" in exc_info.value.message


@pytest.mark.asyncio
async def test_travel_time_route_not_found():
    body = {"status": "OK", "rows": [{"elements": [{"status": "ZERO_RESULTS"}]}]}
    client = make_client(lambda request: httpx.Response(200, json=body))

    with pytest.raises(RouteNotFound):
        await client.travel_time("Lugar Nenhum")


@pytest.mark.asyncio
async def test_travel_time_network_error_raises_upstream():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(UpstreamError) as exc_info:
        await make_client(handler).travel_time("Rua A, 10")
    assert exc_info.value.service == "maps"


@pytest.mark.asyncio
async def test_recalculate_all_continues_after_failures():
    schedules = [
        make_schedule(id=1, delivery_address="Rua A, 10"),
        make_schedule(id=2, delivery_address="Lugar Nenhum"),
        make_schedule(id=3, delivery_address="Rua C, 30"),
    ]
    customers = AsyncMock(spec=CustomerRepository)
    customers.list_schedules_with_address.return_value = schedules

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["destinations"] == "Lugar Nenhum":
            return httpx.Response(200, json={"status": "OK", "rows": [{"elements": [{"status": "NOT_FOUND"}]}]})
        return httpx.Response(200, json=route(1250))

    report = await TravelTimeService(customers, make_client(handler)).recalculate_all()

    assert report.total_schedules == 3
    assert report.success_count == 2
    assert report.error_count == 1
    assert report.errors[0].startswith("Schedule 2:")
    assert [s.travel_time_minutes for s in schedules] == [21, None, 21]
    assert customers.save_schedule.await_count == 2


@pytest.mark.asyncio
async def test_recalculate_all_rolls_back_failed_save():
    schedules = [make_schedule(id=1, delivery_address="Rua A, 10"), make_schedule(id=2, delivery_address="Rua B, 20")]
    customers = AsyncMock(spec=CustomerRepository)
    customers.list_schedules_with_address.return_value = schedules
    customers.save_schedule.side_effect = [OperationalError("UPDATE", {}, Exception("db down")), schedules[1]]

    report = await TravelTimeService(
        customers, make_client(lambda request: httpx.Response(200, json=route(600)))
    ).recalculate_all()

    assert report.success_count == 1
    assert report.errors == ["Failed to update schedule 1"]
    customers.rollback.assert_awaited_once()
