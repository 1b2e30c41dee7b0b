from __future__ import annotations

from datetime import date

import aiohttp
import pytest

from ridewise.backend.api import BackendApi
from ridewise.backend.const import RETRY_AFTER_HEADER
from ridewise.exceptions import (
    ApiError,
    AuthError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from ridewise.models import DemandLevel, TimeSlot


class _FakeResponse:
    def __init__(
        self,
        *,
        status: int = 200,
        headers: dict[str, str] | None = None,
        json_data: object | None = None,
        text_data: str = "",
        json_error: Exception | None = None,
    ) -> None:
        self.status = status
        self.headers = headers or {}
        self._json_data = json_data
        self._text_data = text_data
        self._json_error = json_error

    async def json(self) -> object:
        if self._json_error is not None:
            raise self._json_error
        return self._json_data

    async def text(self) -> str:
        return self._text_data


class _FakeRequestContext:
    def __init__(self, response: _FakeResponse) -> None:
        self._response = response

    async def __aenter__(self) -> _FakeResponse:
        return self._response

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class _SequenceSession:
    def __init__(self, responses: list[object]) -> None:
        self._responses = responses
        self.calls = 0
        self.requests: list[dict[str, object]] = []

    def request(self, method: str, url: str, **kwargs) -> _FakeRequestContext:
        self.requests.append({"method": method, "url": url, "kwargs": kwargs})
        self.calls += 1
        response = self._responses[self.calls - 1]
        if isinstance(response, Exception):
            raise response
        return _FakeRequestContext(response)


def _api(session: object, *, retry_count: int = 0) -> BackendApi:
    return BackendApi(
        session,  # type: ignore[arg-type]
        base_url="https://example/",
        retry_count=retry_count,
    )


STATION = {
    "station_id": "S1",
    "station_name": "Central",
    "lat": 12.97,
    "lng": 77.59,
    "available_bikes": 4,
    "demand_level": "High",
}


def test_build_url_uses_api_prefix() -> None:
    api = _api(_SequenceSession([]))
    assert api._build_url("/stations") == "https://example/api/stations"
    assert api._build_url("reserve") == "https://example/api/reserve"
    with pytest.raises(ValidationError):
        api._build_url("https://other/absolute")


def test_default_base_url() -> None:
    api = BackendApi(_SequenceSession([]))  # type: ignore[arg-type]
    assert api._build_url("/stations") == "http://localhost:5000/api/stations"


def test_empty_api_uri() -> None:
    api = BackendApi(_SequenceSession([]), base_url="https://example", api_uri="")  # type: ignore[arg-type]
    assert api._build_url("/stations") == "https://example/stations"


def test_requires_session() -> None:
    with pytest.raises(ValidationError):
        BackendApi(None)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_list_stations_maps_records() -> None:
    session = _SequenceSession([_FakeResponse(json_data=[STATION, "skip-me"])])
    stations = await _api(session).list_stations()

    assert len(stations) == 1
    station = stations[0]
    assert station.id == "S1"
    assert station.name == "Central"
    assert station.demand_level is DemandLevel.HIGH
    assert station.available_bikes == 4
    assert session.requests[0]["method"] == "GET"
    assert session.requests[0]["url"] == "https://example/api/stations"


@pytest.mark.asyncio
async def test_list_stations_rejects_non_list_payload() -> None:
    session = _SequenceSession([_FakeResponse(json_data={"stations": []})])
    with pytest.raises(ApiError):
        await _api(session).list_stations()


@pytest.mark.asyncio
async def test_get_retries_network_errors() -> None:
    session = _SequenceSession(
        [
            aiohttp.ClientError("boom"),
            _FakeResponse(json_data=[STATION]),
        ]
    )
    stations = await _api(session, retry_count=1).list_stations()
    assert [station.id for station in stations] == ["S1"]
    assert session.calls == 2


@pytest.mark.asyncio
async def test_post_is_not_retried() -> None:
    session = _SequenceSession([aiohttp.ClientError("boom"), _FakeResponse(json_data={})])
    with pytest.raises(NetworkError):
        await _api(session, retry_count=3).create_reservation(
            date=date(2025, 5, 4),
            time_slot=TimeSlot.MORNING,
            station_id="S1",
            demand_level=DemandLevel.LOW,
            user_email="rider@example.com",
        )
    assert session.calls == 1


@pytest.mark.asyncio
async def test_create_reservation_sends_payload_and_maps_response() -> None:
    session = _SequenceSession(
        [
            _FakeResponse(
                json_data={
                    "reservation_id": "R9",
                    "station": "Central",
                    "date": "2025-05-04",
                    "time_slot": "Night",
                    "price": 500,
                    "status": "Confirmed",
                }
            )
        ]
    )
    reservation = await _api(session).create_reservation(
        date=date(2025, 5, 4),
        time_slot=TimeSlot.NIGHT,
        station_id="S1",
        demand_level=DemandLevel.HIGH,
        user_email="rider@example.com",
    )

    request = session.requests[0]
    assert request["method"] == "POST"
    assert request["url"] == "https://example/api/reserve"
    assert request["kwargs"]["json"] == {
        "date": "2025-05-04",
        "time_slot": "Night",
        "station_id": "S1",
        "predicted_demand": "High",
        "user_email": "rider@example.com",
    }
    assert reservation.id == "R9"
    assert reservation.station_id == "S1"
    assert reservation.demand_level is DemandLevel.HIGH
    assert reservation.price == 500
    assert reservation.is_confirmed


@pytest.mark.asyncio
async def test_server_error_message_is_surfaced() -> None:
    session = _SequenceSession(
        [_FakeResponse(status=400, json_data={"error": "Station is fully booked"})]
    )
    with pytest.raises(ApiError) as excinfo:
        await _api(session).create_reservation(
            date=date(2025, 5, 4),
            time_slot=TimeSlot.MORNING,
            station_id="S1",
            demand_level=DemandLevel.LOW,
            user_email="rider@example.com",
        )
    assert excinfo.value.status == 400
    assert excinfo.value.user_message == "Station is fully booked"


@pytest.mark.asyncio
async def test_server_error_without_json_body() -> None:
    session = _SequenceSession([_FakeResponse(status=500, json_error=ValueError("no json"))])
    with pytest.raises(ApiError) as excinfo:
        await _api(session).list_stations()
    assert excinfo.value.status == 500
    assert excinfo.value.user_message is None


@pytest.mark.asyncio
async def test_status_mapping() -> None:
    session = _SequenceSession([_FakeResponse(status=401), _FakeResponse(status=404)])
    api = _api(session)
    with pytest.raises(AuthError):
        await api.list_stations()
    with pytest.raises(NotFoundError):
        await api.cancel_reservation("R1", "rider@example.com")


@pytest.mark.asyncio
async def test_invalid_json_raises_api_error() -> None:
    session = _SequenceSession([_FakeResponse(json_error=ValueError("bad"))])
    with pytest.raises(ApiError):
        await _api(session).list_stations()


@pytest.mark.asyncio
async def test_rate_limit_retries_get() -> None:
    session = _SequenceSession(
        [
            _FakeResponse(status=429, headers={RETRY_AFTER_HEADER: "0"}),
            _FakeResponse(json_data=[STATION]),
        ]
    )
    stations = await _api(session, retry_count=1).list_stations()
    assert len(stations) == 1
    assert session.calls == 2


@pytest.mark.asyncio
async def test_rate_limit_raises_for_put() -> None:
    session = _SequenceSession([_FakeResponse(status=429)])
    with pytest.raises(RateLimitError):
        await _api(session, retry_count=2).update_reservation(
            "R1",
            user_email="rider@example.com",
            date=date(2025, 5, 4),
            time_slot=TimeSlot.MORNING,
            station_id="S1",
        )


@pytest.mark.asyncio
async def test_list_reservations_sends_user_email() -> None:
    session = _SequenceSession(
        [
            _FakeResponse(
                json_data={
                    "reservations": [
                        {
                            "reservation_id": "R1",
                            "station_id": "S1",
                            "station": "Central",
                            "date": "2025-05-04",
                            "time_slot": "Morning",
                            "predicted_demand": "Low",
                            "price": 200,
                            "status": "Cancelled",
                        }
                    ]
                }
            )
        ]
    )
    reservations = await _api(session).list_reservations("rider@example.com")

    assert session.requests[0]["kwargs"]["params"] == {"user_email": "rider@example.com"}
    assert len(reservations) == 1
    assert reservations[0].status == "Cancelled"
    assert reservations[0].is_confirmed is False


@pytest.mark.asyncio
async def test_list_reservations_without_key_is_empty() -> None:
    session = _SequenceSession([_FakeResponse(json_data={})])
    assert await _api(session).list_reservations("rider@example.com") == []


@pytest.mark.asyncio
async def test_update_reservation_sends_partial_payload() -> None:
    session = _SequenceSession([_FakeResponse(text_data='{"message": "ok"}')])
    await _api(session).update_reservation(
        "R 1",
        user_email="rider@example.com",
        date=date(2025, 5, 5),
        time_slot=TimeSlot.EVENING,
        station_id="S2",
    )
    request = session.requests[0]
    assert request["method"] == "PUT"
    assert request["url"] == "https://example/api/reservations/R%201"
    assert request["kwargs"]["json"] == {
        "user_email": "rider@example.com",
        "date": "2025-05-05",
        "time_slot": "Evening",
        "station_id": "S2",
    }


@pytest.mark.asyncio
async def test_cancel_reservation_sends_delete() -> None:
    session = _SequenceSession([_FakeResponse()])
    await _api(session).cancel_reservation("R1", "rider@example.com")
    request = session.requests[0]
    assert request["method"] == "DELETE"
    assert request["url"] == "https://example/api/reservations/R1"
    assert request["kwargs"]["params"] == {"user_email": "rider@example.com"}


@pytest.mark.asyncio
async def test_cancel_reservation_requires_email() -> None:
    session = _SequenceSession([])
    with pytest.raises(ValidationError):
        await _api(session).cancel_reservation("R1", "")
    assert session.calls == 0
