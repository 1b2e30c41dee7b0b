"""RideWise backend API client."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any
from urllib.parse import quote

import aiohttp

from ..exceptions import (
    ApiError,
    AuthError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from ..models import DemandLevel, Reservation, Station, TimeSlot
from ..util import format_date, mask_email, parse_date, require_id
from .const import (
    DEFAULT_API_URI,
    DEFAULT_BASE_URL,
    DEFAULT_HEADERS,
    RESERVATIONS_ENDPOINT,
    RESERVE_ENDPOINT,
    RETRY_AFTER_HEADER,
    STATIONS_ENDPOINT,
)

_LOGGER = logging.getLogger(__name__)
_DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30)


class BackendApi:
    """Thin client for the RideWise reservation backend.

    Every call returns mapped models or raises a library exception; no state
    is kept between calls apart from the connection settings.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        base_url: str | None = None,
        api_uri: str | None = None,
        timeout: aiohttp.ClientTimeout | None = None,
        retry_count: int = 0,
    ) -> None:
        if session is None:
            raise ValidationError("Session is required.")
        self._session = session
        self._base_url = self._normalize_base_url(
            base_url if base_url is not None else DEFAULT_BASE_URL
        )
        self._api_uri = self._normalize_api_uri(api_uri if api_uri is not None else DEFAULT_API_URI)
        self._timeout = timeout or _DEFAULT_TIMEOUT
        self._retry_count = max(0, retry_count)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def list_stations(self) -> list[Station]:
        """Return all stations with their live availability and demand."""
        data = await self._request_json("GET", STATIONS_ENDPOINT)
        return self._map_station_list(data)

    async def create_reservation(
        self,
        *,
        date: date,
        time_slot: TimeSlot,
        station_id: str,
        demand_level: DemandLevel | None,
        user_email: str | None,
    ) -> Reservation:
        """Book a bike and return the server-confirmed reservation."""
        payload = {
            "date": format_date(date),
            "time_slot": time_slot.value,
            "station_id": station_id,
            "predicted_demand": demand_level.value if demand_level is not None else None,
            "user_email": user_email,
        }
        data = await self._request_json("POST", RESERVE_ENDPOINT, json=payload)
        return self._map_reservation(data, station_id=station_id, demand_level=demand_level)

    async def list_reservations(self, user_email: str) -> list[Reservation]:
        """Return every reservation belonging to the user."""
        email = require_id(user_email, "user_email")
        data = await self._request_json(
            "GET",
            RESERVATIONS_ENDPOINT,
            params={"user_email": email},
        )
        if not isinstance(data, dict):
            raise ApiError("Backend response included invalid reservations.")
        return self._map_reservation_list(data.get("reservations"))

    async def update_reservation(
        self,
        reservation_id: str,
        *,
        user_email: str,
        date: date,
        time_slot: TimeSlot,
        station_id: str,
    ) -> None:
        """Move a reservation; price and demand are recomputed by the backend."""
        reservation_id_value = require_id(reservation_id, "reservation_id")
        payload = {
            "user_email": require_id(user_email, "user_email"),
            "date": format_date(date),
            "time_slot": time_slot.value,
            "station_id": station_id,
        }
        await self._request_text(
            "PUT",
            f"{RESERVATIONS_ENDPOINT}/{quote(reservation_id_value, safe='')}",
            json=payload,
        )

    async def cancel_reservation(self, reservation_id: str, user_email: str) -> None:
        """Cancel a reservation."""
        reservation_id_value = require_id(reservation_id, "reservation_id")
        email = require_id(user_email, "user_email")
        _LOGGER.debug("Cancelling reservation %s for %s", reservation_id_value, mask_email(email))
        await self._request_text(
            "DELETE",
            f"{RESERVATIONS_ENDPOINT}/{quote(reservation_id_value, safe='')}",
            params={"user_email": email},
        )

    def _build_url(self, path: str) -> str:
        if not isinstance(path, str) or not path:
            raise ValidationError("Path must be a non-empty string.")
        if path.startswith("http://") or path.startswith("https://"):
            raise ValidationError("Use relative paths when building backend requests.")
        normalized_path = path if path.startswith("/") else f"/{path}"
        return f"{self._base_url}{self._api_uri}{normalized_path}"

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        url = self._build_url(path)
        return await self._request(method, url, expect_json=True, **kwargs)

    async def _request_text(self, method: str, path: str, **kwargs: Any) -> str:
        url = self._build_url(path)
        return await self._request(method, url, expect_json=False, **kwargs)

    async def _request(self, method: str, url: str, *, expect_json: bool, **kwargs: Any) -> Any:
        retries = self._retry_count if method.upper() == "GET" else 0
        attempts = retries + 1
        headers = {**DEFAULT_HEADERS, **kwargs.pop("headers", {})}
        last_error: Exception | None = None
        for attempt in range(attempts):
            _LOGGER.debug("%s %s (attempt %s/%s)", method, url, attempt + 1, attempts)
            try:
                async with self._session.request(
                    method,
                    url,
                    headers=headers,
                    timeout=self._timeout,
                    **kwargs,
                ) as response:
                    if response.status == 429:
                        await self._handle_rate_limit(response, method, attempt, attempts)
                        continue
                    await self._raise_for_status(response)
                    if expect_json:
                        try:
                            return await response.json()
                        except (aiohttp.ContentTypeError, ValueError) as exc:
                            raise ApiError("Response did not contain valid JSON.") from exc
                    return await response.text()
            except (aiohttp.ClientError, TimeoutError) as exc:
                last_error = exc
                if attempt >= attempts - 1:
                    raise NetworkError("Network request failed.") from exc
        if last_error is not None:
            raise NetworkError("Network request failed.") from last_error
        raise ApiError("Request failed.")

    async def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        if 200 <= response.status < 300:
            return
        message = await self._read_error_message(response)
        if response.status in (401, 403):
            raise AuthError("Authentication failed.", user_message=message)
        if response.status == 404:
            raise NotFoundError(
                "Backend resource was not found.",
                status=response.status,
                user_message=message,
            )
        raise ApiError(
            f"Backend request failed with status {response.status}.",
            status=response.status,
            user_message=message,
        )

    async def _read_error_message(self, response: aiohttp.ClientResponse) -> str | None:
        try:
            data = await response.json()
        except (aiohttp.ContentTypeError, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        error = data.get("error")
        if isinstance(error, str) and error.strip():
            return error.strip()
        return None

    async def _handle_rate_limit(
        self,
        response: aiohttp.ClientResponse,
        method: str,
        attempt: int,
        attempts: int,
    ) -> None:
        if method.upper() != "GET" or attempt >= attempts - 1:
            raise RateLimitError("Backend rate limit exceeded.", status=response.status)
        retry_after = response.headers.get(RETRY_AFTER_HEADER)
        if retry_after:
            try:
                delay = int(retry_after)
            except ValueError:
                delay = 0
            if delay > 0:
                await asyncio.sleep(delay)

    def _normalize_base_url(self, base_url: str) -> str:
        if not isinstance(base_url, str) or not base_url.strip():
            raise ValidationError("base_url must be a non-empty string.")
        return base_url.strip().rstrip("/")

    def _normalize_api_uri(self, api_uri: str) -> str:
        if not isinstance(api_uri, str):
            raise ValidationError("api_uri must be a string.")
        normalized = api_uri.strip().strip("/")
        if not normalized:
            return ""
        return f"/{normalized}"

    def _map_station_list(self, data: Any) -> list[Station]:
        if not isinstance(data, list):
            raise ApiError("Invalid stations response format.")
        stations: list[Station] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            stations.append(self._map_station(item))
        return stations

    def _map_station(self, data: Any) -> Station:
        if not isinstance(data, dict):
            raise ApiError("Backend response included invalid station data.")
        station_id = self._coerce_response_id(data.get("station_id"), "station id")
        name = data.get("station_name")
        if not isinstance(name, str) or not name.strip():
            raise ApiError("Backend response missing station name.")
        demand_level = self._parse_demand_level(data.get("demand_level"))
        if demand_level is None:
            raise ApiError("Backend response missing station demand level.")
        return Station(
            id=station_id,
            name=name.strip(),
            lat=self._parse_coordinate(data.get("lat"), "lat"),
            lng=self._parse_coordinate(data.get("lng"), "lng"),
            available_bikes=self._parse_count(data.get("available_bikes"), "available_bikes"),
            demand_level=demand_level,
        )

    def _map_reservation_list(self, data: Any) -> list[Reservation]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise ApiError("Backend response included invalid reservations.")
        reservations: list[Reservation] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            reservations.append(self._map_reservation(item))
        return reservations

    def _map_reservation(
        self,
        data: Any,
        *,
        station_id: str | None = None,
        demand_level: DemandLevel | None = None,
    ) -> Reservation:
        if not isinstance(data, dict):
            raise ApiError("Backend response included invalid reservation data.")
        reservation_id = self._coerce_response_id(data.get("reservation_id"), "reservation id")
        station = data.get("station")
        date_raw = data.get("date")
        slot_raw = data.get("time_slot")
        status = data.get("status")
        if station is None or date_raw is None or slot_raw is None or status is None:
            raise ApiError("Backend response missing reservation fields.")
        if not isinstance(station, str) or not isinstance(status, str):
            raise ApiError("Backend response included invalid reservation data.")
        try:
            reservation_date = parse_date(date_raw)
            time_slot = TimeSlot(slot_raw)
        except (ValidationError, ValueError) as exc:
            raise ApiError("Backend returned invalid reservation data.") from exc
        # The reserve endpoint omits station id and demand; fall back to the request values.
        returned_demand = self._parse_demand_level(data.get("predicted_demand"))
        returned_station_id = data.get("station_id")
        return Reservation(
            id=reservation_id,
            station_id=str(returned_station_id) if returned_station_id else (station_id or ""),
            station=station,
            date=reservation_date,
            time_slot=time_slot,
            demand_level=returned_demand or demand_level,
            price=self._parse_price(data.get("price")),
            status=status,
        )

    def _parse_demand_level(self, value: Any) -> DemandLevel | None:
        if value is None:
            return None
        try:
            return DemandLevel(value)
        except ValueError as exc:
            raise ApiError(f"Backend returned unknown demand level: {value}.") from exc

    def _parse_coordinate(self, value: Any, field: str) -> float:
        if isinstance(value, bool) or not isinstance(value, int | float | str):
            raise ApiError(f"Backend response included invalid {field}.")
        try:
            return float(value)
        except ValueError as exc:
            raise ApiError(f"Backend response included invalid {field}.") from exc

    def _parse_count(self, value: Any, field: str) -> int:
        if value is None:
            return 0
        parsed = self._parse_int(value)
        if parsed is None or parsed < 0:
            raise ApiError(f"Backend response included invalid {field}.")
        return parsed

    def _parse_price(self, value: Any) -> int:
        parsed = self._parse_int(value)
        if parsed is None or parsed < 0:
            raise ApiError("Backend response included invalid price.")
        return parsed

    def _parse_int(self, value: Any) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else None
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return None
            try:
                return int(stripped)
            except ValueError:
                return None
        return None

    def _coerce_response_id(self, value: Any, field: str) -> str:
        if value is None:
            raise ApiError(f"Backend response missing {field}.")
        text = str(value).strip()
        if not text:
            raise ApiError(f"Backend response missing {field}.")
        return text
