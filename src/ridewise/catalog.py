"""Station catalog with live demand and availability."""

from __future__ import annotations

import logging

from .backend.api import BackendApi
from .exceptions import RideWiseError
from .models import DemandLevel, Station

_LOGGER = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load stations."


class StationCatalog:
    """Holds the station list fetched from the backend.

    A failed load keeps the stations from the last successful one, so a
    transient error never blanks a populated view. When loads overlap, a
    result is applied only if it was issued after the one currently shown,
    so a newer failure never discards an older success.
    """

    def __init__(self, api: BackendApi) -> None:
        self._api = api
        self._stations: tuple[Station, ...] = ()
        self._by_id: dict[str, Station] = {}
        self._error: str | None = None
        self._loaded = False
        self._in_flight = 0
        self._generation = 0
        self._applied_generation = 0

    @property
    def stations(self) -> list[Station]:
        return list(self._stations)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    async def load(self) -> list[Station]:
        self._generation += 1
        generation = self._generation
        self._in_flight += 1
        self._error = None
        try:
            stations = await self._api.list_stations()
        except RideWiseError as exc:
            if generation > self._applied_generation:
                self._error = self._failure_message(exc)
            _LOGGER.warning("Station catalog load failed: %s", exc)
            return self.stations
        finally:
            self._in_flight -= 1
        if generation <= self._applied_generation:
            _LOGGER.debug("Discarding superseded station catalog load")
            return self.stations
        self._applied_generation = generation
        self._stations = tuple(stations)
        self._by_id = {station.id: station for station in stations}
        self._error = None
        self._loaded = True
        _LOGGER.debug("Loaded %s stations", len(stations))
        return self.stations

    def find_by_id(self, station_id: str | None) -> Station | None:
        if not station_id:
            return None
        return self._by_id.get(station_id)

    def demand_for(self, station_id: str | None) -> DemandLevel | None:
        station = self.find_by_id(station_id)
        return station.demand_level if station is not None else None

    def _failure_message(self, exc: RideWiseError) -> str:
        if exc.user_message:
            return exc.user_message
        status = getattr(exc, "status", None)
        if status is not None:
            return f"Failed to load stations (status {status})."
        return str(exc) or LOAD_FAILED_MESSAGE
