"""Public data models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any

from .exceptions import ValidationError

STATUS_CONFIRMED = "Confirmed"
STATUS_CANCELLED = "Cancelled"


class DemandLevel(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TimeSlot(StrEnum):
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    EVENING = "Evening"
    NIGHT = "Night"

    @property
    def hours(self) -> tuple[int, int]:
        """Clock range of the slot as (start_hour, end_hour), for display only."""
        return _TIME_SLOT_HOURS[self]

    @property
    def label(self) -> str:
        start, end = self.hours
        return f"{self.value} ({start}-{end})"


_TIME_SLOT_HOURS = {
    TimeSlot.MORNING: (6, 10),
    TimeSlot.AFTERNOON: (10, 16),
    TimeSlot.EVENING: (16, 20),
    TimeSlot.NIGHT: (20, 24),
}


@dataclass(frozen=True, slots=True)
class Station:
    id: str
    name: str
    lat: float
    lng: float
    available_bikes: int
    demand_level: DemandLevel


@dataclass(frozen=True, slots=True)
class Reservation:
    id: str
    station_id: str
    station: str
    date: date
    time_slot: TimeSlot
    demand_level: DemandLevel | None
    price: int
    status: str

    @property
    def is_confirmed(self) -> bool:
        return self.status == STATUS_CONFIRMED


@dataclass(frozen=True, slots=True)
class LatestReservation:
    """Projection of the most recently confirmed reservation.

    Only confirmed bookings are ever cached, so ``status`` is always
    ``"Confirmed"``.
    """

    reservation_id: str
    station: str
    date: date
    time_slot: TimeSlot
    price: int
    status: str = STATUS_CONFIRMED
    demand_level: DemandLevel | None = None
    station_id: str | None = None

    def __post_init__(self) -> None:
        if self.status != STATUS_CONFIRMED:
            raise ValidationError("Latest reservation status must be Confirmed.", field="status")

    @classmethod
    def from_reservation(
        cls,
        reservation: Reservation,
        *,
        demand_level: DemandLevel | None = None,
        station_id: str | None = None,
    ) -> LatestReservation:
        return cls(
            reservation_id=reservation.id,
            station=reservation.station,
            date=reservation.date,
            time_slot=reservation.time_slot,
            price=reservation.price,
            status=reservation.status,
            demand_level=demand_level or reservation.demand_level,
            station_id=station_id or reservation.station_id or None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "reservation_id": self.reservation_id,
            "station": self.station,
            "date": self.date.isoformat(),
            "time_slot": self.time_slot.value,
            "price": self.price,
            "status": self.status,
        }
        if self.demand_level is not None:
            data["predicted_demand"] = self.demand_level.value
        if self.station_id is not None:
            data["station_id"] = self.station_id
        return data

    @classmethod
    def from_dict(cls, data: Any) -> LatestReservation:
        if not isinstance(data, dict):
            raise ValidationError("Latest reservation must be a JSON object.")
        missing = [
            key
            for key in ("reservation_id", "station", "date", "time_slot", "price", "status")
            if key not in data
        ]
        if missing:
            raise ValidationError(f"Latest reservation missing keys: {', '.join(missing)}.")
        price = data["price"]
        if isinstance(price, bool) or not isinstance(price, int) or price < 0:
            raise ValidationError("Latest reservation price must be a non-negative integer.")
        try:
            reservation_date = date.fromisoformat(data["date"])
            time_slot = TimeSlot(data["time_slot"])
            demand = data.get("predicted_demand")
            demand_level = DemandLevel(demand) if demand is not None else None
        except (TypeError, ValueError) as exc:
            raise ValidationError("Latest reservation contains invalid values.") from exc
        station_id = data.get("station_id")
        return cls(
            reservation_id=str(data["reservation_id"]),
            station=str(data["station"]),
            date=reservation_date,
            time_slot=time_slot,
            price=price,
            status=data["status"],
            demand_level=demand_level,
            station_id=str(station_id) if station_id is not None else None,
        )


@dataclass(frozen=True, slots=True)
class StationHandoff:
    station_id: str
    demand_level: DemandLevel | None = None

    @classmethod
    def from_station(cls, station: Station) -> StationHandoff:
        return cls(station_id=station.id, demand_level=station.demand_level)
