"""View state for the reservation and edit forms."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from .catalog import StationCatalog
from .handoff import HandoffMessage
from .models import DemandLevel, Reservation, StationHandoff, TimeSlot
from .pricing import calculate_price

if TYPE_CHECKING:
    from .lifecycle import ReservationLifecycleController


class _SelectionForm:
    def __init__(self, catalog: StationCatalog | None) -> None:
        self._catalog = catalog
        self.date: date | None = None
        self.time_slot: TimeSlot | None = TimeSlot.MORNING
        self.station_id = ""
        self.demand_level = DemandLevel.LOW

    def select_station(self, station_id: str | None) -> None:
        """Select a station, taking its demand level from the live catalog."""
        self.station_id = station_id or ""
        self.sync_with_catalog()

    def sync_with_catalog(self) -> None:
        if self._catalog is None:
            return
        demand = self._catalog.demand_for(self.station_id)
        if demand is not None:
            self.demand_level = demand

    @property
    def station_name(self) -> str:
        if self._catalog is None:
            return ""
        station = self._catalog.find_by_id(self.station_id)
        return station.name if station is not None else ""

    @property
    def price(self) -> int | None:
        """Advisory price for display; the backend decides the charged amount."""
        if self.time_slot is None:
            return None
        return calculate_price(self.demand_level, self.time_slot)


class ReservationForm(_SelectionForm):
    """State behind the "reserve a bike" view."""

    def __init__(
        self,
        catalog: StationCatalog,
        *,
        handoff: HandoffMessage | None = None,
        today: date | None = None,
    ) -> None:
        super().__init__(catalog)
        self._handoff = handoff
        self.date = today or date.today()

    def mount(self) -> StationHandoff | None:
        """Apply a pending handoff; later calls are no-ops.

        The handed-off demand level only stands until the catalog knows the
        station.
        """
        if self._handoff is None:
            return None
        payload = self._handoff.consume()
        if payload is None:
            return None
        self.station_id = payload.station_id
        if payload.demand_level is not None:
            self.demand_level = payload.demand_level
        self.sync_with_catalog()
        return payload

    async def submit(
        self,
        controller: ReservationLifecycleController,
        user_email: str | None,
    ) -> Reservation:
        return await controller.create(
            self.date,
            self.time_slot,
            self.station_id,
            self.demand_level,
            user_email,
        )


class EditForm(_SelectionForm):
    """State behind the edit dialog of an existing reservation."""

    def __init__(self, reservation: Reservation, catalog: StationCatalog | None = None) -> None:
        super().__init__(catalog)
        self.reservation = reservation
        self.date = reservation.date
        self.time_slot = reservation.time_slot
        self.station_id = reservation.station_id
        self.demand_level = reservation.demand_level or DemandLevel.LOW
        self.error: str | None = None
        self.sync_with_catalog()

    async def submit(
        self,
        controller: ReservationLifecycleController,
        user_email: str | None,
    ) -> None:
        await controller.update(
            self.reservation.id,
            self.date,
            self.time_slot,
            self.station_id,
            user_email,
        )
