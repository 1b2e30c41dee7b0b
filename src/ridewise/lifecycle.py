"""Reservation lifecycle: create, list, edit and cancel against the backend."""

from __future__ import annotations

import logging
from datetime import date
from enum import StrEnum

from .backend.api import BackendApi
from .catalog import StationCatalog
from .exceptions import RideWiseError, ValidationError
from .form import EditForm
from .models import DemandLevel, LatestReservation, Reservation, TimeSlot
from .snapshot import ReservationSnapshotStore
from .util import (
    coerce_demand_level,
    mask_email,
    require_date,
    require_id,
    require_station_id,
    require_time_slot,
)

_LOGGER = logging.getLogger(__name__)

CREATE_FAILED_MESSAGE = "Failed to reserve bike."
UPDATE_FAILED_MESSAGE = "Failed to update reservation."
MISSING_USER_MESSAGE = "Sign in to manage your reservations."


class LifecycleState(StrEnum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"


class ReservationLifecycleController:
    """Drives reservation mutations and keeps the local view in line with the backend.

    The reservation list is never patched locally. Every successful mutation
    is followed by a refetch. A refetch result replaces the held list only if
    it was issued after the list currently held, and failed refetches never
    count as newer.

    ``state`` tracks the most recently started operation. An operation that
    finishes after a newer one has started leaves ``state`` to the newer one.
    """

    def __init__(
        self,
        api: BackendApi,
        snapshots: ReservationSnapshotStore,
        *,
        catalog: StationCatalog | None = None,
    ) -> None:
        self._api = api
        self._snapshots = snapshots
        self._catalog = catalog
        self._state = LifecycleState.EDITING
        self._error: str | None = None
        self._reservations: tuple[Reservation, ...] = ()
        self._last_confirmed: Reservation | None = None
        self._editing: EditForm | None = None
        self._submitting = 0
        self._refreshing = 0
        self._list_generation = 0
        self._applied_list_generation = 0
        self._operation = 0

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def reservations(self) -> list[Reservation]:
        return list(self._reservations)

    @property
    def last_confirmed(self) -> Reservation | None:
        return self._last_confirmed

    @property
    def editing(self) -> EditForm | None:
        return self._editing

    @property
    def submitting(self) -> bool:
        return self._submitting > 0

    @property
    def loading(self) -> bool:
        return self._refreshing > 0

    async def create(
        self,
        date: date | str | None,
        time_slot: TimeSlot | str | None,
        station_id: str | None,
        demand_level: DemandLevel | str | None = None,
        user_email: str | None = None,
    ) -> Reservation:
        """Book a bike.

        Missing fields raise ``ValidationError`` before any request is made.
        On success the snapshot store is updated and the list refetched.
        """
        self._error = None
        try:
            reservation_date, slot, station = self._validate_selection(date, time_slot, station_id)
            demand = self._resolve_demand(demand_level, station)
        except ValidationError as exc:
            self._fail_validation(exc)
            raise

        operation = self._start(LifecycleState.SUBMITTING)
        self._submitting += 1
        try:
            reservation = await self._api.create_reservation(
                date=reservation_date,
                time_slot=slot,
                station_id=station,
                demand_level=demand,
                user_email=user_email,
            )
        except RideWiseError as exc:
            self._error = self._failure_message(exc, "Reservation failed", CREATE_FAILED_MESSAGE)
            self._finish(operation, LifecycleState.EDITING)
            _LOGGER.warning("Reservation request failed: %s", exc)
            raise
        finally:
            self._submitting -= 1

        self._last_confirmed = reservation
        self._finish(operation, LifecycleState.CONFIRMED)
        _LOGGER.debug("Reservation %s confirmed at %s", reservation.id, reservation.price)
        if reservation.is_confirmed:
            self._snapshots.set(
                LatestReservation.from_reservation(
                    reservation,
                    demand_level=demand,
                    station_id=station,
                )
            )
        else:
            _LOGGER.debug(
                "Reservation %s returned status %s; snapshot left unchanged",
                reservation.id,
                reservation.status,
            )
        await self.list_reservations(user_email)
        return reservation

    async def list_reservations(self, user_email: str | None) -> list[Reservation]:
        """Refresh the reservations of a user.

        Failures are logged and leave the held list untouched.
        """
        if not user_email:
            return []
        self._list_generation += 1
        generation = self._list_generation
        self._refreshing += 1
        try:
            reservations = await self._api.list_reservations(user_email)
        except RideWiseError as exc:
            _LOGGER.warning(
                "Failed to fetch reservations for %s: %s",
                mask_email(user_email),
                exc,
            )
            return self.reservations
        finally:
            self._refreshing -= 1
        if generation <= self._applied_list_generation:
            _LOGGER.debug("Discarding superseded reservation refresh")
            return self.reservations
        self._applied_list_generation = generation
        self._reservations = tuple(reservations)
        return self.reservations

    def begin_edit(self, reservation: Reservation) -> EditForm:
        if not reservation.is_confirmed:
            raise ValidationError(
                "Only confirmed reservations can be edited.",
                field="reservation_id",
            )
        self._editing = EditForm(reservation, self._catalog)
        self._error = None
        self._start(LifecycleState.EDITING)
        return self._editing

    def close_edit(self) -> None:
        self._editing = None
        self._error = None

    async def update(
        self,
        reservation_id: str,
        date: date | str | None,
        time_slot: TimeSlot | str | None,
        station_id: str | None,
        user_email: str | None,
    ) -> None:
        """Move a reservation to a new date, slot or station.

        The edit form stays open with an inline error when the update fails.
        """
        form = self._edit_form_for(reservation_id)
        self._set_error(form, None)
        try:
            reservation_id_value = require_id(reservation_id, "reservation_id")
            reservation_date, slot, station = self._validate_selection(date, time_slot, station_id)
            email = self._require_user(user_email)
        except ValidationError as exc:
            self._set_error(form, exc.user_message or str(exc))
            self._start(LifecycleState.EDITING)
            raise

        operation = self._start(LifecycleState.SUBMITTING)
        self._submitting += 1
        try:
            await self._api.update_reservation(
                reservation_id_value,
                user_email=email,
                date=reservation_date,
                time_slot=slot,
                station_id=station,
            )
        except RideWiseError as exc:
            message = self._failure_message(
                exc,
                "Failed to update reservation",
                UPDATE_FAILED_MESSAGE,
            )
            self._set_error(form, message)
            self._finish(operation, LifecycleState.EDITING)
            _LOGGER.warning("Reservation %s update failed: %s", reservation_id_value, exc)
            raise
        finally:
            self._submitting -= 1

        self._finish(operation, LifecycleState.CONFIRMED)
        if form is not None and self._editing is form:
            self._editing = None
        await self.list_reservations(email)

    async def cancel(self, reservation_id: str, user_email: str | None) -> bool:
        """Cancel a reservation; returns whether the backend accepted it."""
        reservation_id_value = require_id(reservation_id, "reservation_id")
        email = self._require_user(user_email)
        operation = self._start(LifecycleState.CANCELLING)
        try:
            await self._api.cancel_reservation(reservation_id_value, email)
        except RideWiseError as exc:
            _LOGGER.error("Failed to cancel reservation %s: %s", reservation_id_value, exc)
            self._finish(operation, LifecycleState.FAILED)
            return False
        self._finish(operation, LifecycleState.CANCELLED)
        await self.list_reservations(email)
        return True

    def _validate_selection(
        self,
        date: date | str | None,
        time_slot: TimeSlot | str | None,
        station_id: str | None,
    ) -> tuple[date, TimeSlot, str]:
        # Checked in form order so the first missing field is reported.
        reservation_date = require_date(date)
        slot = require_time_slot(time_slot)
        station = require_station_id(station_id)
        return reservation_date, slot, station

    def _resolve_demand(self, demand_level: DemandLevel | str | None, station_id: str) -> DemandLevel:
        demand = coerce_demand_level(demand_level)
        if demand is None and self._catalog is not None:
            demand = self._catalog.demand_for(station_id)
        return demand or DemandLevel.LOW

    def _require_user(self, user_email: str | None) -> str:
        if not user_email or not user_email.strip():
            raise ValidationError(MISSING_USER_MESSAGE, field="user_email")
        return user_email.strip()

    def _edit_form_for(self, reservation_id: str) -> EditForm | None:
        if self._editing is None:
            return None
        if self._editing.reservation.id != str(reservation_id):
            return None
        return self._editing

    def _start(self, state: LifecycleState) -> int:
        self._operation += 1
        self._state = state
        return self._operation

    def _finish(self, operation: int, state: LifecycleState) -> None:
        if operation == self._operation:
            self._state = state

    def _set_error(self, form: EditForm | None, message: str | None) -> None:
        self._error = message
        if form is not None:
            form.error = message

    def _fail_validation(self, exc: ValidationError) -> None:
        self._error = exc.user_message or str(exc)
        self._start(LifecycleState.EDITING)

    def _failure_message(self, exc: RideWiseError, prefix: str, fallback: str) -> str:
        if exc.user_message:
            return exc.user_message
        status = getattr(exc, "status", None)
        if status is not None:
            return f"{prefix} (status {status})."
        return fallback
