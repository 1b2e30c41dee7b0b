"""Plain-text receipt for a confirmed reservation."""

from __future__ import annotations

from .models import DemandLevel, LatestReservation, Reservation

CURRENCY_SYMBOL = "₹"
RECEIPT_TITLE = "RideWise"


def format_receipt(
    reservation: Reservation | LatestReservation,
    demand_level: DemandLevel | None = None,
) -> str:
    if isinstance(reservation, LatestReservation):
        reservation_id = reservation.reservation_id
    else:
        reservation_id = reservation.id
    demand = demand_level or reservation.demand_level
    lines = [
        RECEIPT_TITLE,
        f"Reservation ID: {reservation_id}",
        f"Station: {reservation.station}",
        f"Date: {reservation.date.isoformat()}",
        f"Time Slot: {reservation.time_slot.label}",
        f"Demand Level: {demand.value if demand is not None else '-'}",
        f"Price Paid: {CURRENCY_SYMBOL}{reservation.price}",
        f"Status: {reservation.status}",
    ]
    return "\n".join(lines)
