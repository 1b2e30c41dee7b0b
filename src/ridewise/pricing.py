"""Reservation price calculation.

Mirrors the backend pricing rule for display before submission. The backend
remains the authority on the accepted price.
"""

from __future__ import annotations

from .models import DemandLevel, TimeSlot

BASE_PRICES = {
    DemandLevel.LOW: 200,
    DemandLevel.MEDIUM: 300,
    DemandLevel.HIGH: 400,
}
NIGHT_SURCHARGE = 100


def calculate_price(demand: DemandLevel | str, time_slot: TimeSlot | str) -> int:
    base = BASE_PRICES[DemandLevel(demand)]
    surcharge = NIGHT_SURCHARGE if TimeSlot(time_slot) is TimeSlot.NIGHT else 0
    return base + surcharge
