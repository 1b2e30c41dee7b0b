from datetime import date

from ridewise.models import DemandLevel, LatestReservation, Reservation, TimeSlot
from ridewise.receipt import format_receipt


def test_format_receipt_for_reservation() -> None:
    reservation = Reservation(
        id="R7",
        station_id="S1",
        station="Central",
        date=date(2025, 5, 4),
        time_slot=TimeSlot.NIGHT,
        demand_level=None,
        price=500,
        status="Confirmed",
    )
    receipt = format_receipt(reservation, DemandLevel.HIGH)
    assert receipt.splitlines() == [
        "RideWise",
        "Reservation ID: R7",
        "Station: Central",
        "Date: 2025-05-04",
        "Time Slot: Night (20-24)",
        "Demand Level: High",
        "Price Paid: ₹500",
        "Status: Confirmed",
    ]


def test_format_receipt_for_snapshot_without_demand() -> None:
    latest = LatestReservation(
        reservation_id="R8",
        station="Harbour",
        date=date(2025, 5, 5),
        time_slot=TimeSlot.MORNING,
        price=200,
    )
    receipt = format_receipt(latest)
    assert "Reservation ID: R8" in receipt
    assert "Demand Level: -" in receipt
