"""Manual live check against a running RideWise backend.

Run from the repository root with:
  PYTHONPATH=src BASE_URL=http://localhost:5000 USER_EMAIL=rider@example.com \
  python scripts/live_check.py

Book, list and cancel in one go:
  PYTHONPATH=src USER_EMAIL=rider@example.com \
    python scripts/live_check.py --reserve --station-id S1 --time-slot Night --cancel

Optional environment variables:
  BASE_URL
  API_URI
  USER_EMAIL
  SNAPSHOT_FILE  (defaults to .ridewise/snapshot.json)

Debug helpers:
  --verbose enables debug logging for the library.
  --traceback prints full tracebacks on errors.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
import traceback
from datetime import date, timedelta

from ridewise import (
    Client,
    HandoffMessage,
    JsonFileStorage,
    Reservation,
    RideWiseError,
    Station,
    TimeSlot,
)
from ridewise.receipt import format_receipt
from ridewise.util import mask_email

_LOGGER = logging.getLogger(__name__)
_DEFAULT_SNAPSHOT_FILE = os.path.join(".ridewise", "snapshot.json")


def _require_value(name: str, value: str | None) -> str:
    if not value:
        print(f"Missing required value: {name}", file=sys.stderr)
        raise SystemExit(2)
    return value


def _print_exception(label: str, exc: Exception, *, trace: bool) -> None:
    print(f"{label}: {exc.__class__.__name__}: {exc}", file=sys.stderr)
    if trace:
        traceback.print_exc()


def _format_station(station: Station) -> str:
    return (
        f"{station.id} | {station.name} | {station.available_bikes} bikes | "
        f"{station.demand_level.value} demand"
    )


def _format_reservation(reservation: Reservation) -> str:
    return (
        f"{reservation.id} | {reservation.station} | {reservation.date.isoformat()} "
        f"{reservation.time_slot.value} | {reservation.price} | {reservation.status}"
    )


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="RideWise backend live check.")
    parser.add_argument("--base-url", default=os.environ.get("BASE_URL"))
    parser.add_argument("--api-uri", default=os.environ.get("API_URI"))
    parser.add_argument("--user-email", default=os.environ.get("USER_EMAIL"))
    parser.add_argument(
        "--snapshot-file",
        default=os.environ.get("SNAPSHOT_FILE", _DEFAULT_SNAPSHOT_FILE),
    )
    parser.add_argument("--reserve", action="store_true", help="Create a reservation.")
    parser.add_argument("--station-id", help="Station to reserve (defaults to the first one).")
    parser.add_argument(
        "--time-slot",
        choices=[slot.value for slot in TimeSlot],
        default=TimeSlot.MORNING.value,
    )
    parser.add_argument(
        "--date",
        default=(date.today() + timedelta(days=1)).isoformat(),
        help="Reservation date (YYYY-MM-DD); defaults to tomorrow.",
    )
    parser.add_argument("--cancel", action="store_true", help="Cancel the created reservation.")
    parser.add_argument("--retry-count", type=int, default=1)
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--traceback", action="store_true")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    storage = JsonFileStorage(args.snapshot_file)
    async with Client(
        base_url=args.base_url,
        api_uri=args.api_uri,
        retry_count=args.retry_count,
        storage=storage,
    ) as client:
        latest = client.snapshots.get()
        if latest is not None:
            print(f"Latest reservation on record: {latest.reservation_id} ({latest.station})")

        catalog = client.station_catalog()
        stations = await catalog.load()
        if catalog.error:
            print(f"Station load failed: {catalog.error}", file=sys.stderr)
            return 1
        print(f"Stations ({len(stations)}):")
        for station in stations:
            print(f"  {_format_station(station)}")

        controller = client.reservation_controller(catalog)
        if not args.reserve:
            if args.user_email:
                for reservation in await controller.list_reservations(args.user_email):
                    print(f"  {_format_reservation(reservation)}")
            return 0

        email = _require_value("USER_EMAIL", args.user_email)
        station = catalog.find_by_id(args.station_id) if args.station_id else None
        if station is None:
            if args.station_id or not stations:
                print(f"Unknown station: {args.station_id}", file=sys.stderr)
                return 2
            station = stations[0]

        form = client.reservation_form(catalog, HandoffMessage.for_station(station))
        form.mount()
        form.date = date.fromisoformat(args.date)
        form.time_slot = TimeSlot(args.time_slot)
        print(f"Advisory price: {form.price}")
        _LOGGER.debug("Reserving %s for %s", station.id, mask_email(email))
        reservation = await form.submit(controller, email)
        print(format_receipt(reservation, form.demand_level))
        if reservation.price != form.price:
            print(f"Backend charged {reservation.price} (advisory was {form.price}).")

        print("Reservations:")
        for item in controller.reservations:
            print(f"  {_format_reservation(item)}")

        if args.cancel:
            cancelled = await controller.cancel(reservation.id, email)
            print(f"Cancelled {reservation.id}: {cancelled}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        return asyncio.run(_run(args))
    except RideWiseError as exc:
        _print_exception("Live check failed", exc, trace=args.traceback)
        if exc.user_message:
            print(exc.user_message, file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
