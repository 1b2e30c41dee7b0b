"""Shared utilities for validation and normalization."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from .exceptions import ValidationError
from .models import DemandLevel, TimeSlot

MISSING_DATE_MESSAGE = "Please select a date."
MISSING_TIME_SLOT_MESSAGE = "Please select a time slot."
MISSING_STATION_MESSAGE = "Please select a pickup station."


def parse_date(value: str) -> date:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Date must be a non-empty string.", field="date")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValidationError("Date is not a valid YYYY-MM-DD value.", field="date") from exc


def format_date(value: date) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def require_date(value: date | str | None) -> date:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(MISSING_DATE_MESSAGE, field="date")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date(value)


def require_time_slot(value: TimeSlot | str | None) -> TimeSlot:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(MISSING_TIME_SLOT_MESSAGE, field="time_slot")
    try:
        return TimeSlot(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown time slot: {value}.", field="time_slot") from exc


def require_station_id(value: str | None) -> str:
    if value is None:
        raise ValidationError(MISSING_STATION_MESSAGE, field="station_id")
    text = str(value).strip()
    if not text:
        raise ValidationError(MISSING_STATION_MESSAGE, field="station_id")
    return text


def coerce_demand_level(value: DemandLevel | str | None) -> DemandLevel | None:
    if value is None:
        return None
    try:
        return DemandLevel(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown demand level: {value}.", field="demand_level") from exc


def require_id(value: Any, field: str) -> str:
    if value is None:
        raise ValidationError(f"{field} is required.", field=field)
    text = str(value).strip()
    if not text:
        raise ValidationError(f"{field} is required.", field=field)
    return text


def mask_email(email: str | None) -> str:
    if not isinstance(email, str) or "@" not in email:
        return "***"
    local, _, domain = email.strip().partition("@")
    if len(local) <= 2:
        masked = "*" * len(local)
    else:
        masked = f"{local[:1]}{'*' * (len(local) - 2)}{local[-1:]}"
    return f"{masked}@{domain}"
