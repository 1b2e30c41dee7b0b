"""RideWise bike reservation client."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .catalog import StationCatalog
from .client import Client
from .exceptions import (
    ApiError,
    AuthError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RideWiseError,
    StorageError,
    ValidationError,
)
from .form import EditForm, ReservationForm
from .handoff import HandoffMessage
from .lifecycle import LifecycleState, ReservationLifecycleController
from .models import (
    DemandLevel,
    LatestReservation,
    Reservation,
    Station,
    StationHandoff,
    TimeSlot,
)
from .pricing import calculate_price
from .snapshot import ReservationSnapshotStore
from .storage import JsonFileStorage, KeyValueStorage, MemoryStorage

try:
    __version__ = version("ridewise-client")
except PackageNotFoundError:  # pragma: no cover - not installed
    __version__ = "0.0.0"

__all__ = [
    "ApiError",
    "AuthError",
    "Client",
    "DemandLevel",
    "EditForm",
    "HandoffMessage",
    "JsonFileStorage",
    "KeyValueStorage",
    "LatestReservation",
    "LifecycleState",
    "MemoryStorage",
    "NetworkError",
    "NotFoundError",
    "RateLimitError",
    "Reservation",
    "ReservationForm",
    "ReservationLifecycleController",
    "ReservationSnapshotStore",
    "RideWiseError",
    "Station",
    "StationCatalog",
    "StationHandoff",
    "StorageError",
    "TimeSlot",
    "ValidationError",
    "__version__",
    "calculate_price",
]
