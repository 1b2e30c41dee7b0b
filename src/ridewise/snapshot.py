"""Persisted snapshot of the latest confirmed reservation."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from .exceptions import StorageError, ValidationError
from .models import LatestReservation
from .storage import KeyValueStorage

_LOGGER = logging.getLogger(__name__)

STORAGE_KEY = "ridewise_latest_reservation"

SnapshotListener = Callable[[LatestReservation | None], None]


class ReservationSnapshotStore:
    """Holds the latest confirmed reservation and mirrors it to durable storage.

    The in-memory value is authoritative for readers in this process. Durable
    writes are best effort: a failing storage never blocks ``set``. Build one
    store at startup and hand it to the components that need it.
    """

    def __init__(self, storage: KeyValueStorage, *, key: str = STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._value: LatestReservation | None = None
        self._hydrated = False
        self._listeners: list[SnapshotListener] = []

    def get(self) -> LatestReservation | None:
        if not self._hydrated:
            self._value = self._load()
            self._hydrated = True
        return self._value

    def set(self, snapshot: LatestReservation | None) -> None:
        self._value = snapshot
        self._hydrated = True
        self._persist(snapshot)
        for listener in list(self._listeners):
            listener(snapshot)

    def clear(self) -> None:
        self.set(None)

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _load(self) -> LatestReservation | None:
        try:
            raw = self._storage.get(self._key)
        except (StorageError, OSError) as exc:
            _LOGGER.debug("Snapshot storage unreadable, ignoring: %s", exc)
            return None
        if not raw:
            return None
        try:
            return LatestReservation.from_dict(json.loads(raw))
        except (ValueError, RecursionError, ValidationError) as exc:
            _LOGGER.debug("Discarding corrupt reservation snapshot: %s", exc)
            return None

    def _persist(self, snapshot: LatestReservation | None) -> None:
        try:
            if snapshot is None:
                self._storage.delete(self._key)
            else:
                self._storage.set(self._key, json.dumps(snapshot.to_dict()))
        except (StorageError, OSError) as exc:
            _LOGGER.debug("Snapshot storage write failed: %s", exc)
