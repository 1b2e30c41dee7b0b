"""One-shot station selection handoff between views."""

from __future__ import annotations

from .models import Station, StationHandoff


class HandoffMessage:
    """Carries a station selection into the view being opened.

    The payload is read at most once; later reads return ``None`` so a
    re-render never re-applies a stale selection.
    """

    def __init__(self, payload: StationHandoff | None = None) -> None:
        self._payload = payload

    @classmethod
    def for_station(cls, station: Station) -> HandoffMessage:
        return cls(StationHandoff.from_station(station))

    @property
    def pending(self) -> bool:
        return self._payload is not None

    def consume(self) -> StationHandoff | None:
        payload, self._payload = self._payload, None
        return payload
