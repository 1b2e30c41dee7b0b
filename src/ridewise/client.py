"""Client facade wiring the backend, catalog, snapshot store and controllers."""

from __future__ import annotations

import aiohttp

from .backend.api import BackendApi
from .catalog import StationCatalog
from .form import ReservationForm
from .handoff import HandoffMessage
from .lifecycle import ReservationLifecycleController
from .snapshot import ReservationSnapshotStore
from .storage import KeyValueStorage, MemoryStorage

_DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30)


class Client:
    """Entry point owning the HTTP session and the shared snapshot store."""

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        *,
        base_url: str | None = None,
        api_uri: str | None = None,
        timeout: aiohttp.ClientTimeout | None = None,
        retry_count: int = 0,
        storage: KeyValueStorage | None = None,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self._base_url = base_url
        self._api_uri = api_uri
        self._timeout = timeout or _DEFAULT_TIMEOUT
        self._retry_count = max(0, retry_count)
        self._snapshots = ReservationSnapshotStore(
            storage if storage is not None else MemoryStorage()
        )
        self._api: BackendApi | None = None

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
            self._api = None

    @property
    def snapshots(self) -> ReservationSnapshotStore:
        return self._snapshots

    @property
    def api(self) -> BackendApi:
        if self._api is None:
            self._api = BackendApi(
                self._ensure_session(),
                base_url=self._base_url,
                api_uri=self._api_uri,
                timeout=self._timeout,
                retry_count=self._retry_count,
            )
        return self._api

    def station_catalog(self) -> StationCatalog:
        return StationCatalog(self.api)

    def reservation_controller(
        self,
        catalog: StationCatalog | None = None,
    ) -> ReservationLifecycleController:
        return ReservationLifecycleController(self.api, self._snapshots, catalog=catalog)

    def reservation_form(
        self,
        catalog: StationCatalog,
        handoff: HandoffMessage | None = None,
    ) -> ReservationForm:
        return ReservationForm(catalog, handoff=handoff)

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session
