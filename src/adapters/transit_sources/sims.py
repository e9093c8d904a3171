"""SIMS client (redundant mirrors, no auth).

Each endpoint is queried on every mirror concurrently; the caller receives
all decoded records plus one `HostFailure` per mirror that failed, so partial
data can still be shown.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

import httpx

from adapters.http_client import build_async_client
from adapters.mirror_fetcher import fetch_from_mirrors
from core.config import AppSettings
from core.domain.models import FetchOutcome, RequestDescriptor
from core.domain.sims import SimsBusStop, SimsVehicle, Timetable

T = TypeVar("T")


class SimsClient:
    """Endpoint client for the SIMS mirror hosts."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        hosts: Sequence[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._hosts = tuple(hosts if hosts is not None else self._settings.sims_mirrors)
        self._transport = transport

    @property
    def hosts(self) -> tuple[str, ...]:
        return self._hosts

    async def _get_data(self, endpoint: str, shape: type[T]) -> FetchOutcome[T]:
        request = RequestDescriptor(hosts=self._hosts, path=endpoint)
        async with build_async_client(self._settings, transport=self._transport) as client:
            return await fetch_from_mirrors(client, request, shape)

    async def get_buses(self) -> FetchOutcome[SimsVehicle]:
        return await self._get_data("vehicles", SimsVehicle)

    async def get_bus_stops(self) -> FetchOutcome[SimsBusStop]:
        return await self._get_data("timetables/busStops", SimsBusStop)

    async def get_timetable(self, bus_stop_code: object) -> FetchOutcome[Timetable]:
        return await self._get_data(f"timetables/busStops/{bus_stop_code}", Timetable)
