"""MPK Wrocław client (single host, HTTP Digest).

Every call is `GET <base>/mobile?function=<name>&...` behind Digest auth. The
body is either the success payload or `{info, message, stackTrace}`, and the
error shape can come back with HTTP 200, so it is detected by shape.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from adapters.digest_auth import digest_get
from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import DigestCredentials, RequestDescriptor, unwrap
from core.domain.mpk import CourseInfo, PostPlate, StopDeparture, Vehicle, VehicleList
from core.errors import DecodeError, HttpStatusError
from core.observability import get_logger
from core.services.decoding import decode_union

SQL_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = get_logger(__name__)


class MpkClient:
    """Endpoint client for the MPK Wrocław mobile API."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        credentials: DigestCredentials | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._credentials = credentials or DigestCredentials(
            username=self._settings.mpk_username,
            secret=self._settings.mpk_password.get_secret_value(),
        )
        self._transport = transport

    def _request(self, function: str, *params: tuple[str, str]) -> RequestDescriptor:
        return RequestDescriptor(
            hosts=(self._settings.mpk_base_url,),
            path=self._settings.mpk_path,
            params=(("function", function), *params),
        )

    async def _get_data(self, request: RequestDescriptor, shape: Any, *, positional: bool = False) -> Any:
        url = request.url_for(request.hosts[0])
        async with build_async_client(self._settings, transport=self._transport) as client:
            response = await digest_get(client, url, self._credentials, params=request.params)

        try:
            envelope = decode_union(response.content, shape, positional=positional)
        except DecodeError as exc:
            if not response.is_success:
                raise HttpStatusError(response.status_code, url=str(response.url)) from exc
            raise
        logger.debug("mpk call decoded", function=request.params[0][1], status=response.status_code)
        return unwrap(envelope)

    def positions_date(self, now: datetime | None = None) -> str:
        """`date` parameter of `getPositions`: local time minus the configured lookback."""

        now = now or datetime.now(ZoneInfo(self._settings.mpk_timezone))
        since = now - timedelta(seconds=self._settings.mpk_positions_lookback_seconds)
        return since.strftime(SQL_DATE_FORMAT)

    async def get_buses(self) -> VehicleList:
        request = self._request("getPositions", ("date", self.positions_date()))
        return await self._get_data(request, Vehicle, positional=True)

    async def get_post_info(self, symbol: str) -> list[StopDeparture]:
        request = self._request("getPostInfo", ("symbol", symbol))
        return await self._get_data(request, list[StopDeparture])

    async def get_course_posts(self, courses: Iterable[object]) -> list[CourseInfo]:
        joined = ",".join(str(course) for course in courses)
        request = self._request("getCoursePosts", ("courses", joined))
        return await self._get_data(request, list[CourseInfo])

    async def get_post_plate(self, post: str, line: str) -> PostPlate:
        request = self._request("getPostPlate", ("post", post), ("line", line), ("output", "json"))
        return await self._get_data(request, PostPlate)
