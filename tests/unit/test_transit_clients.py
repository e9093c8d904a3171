import json
import re
from datetime import datetime
from zoneinfo import ZoneInfo

import httpx
import pytest

from adapters.transit_sources import MpkClient, SimsClient
from core.domain.models import FetchStage, PositionalBatch
from core.domain.mpk import VehicleType
from core.errors import AuthenticationFailed, HttpStatusError, TransportError, UpstreamBusinessError
from tests.helpers import COMPACT_VEHICLE, MIRRORS, VERBOSE_VEHICLE, bus_stop, digest_handler

ERROR_BODY = {"info": "X", "message": "Y", "stackTrace": "Z"}


def _params(request: httpx.Request) -> list[tuple[str, str]]:
    return list(request.url.params.multi_items())


def _mpk(settings, routes, seen=None) -> MpkClient:
    return MpkClient(settings, transport=httpx.MockTransport(digest_handler(routes, seen=seen)))


@pytest.mark.asyncio
async def test_mpk_post_info_sends_function_and_symbol(settings):
    seen: list[httpx.Request] = []
    body = [{"l": "250", "d": "20362", "t": "2025-02-26 23:38:00", "c": 25622727}]
    client = _mpk(settings, lambda request: httpx.Response(200, json=body), seen)

    departures = await client.get_post_info("20329")

    assert [d.course for d in departures] == [25622727]
    assert seen[1].url.path == "/mobile"
    assert seen[1].url.port == 8088
    assert _params(seen[1]) == [("function", "getPostInfo"), ("symbol", "20329")]


@pytest.mark.asyncio
async def test_mpk_buses_decode_positional_batch(settings):
    seen: list[httpx.Request] = []
    body = ["2025-02-26 23:38:00", COMPACT_VEHICLE, dict(VERBOSE_VEHICLE, code=7, type="TRAM")]
    client = _mpk(settings, lambda request: httpx.Response(200, json=body), seen)

    batch = await client.get_buses()

    assert isinstance(batch, PositionalBatch)
    assert batch.metadata == "2025-02-26 23:38:00"
    assert [v.code for v in batch.records] == [1, 7]
    assert batch.records[1].vehicle_type is VehicleType.TRAM
    params = dict(_params(seen[1]))
    assert params["function"] == "getPositions"
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", params["date"])


def test_positions_date_uses_lookback(settings):
    client = MpkClient(settings)
    now = datetime(2025, 2, 26, 23, 38, 10, tzinfo=ZoneInfo("Europe/Warsaw"))
    assert client.positions_date(now) == "2025-02-26 23:38:00"


@pytest.mark.asyncio
async def test_mpk_error_body_with_http_200_raises_upstream_error(settings):
    client = _mpk(settings, lambda request: httpx.Response(200, json=ERROR_BODY))

    with pytest.raises(UpstreamBusinessError) as excinfo:
        await client.get_post_info("20329")

    assert excinfo.value.failure.info == "X"


@pytest.mark.asyncio
async def test_mpk_unchallenged_error_body_raises_upstream_error(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json=ERROR_BODY)

    client = MpkClient(settings, transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamBusinessError):
        await client.get_post_info("20329")


@pytest.mark.asyncio
async def test_mpk_rejected_credentials_raise_authentication_failed(settings):
    client = _mpk(settings, lambda request: httpx.Response(403))

    with pytest.raises(AuthenticationFailed) as excinfo:
        await client.get_post_info("20329")

    assert excinfo.value.status_code == 403


@pytest.mark.asyncio
async def test_mpk_unreadable_error_page_raises_http_status_error(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>Bad Gateway</html>")

    client = MpkClient(settings, transport=httpx.MockTransport(handler))

    with pytest.raises(HttpStatusError) as excinfo:
        await client.get_post_info("20329")

    assert excinfo.value.status_code == 502


@pytest.mark.asyncio
async def test_mpk_course_posts_joins_course_ids(settings):
    seen: list[httpx.Request] = []
    body = [{"c": 25622727, "p": "_ivH", "r": [{"s": "20362", "t": "1900-01-01 23:34:00"}]}]
    client = _mpk(settings, lambda request: httpx.Response(200, json=body), seen)

    courses = await client.get_course_posts([25622727, 25623045])

    assert courses[0].stops[0].symbol == "20362"
    assert _params(seen[1]) == [("function", "getCoursePosts"), ("courses", "25622727,25623045")]


@pytest.mark.asyncio
async def test_mpk_post_plate_requests_json_output(settings):
    seen: list[httpx.Request] = []
    body = {"l": "250", "p": "20329", "s": [], "t": []}
    client = _mpk(settings, lambda request: httpx.Response(200, json=body), seen)

    plate = await client.get_post_plate("20329", "250")

    assert plate.line == "250"
    assert _params(seen[1]) == [
        ("function", "getPostPlate"),
        ("post", "20329"),
        ("line", "250"),
        ("output", "json"),
    ]


@pytest.mark.asyncio
async def test_mpk_connection_failure_raises_transport_error(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    client = MpkClient(settings, transport=httpx.MockTransport(handler))

    with pytest.raises(TransportError):
        await client.get_post_info("20329")


@pytest.mark.asyncio
async def test_sims_timetable_path_and_partial_failure(settings):
    seen: list[str] = []
    timetable = {
        "line": {"id": 911, "name": "LINIA 911", "number": " 911"},
        "direction": {"id": 3918, "name": "PL. GRUNWALDZKI"},
        "timetableDepartureTime": 1740174780000,
        "showType": -1,
        "departureHide": False,
    }

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        if request.url.host == "m2.test":
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, content=json.dumps([timetable]).encode())

    client = SimsClient(settings, transport=httpx.MockTransport(handler))
    outcome = await client.get_timetable(31918010)

    assert seen == ["/timetables/busStops/31918010"] * 3
    assert [t.line.number for t in outcome.items] == ["911", "911"]
    assert outcome.succeeded_hosts == [MIRRORS[0], MIRRORS[2]]
    assert outcome.errors[0].host == MIRRORS[1]
    assert outcome.errors[0].stage is FetchStage.TRANSPORT


@pytest.mark.asyncio
async def test_sims_clients_keep_their_own_hosts(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[bus_stop(request.url.host)])

    transport = httpx.MockTransport(handler)
    default = SimsClient(settings, transport=transport)
    custom = SimsClient(settings, hosts=["https://other.test"], transport=transport)

    assert default.hosts == MIRRORS
    assert [s.code for s in (await custom.get_bus_stops()).items] == ["other.test"]
    assert [s.code for s in (await default.get_bus_stops()).items] == ["m1.test", "m2.test", "m3.test"]


@pytest.mark.asyncio
async def test_sims_vehicles_endpoint(settings):
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json=[])

    outcome = await SimsClient(settings, hosts=MIRRORS[:1], transport=httpx.MockTransport(handler)).get_buses()

    assert seen == ["https://m1.test/vehicles"]
    assert outcome.items == []
    assert not outcome.all_failed
