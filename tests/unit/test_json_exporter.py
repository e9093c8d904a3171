import json

from adapters.json_exporter import export_json, to_jsonable
from core.domain.models import FetchOutcome, FetchStage, HostFailure, PositionalBatch
from core.domain.mpk import Vehicle
from core.domain.sims import SimsBusStop
from core.errors import RecordMismatch
from tests.helpers import COMPACT_VEHICLE, bus_stop


def test_outcome_lists_items_and_failures():
    outcome = FetchOutcome(
        items=[SimsBusStop.model_validate(bus_stop("18360"))],
        errors=[HostFailure(host="https://m2.test", stage=FetchStage.DECODE, error=RecordMismatch(0, "bad"))],
        succeeded_hosts=["https://m1.test"],
    )

    data = to_jsonable(outcome)

    assert data["items"][0]["code"] == "18360"
    assert data["errors"][0]["stage"] == "decode"
    assert data["errors"][0]["kind"] == "decode"
    assert data["succeeded_hosts"] == ["https://m1.test"]


def test_batch_keeps_metadata():
    batch = PositionalBatch(metadata="ts", records=[Vehicle.model_validate(COMPACT_VEHICLE)])

    data = to_jsonable(batch)

    assert data["metadata"] == "ts"
    assert data["records"][0]["vehicle_type"] == "BUS"


def test_export_writes_utf8(tmp_path):
    stops = [SimsBusStop.model_validate(bus_stop("1", "Plac Grunwaldzki Ł"))]
    path = export_json(value=stops, output_path=tmp_path / "nested" / "stops.json")

    text = path.read_text(encoding="utf-8")
    assert "Ł" in text
    assert json.loads(text)[0]["name"] == "Plac Grunwaldzki Ł"
