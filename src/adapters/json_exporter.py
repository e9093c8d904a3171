"""JSON rendering of decoded results for `--json` and `--output`.

Mirror failures are flattened to host, stage, kind and message.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from core.domain.models import FetchOutcome, HostFailure, PositionalBatch

_ANY = TypeAdapter(Any)


def failure_payload(failure: HostFailure) -> dict[str, Any]:
    return {
        "host": failure.host,
        "stage": failure.stage.value,
        "kind": failure.error.kind,
        "error": str(failure.error),
    }


def to_jsonable(value: Any) -> Any:
    """Plain JSON structure for models, batches and fan-out outcomes."""

    if isinstance(value, FetchOutcome):
        return {
            "items": _ANY.dump_python(value.items, mode="json"),
            "errors": [failure_payload(failure) for failure in value.errors],
            "succeeded_hosts": list(value.succeeded_hosts),
        }
    if isinstance(value, PositionalBatch):
        return {
            "metadata": value.metadata,
            "records": _ANY.dump_python(value.records, mode="json"),
        }
    return _ANY.dump_python(value, mode="json")


def dumps(value: Any) -> str:
    return json.dumps(to_jsonable(value), ensure_ascii=False, indent=2, sort_keys=True)


def export_json(*, value: Any, output_path: Path) -> Path:
    """Export a decoded result as UTF-8 JSON with a stable layout."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dumps(value) + "\n", encoding="utf-8")
    return output_path
