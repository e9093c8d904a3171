"""Response decoding.

Two non-uniform shapes come back from the upstreams:

- a *union* body that is either the success payload or an error object
  `{"info", "message", "stackTrace"}`; there is no discriminator, so the
  success shape is attempted first and the error shape second;
- a *positional batch* `[metadata, record, record, ...]` where element 0 is a
  string and every following element is one record.

Mirrors additionally serve plain record arrays with no metadata prefix.

Every function here is pure: no state survives between calls, so decoding the
same body twice yields equal results.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from core.domain.models import ApiFailure, PositionalBatch, ResponseEnvelope, Success
from core.errors import (
    EmptyBatch,
    InvalidMetadata,
    MalformedJson,
    RecordMismatch,
    SchemaMismatch,
)

T = TypeVar("T")

SNIPPET_BYTES = 200


@lru_cache(maxsize=64)
def _adapter(shape: Any) -> TypeAdapter[Any]:
    return TypeAdapter(shape)


def body_snippet(body: bytes | str, limit: int = SNIPPET_BYTES) -> str:
    raw = body.encode("utf-8") if isinstance(body, str) else body
    return raw[:limit].decode("utf-8", errors="replace")


def load_json(body: bytes | str) -> Any:
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedJson(f"body is not valid JSON: {exc}") from exc


def validate_shape(data: Any, shape: type[T]) -> T:
    """Validate an already-parsed JSON value against `shape` (raises ValidationError)."""

    return _adapter(shape).validate_python(data)


def _record_list(items: list[Any], shape: type[T], *, offset: int) -> list[T]:
    adapter = _adapter(shape)
    records: list[T] = []
    for index, item in enumerate(items, start=offset):
        try:
            records.append(adapter.validate_python(item))
        except ValidationError as exc:
            raise RecordMismatch(index, _first_error(exc)) from exc
    return records


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{location}: {first.get('msg', 'invalid')}"


def batch_from_json(data: Any, shape: type[T]) -> PositionalBatch[T]:
    """Peel element 0 (metadata string) off a parsed array, decode the rest as `shape`."""

    if not isinstance(data, list):
        raise SchemaMismatch(f"expected a JSON array, got {type(data).__name__}")
    if not data:
        raise EmptyBatch("positional batch has no elements")

    metadata = data[0]
    if not isinstance(metadata, str):
        raise InvalidMetadata(f"element 0 must be a string, got {type(metadata).__name__}")

    return PositionalBatch(metadata=metadata, records=_record_list(data[1:], shape, offset=1))


def decode_positional_batch(body: bytes | str, shape: type[T]) -> PositionalBatch[T]:
    return batch_from_json(load_json(body), shape)


def decode_records(body: bytes | str, shape: type[T]) -> list[T]:
    """Decode a plain JSON array of homogeneous records (all-or-nothing)."""

    data = load_json(body)
    if not isinstance(data, list):
        raise SchemaMismatch(
            f"expected a JSON array, got {type(data).__name__}",
            snippet=body_snippet(body),
        )
    return _record_list(data, shape, offset=0)


def decode_batch_records(body: bytes | str, shape: type[T]) -> list[T]:
    """Positional batch decoder that keeps only the records."""

    return decode_positional_batch(body, shape).records


def decode_union(
    body: bytes | str,
    shape: Any,
    *,
    positional: bool = False,
) -> ResponseEnvelope[Any]:
    """Decode a success-or-error body.

    Precedence is fixed: the success shape wins whenever it validates, the
    error shape is only tried afterwards. With `positional=True` the success
    shape is a positional batch of `shape` records.
    """

    data = load_json(body)

    success_error: Exception
    try:
        if positional:
            return Success(batch_from_json(data, shape))
        return Success(validate_shape(data, shape))
    except (ValidationError, SchemaMismatch, EmptyBatch, InvalidMetadata, RecordMismatch) as exc:
        success_error = exc

    try:
        failure = ApiFailure.model_validate(data)
    except ValidationError:
        raise SchemaMismatch(
            f"body matches neither the success shape nor the error shape ({success_error.__class__.__name__})",
            snippet=body_snippet(body),
        ) from success_error
    return failure
