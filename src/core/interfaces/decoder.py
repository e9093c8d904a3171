"""Decoder contract used by the mirror fan-out fetcher.

Any callable `(body, shape) -> list[T]` fits: plain record arrays,
positional batches or a test double.
"""

from __future__ import annotations

from typing import Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class RecordsDecoder(Protocol):
    """Turns one host's raw body into records of `shape`.

    Design rules:
    - Raises a `core.errors.DecodeError` when the body does not fit; the
      fetcher records that as a decode-stage failure of the host.
    - Must not keep state between calls.
    """

    def __call__(self, body: bytes, shape: type[T]) -> list[T]: ...
