"""Mirror fan-out.

The same logical request goes to every mirror at once; each leg owns its own
request/response lifecycle and reports either records or a `HostFailure`.
Legs never abort each other.

Ordering:
- `asyncio.gather` hands results back by dispatch position, so the merge is a
  pure function of the host list, whatever the completion timing was.
- items: dispatch order, then intra-host order; errors: dispatch order.
"""

from __future__ import annotations

import asyncio
from typing import TypeVar

import httpx

from adapters.http_client import describe_transport_error
from core.domain.models import FetchOutcome, FetchStage, HostFailure, RequestDescriptor
from core.errors import DecodeError, HttpStatusError, TransportError
from core.interfaces.decoder import RecordsDecoder
from core.observability import get_logger
from core.services.decoding import decode_records

T = TypeVar("T")

logger = get_logger(__name__)


async def fetch_leg(
    client: httpx.AsyncClient,
    host: str,
    request: RequestDescriptor,
    shape: type[T],
    decoder: RecordsDecoder,
) -> list[T] | HostFailure:
    """Transport GET then decode for one host; failures become a `HostFailure`."""

    url = request.url_for(host)
    logger.debug("mirror leg dispatched", host=host, path=request.path)

    try:
        response = await client.get(url, params=list(request.params))
    except httpx.HTTPError as exc:
        return _failure(host, FetchStage.TRANSPORT, TransportError(describe_transport_error(exc), url=url))

    if not response.is_success:
        return _failure(host, FetchStage.TRANSPORT, HttpStatusError(response.status_code, url=url))

    try:
        return decoder(response.content, shape)
    except DecodeError as exc:
        return _failure(host, FetchStage.DECODE, exc)
    except Exception as exc:
        # Pluggable decoders may raise anything; it stays confined to this host.
        error = DecodeError(f"{exc.__class__.__name__}: {exc}")
        error.__cause__ = exc
        return _failure(host, FetchStage.DECODE, error)


def _failure(host: str, stage: FetchStage, error: TransportError | DecodeError) -> HostFailure:
    logger.warning("mirror leg failed", host=host, stage=stage.value, error=str(error))
    return HostFailure(host=host, stage=stage, error=error)


def merge_legs(hosts: tuple[str, ...], results: list[list[T] | HostFailure]) -> FetchOutcome[T]:
    """Linearize per-host results (indexed by dispatch position) into one outcome."""

    outcome: FetchOutcome[T] = FetchOutcome()
    for host, result in zip(hosts, results, strict=True):
        if isinstance(result, HostFailure):
            outcome.errors.append(result)
        else:
            outcome.items.extend(result)
            outcome.succeeded_hosts.append(host)
    return outcome


async def fetch_from_mirrors(
    client: httpx.AsyncClient,
    request: RequestDescriptor,
    shape: type[T],
    *,
    decoder: RecordsDecoder = decode_records,
) -> FetchOutcome[T]:
    """Query every mirror concurrently and merge successes and failures.

    Completes once every leg has settled. Cancelling the caller cancels all
    outstanding legs.
    """

    legs = [fetch_leg(client, host, request, shape, decoder) for host in request.hosts]
    results = await asyncio.gather(*legs)
    outcome = merge_legs(request.hosts, list(results))
    logger.debug(
        "mirror fan-out settled",
        path=request.path,
        items=len(outcome.items),
        failed_hosts=len(outcome.errors),
    )
    return outcome
