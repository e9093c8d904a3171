"""Endpoint clients: `MpkClient` (one digest-protected host) and `SimsClient` (mirrors)."""

from adapters.transit_sources.mpk_wroc import MpkClient
from adapters.transit_sources.sims import SimsClient

__all__ = [
    "MpkClient",
    "SimsClient",
]
