"""Protocols the adapters are written against."""

from core.interfaces.decoder import RecordsDecoder

__all__ = ["RecordsDecoder"]
