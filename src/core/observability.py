"""Structured logging (structlog).

Adapters call `get_logger(__name__)`; the CLI calls `configure_logging` once
at startup. Credentials are never passed as log fields.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog


def resolve_level(level: str | int) -> int:
    """Translate a level name (``"info"``) or number into a logging level."""

    if isinstance(level, int):
        return level
    return getattr(logging, level.strip().upper(), logging.WARNING)


def configure_logging(
    level: str | int = logging.WARNING,
    output: TextIO | None = None,
    json_format: bool = False,
) -> None:
    """Configure structlog processors and the stdlib root logger.

    Args:
        level: Logging level name or number.
        output: Output stream (default: the current stderr, so stdout stays clean for `--json`).
        json_format: Render JSON lines instead of the colored console renderer.
    """

    output = output or sys.stderr
    numeric_level = resolve_level(level)
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=output.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format="%(message)s", stream=output, level=numeric_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
