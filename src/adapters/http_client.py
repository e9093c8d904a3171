"""`httpx.AsyncClient` factory shared by the MPK and SIMS clients."""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Client with the configured timeout and User-Agent.

    `transport` replaces the network, e.g. with `httpx.MockTransport` in tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def describe_transport_error(exc: Exception) -> str:
    """Short, user-facing description of an httpx failure."""

    if isinstance(exc, httpx.TimeoutException):
        return f"timeout ({exc.__class__.__name__})"
    if isinstance(exc, httpx.ConnectError):
        return f"connection failed: {exc}"
    return f"{exc.__class__.__name__}: {exc}"
