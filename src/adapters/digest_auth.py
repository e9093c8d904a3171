"""HTTP Digest negotiation for the MPK service, driven through `httpx.DigestAuth`.

`httpx.DigestAuth.auth_flow` is stepped by hand instead of being passed as
`auth=`, so a challenge that httpx would silently ignore (no header, wrong
scheme, `auth-int` only) surfaces as `MalformedChallenge` and a rejected
retry as `AuthenticationFailed`.

A fresh `DigestAuth` is built per call: nonces are never reused.
"""

from __future__ import annotations

from collections.abc import Sequence
from urllib.request import parse_http_list, parse_keqv_list

import httpx

from adapters.http_client import describe_transport_error
from core.domain.models import DigestChallenge, DigestCredentials
from core.errors import AuthenticationFailed, MalformedChallenge, TransportError
from core.observability import get_logger

logger = get_logger(__name__)

SUPPORTED_ALGORITHMS = frozenset(
    {
        "MD5",
        "MD5-SESS",
        "SHA",
        "SHA-SESS",
        "SHA-256",
        "SHA-256-SESS",
        "SHA-512",
        "SHA-512-SESS",
    }
)

# httpx copies these values into quoted-strings without escaping.
_UNQUOTABLE = ('"', "\\")


def _quotable(value: str) -> bool:
    return not any(char in value for char in _UNQUOTABLE)


def parse_challenge(header: str | None) -> DigestChallenge:
    """Parse and vet the value of a `WWW-Authenticate: Digest ...` header."""

    if not header:
        raise MalformedChallenge("401 response carries no WWW-Authenticate header")

    scheme, _, fields = header.strip().partition(" ")
    if scheme.lower() != "digest":
        raise MalformedChallenge(f"unsupported authentication scheme: {scheme!r}")

    try:
        params = {key.lower(): value for key, value in parse_keqv_list(parse_http_list(fields)).items()}
    except ValueError as exc:
        raise MalformedChallenge(f"unparseable digest challenge: {exc}") from exc

    realm = params.get("realm")
    nonce = params.get("nonce")
    if realm is None or not nonce:
        raise MalformedChallenge("digest challenge lacks realm or nonce")

    algorithm = params.get("algorithm", "MD5").upper()
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise MalformedChallenge(f"unsupported digest algorithm: {algorithm}")

    opaque = params.get("opaque")
    if not all(_quotable(value) for value in (realm, nonce, opaque or "")):
        raise MalformedChallenge("digest challenge values must not contain quotes or backslashes")

    challenge = DigestChallenge(realm=realm, nonce=nonce, opaque=opaque, qop=params.get("qop"), algorithm=algorithm)
    select_qop(challenge.qop)
    return challenge


def select_qop(qop: str | None) -> str | None:
    """Pick `auth` out of the offered qop tokens (`None` when no qop was offered)."""

    if qop is None:
        return None
    offered = [token.strip().lower() for token in qop.split(",") if token.strip()]
    if "auth" in offered:
        return "auth"
    raise MalformedChallenge(f"unsupported qop: {qop!r}")


def _digest_header(response: httpx.Response) -> str | None:
    headers = response.headers.get_list("www-authenticate")
    for header in headers:
        if header.lower().startswith("digest "):
            return header
    return headers[0] if headers else None


async def _send(client: httpx.AsyncClient, request: httpx.Request) -> httpx.Response:
    try:
        return await client.send(request)
    except httpx.HTTPError as exc:
        raise TransportError(describe_transport_error(exc), url=str(request.url)) from exc


async def digest_get(
    client: httpx.AsyncClient,
    url: str,
    credentials: DigestCredentials,
    *,
    params: Sequence[tuple[str, str]] | None = None,
) -> httpx.Response:
    """Perform a Digest-authenticated GET (two round trips when challenged).

    Anything but a `401` on the first request is returned as-is. A second
    `401` or any non-2xx on the authenticated retry raises
    `AuthenticationFailed`.
    """

    auth = httpx.DigestAuth(credentials.username, credentials.secret)
    flow = auth.auth_flow(client.build_request("GET", url, params=list(params) if params else None))

    first = await _send(client, next(flow))
    if first.status_code != 401:
        flow.close()
        return first

    challenge = parse_challenge(_digest_header(first))
    logger.debug(
        "digest challenge received",
        realm=challenge.realm,
        algorithm=challenge.algorithm,
        qop=challenge.qop,
    )

    try:
        retry = flow.send(first)
    except httpx.ProtocolError as exc:
        raise MalformedChallenge(str(exc)) from exc

    second = await _send(client, retry)
    flow.close()
    if not second.is_success:
        raise AuthenticationFailed(second.status_code)
    return second
