"""Client error taxonomy.

Every failure raised by the acquisition layer is a `ClientError` with a
`kind` (transport, auth, decode, upstream) so callers can branch on the
category without matching concrete classes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.domain.models import ApiFailure


class ClientError(Exception):
    """Base class for every error surfaced by the transit clients."""

    kind: str = "client"


class TransportError(ClientError):
    """Connection, timeout or DNS failure for one request."""

    kind = "transport"

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class HttpStatusError(TransportError):
    """The host answered, but not with a 2xx status."""

    def __init__(self, status_code: int, *, url: str | None = None) -> None:
        super().__init__(f"HTTP {status_code}", url=url)
        self.status_code = status_code


class AuthError(ClientError):
    kind = "auth"


class MalformedChallenge(AuthError):
    """The `WWW-Authenticate` header is missing, not Digest, or unsupported."""


class AuthenticationFailed(AuthError):
    """The authenticated retry was rejected."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"digest authentication failed with HTTP {status_code}")
        self.status_code = status_code


class DecodeError(ClientError):
    kind = "decode"


class MalformedJson(DecodeError):
    """The body is not valid JSON."""


class SchemaMismatch(DecodeError):
    """The body matched neither the success shape nor the error shape."""

    def __init__(self, message: str, *, snippet: str = "") -> None:
        super().__init__(f"{message} (body starts with: {snippet!r})" if snippet else message)
        self.snippet = snippet


class EmptyBatch(DecodeError):
    """A positional batch had no elements at all."""


class InvalidMetadata(DecodeError):
    """Element 0 of a positional batch is not a string."""


class RecordMismatch(DecodeError):
    """One record of a batch failed to decode; the whole batch is rejected."""

    def __init__(self, index: int, detail: str) -> None:
        super().__init__(f"record at index {index} does not match: {detail}")
        self.index = index


class UpstreamBusinessError(ClientError):
    """The origin reported a logical failure through the error-shaped body."""

    kind = "upstream"

    def __init__(self, failure: ApiFailure) -> None:
        super().__init__(f"{failure.info}: {failure.message}\nStack trace: {failure.stack_trace}")
        self.failure = failure
