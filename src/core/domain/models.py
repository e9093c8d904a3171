"""Value types shared by the digest path and the mirror fan-out.

Requests, credentials, challenges and decoded envelopes are immutable.
`FetchOutcome` is the one mutable container, filled by `merge_legs` after
every mirror leg has settled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from core.errors import ClientError, UpstreamBusinessError

T = TypeVar("T")


@dataclass(frozen=True)
class RequestDescriptor:
    """One logical request: host(s), path and ordered query parameters.

    Duplicate parameter keys are allowed and their order is preserved.
    """

    hosts: tuple[str, ...]
    path: str = ""
    params: tuple[tuple[str, str], ...] = ()

    def url_for(self, host: str) -> str:
        base = host.rstrip("/")
        path = self.path.strip("/")
        return f"{base}/{path}" if path else base


@dataclass(frozen=True)
class DigestCredentials:
    username: str
    secret: str = field(repr=False)

    def __post_init__(self) -> None:
        # The username travels inside a quoted-string of the Authorization header.
        if '"' in self.username or "\\" in self.username:
            raise ValueError("digest username must not contain quotes or backslashes")


@dataclass(frozen=True)
class DigestChallenge:
    """Parameters of one `WWW-Authenticate: Digest ...` challenge."""

    realm: str
    nonce: str
    opaque: str | None = None
    qop: str | None = None
    algorithm: str = "MD5"


class ApiFailure(BaseModel):
    """Error-shaped body: `{"info": ..., "message": ..., "stackTrace": ...}`."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    info: str = Field(..., description="Short error category reported by the origin.")
    message: str = Field(..., description="Human readable error message.")
    stack_trace: str = Field(
        ...,
        alias="stackTrace",
        description="Server-side stack trace (diagnostics only).",
    )


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


ResponseEnvelope = Success[T] | ApiFailure


def unwrap(envelope: ResponseEnvelope[T]) -> T:
    """Return the success value or raise `UpstreamBusinessError`."""

    if isinstance(envelope, ApiFailure):
        raise UpstreamBusinessError(envelope)
    return envelope.value


@dataclass(frozen=True)
class PositionalBatch(Generic[T]):
    """`[metadata, record, record, ...]` decoded into a metadata string and records."""

    metadata: str
    records: list[T]


class FetchStage(str, Enum):
    TRANSPORT = "transport"
    DECODE = "decode"


@dataclass(frozen=True)
class HostFailure:
    """Failure of one mirror leg, tagged with the stage that failed."""

    host: str
    stage: FetchStage
    error: ClientError

    def describe(self) -> str:
        return f"{self.host} [{self.stage.value}] {self.error}"


@dataclass
class FetchOutcome(Generic[T]):
    """Merged result of a fan-out call.

    `items` follow host dispatch order then intra-host order; `errors` follow
    host dispatch order as well.
    """

    items: list[T] = field(default_factory=list)
    errors: list[HostFailure] = field(default_factory=list)
    succeeded_hosts: list[str] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        return bool(self.errors)

    @property
    def all_failed(self) -> bool:
        """No host answered with a decodable payload (an empty list still counts as an answer)."""

        return not self.succeeded_hosts
