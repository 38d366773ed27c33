"""Error taxonomy for gateway failures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION = "CONFIGURATION"
    TIMEOUT = "TIMEOUT"
    RATE_LIMIT = "RATE_LIMIT"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    VALIDATION = "VALIDATION"
    INVALID_INPUT = "INVALID_INPUT"
    NETWORK = "NETWORK"
    UNKNOWN = "UNKNOWN"


@dataclass(eq=False)
class GatewayError(RuntimeError):
    """Single error type for every gateway failure, discriminated by ``kind``.

    ``status_code`` is set for HTTP-level failures (RATE_LIMIT, PROVIDER_ERROR
    and UNKNOWN responses). ``retry_after_ms`` is only set for RATE_LIMIT when
    the gateway sent a usable ``Retry-After`` header. The underlying exception,
    if any, is chained as ``__cause__``.
    """

    kind: ErrorKind
    message: str
    status_code: int | None = None
    retry_after_ms: int | None = None

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.kind.value} ({self.status_code}): {self.message}"
        return f"{self.kind.value}: {self.message}"
