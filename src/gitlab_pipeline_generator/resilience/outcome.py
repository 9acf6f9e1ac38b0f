"""Operation outcomes returned by the resilient access layer.

A call through the layer never raises for a dependency fault. It returns
either a ``Success`` carrying the value or a ``Failure`` carrying the
classified error kind, a human-readable message and the retriable flag.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(Enum):
    """Categorical classification of a remote failure."""

    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK = "network"
    TIMEOUT = "timeout"
    CIRCUIT_OPEN = "circuit_open"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome.

    Attributes:
        value: Value returned by the wrapped operation.
        attempts: Number of invocations it took.
    """

    value: T
    attempts: int = 1

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Terminal failure outcome.

    Attributes:
        kind: Classified error kind.
        message: Human-readable explanation.
        retriable: Whether the kind is transient.
        attempts: Invocations made before giving up (0 when the breaker
            rejected the call).
        cause: The raw exception, when there was one.
    """

    kind: ErrorKind
    message: str
    retriable: bool
    attempts: int = 0
    cause: BaseException | None = None

    @property
    def is_success(self) -> bool:
        return False


OperationOutcome = Union[Success[T], Failure]
