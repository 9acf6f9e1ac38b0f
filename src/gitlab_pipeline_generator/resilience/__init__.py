"""Resilient access layer for the GitLab API.

Every remote call goes through a circuit breaker gate and a retry
executor, and every failure is classified by the error translator.

The circuit breaker has three states:
- CLOSED: Normal operation, failures are counted
- OPEN: Circuit tripped, calls fail fast with CIRCUIT_OPEN
- HALF_OPEN: Testing recovery, limited probe calls allowed
"""

from .breaker import Admission, CircuitBreaker, CircuitBreakerStats
from .exceptions import CircuitOpenError, ResilienceError
from .facade import PartialItem, PartialResult, ResilientOperationFacade
from .outcome import ErrorKind, Failure, OperationOutcome, Success
from .registry import CircuitBreakerRegistry
from .retry import RetryExecutor
from .translator import ErrorTranslator, RateLimitInfo, TranslatedError

__all__ = [
    "Admission",
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitBreakerStats",
    "CircuitOpenError",
    "ErrorKind",
    "ErrorTranslator",
    "Failure",
    "OperationOutcome",
    "PartialItem",
    "PartialResult",
    "RateLimitInfo",
    "ResilienceError",
    "ResilientOperationFacade",
    "RetryExecutor",
    "Success",
    "TranslatedError",
]
