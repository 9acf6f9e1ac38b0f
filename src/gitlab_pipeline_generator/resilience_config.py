"""Resilience configuration for GitLab API access.

This module defines configuration dataclasses for the circuit breaker
and the retry executor that protect every call to the GitLab service.
All settings are immutable once created.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class CircuitState(Enum):
    """Possible states for a circuit breaker."""

    CLOSED = "closed"  # Normal operation - calls allowed
    OPEN = "open"  # Circuit tripped - calls fail fast
    HALF_OPEN = "half_open"  # Testing recovery - limited probe calls


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy with capped exponential backoff.

    Attributes:
        max_attempts: Total invocations allowed (first try + retries).
        base_delay_seconds: Delay before the first retry.
        max_delay_seconds: Upper bound for any single delay.
    """

    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 5.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            msg = f"max_attempts must be >= 1, got {self.max_attempts}"
            raise ValueError(msg)
        if self.base_delay_seconds < 0:
            msg = f"base_delay_seconds must be >= 0, got {self.base_delay_seconds}"
            raise ValueError(msg)
        if self.max_delay_seconds < self.base_delay_seconds:
            msg = (
                f"max_delay_seconds ({self.max_delay_seconds}) must be >= "
                f"base_delay_seconds ({self.base_delay_seconds})"
            )
            raise ValueError(msg)

    def delay_for(self, attempt: int) -> float:
        """Return the wait after the given failed attempt (1-based)."""
        delay = self.base_delay_seconds * (2 ** (attempt - 1))
        return min(delay, self.max_delay_seconds)

    @classmethod
    def no_retry(cls) -> RetryPolicy:
        """Single attempt, no backoff."""
        return cls(max_attempts=1, base_delay_seconds=0.0, max_delay_seconds=0.0)

    @classmethod
    def aggressive(cls) -> RetryPolicy:
        """More attempts with shorter waits, for critical reads."""
        return cls(max_attempts=5, base_delay_seconds=0.5, max_delay_seconds=8.0)

    @classmethod
    def conservative(cls) -> RetryPolicy:
        """Fewer attempts, for non-critical reads."""
        return cls(max_attempts=2, base_delay_seconds=2.0, max_delay_seconds=10.0)


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Configuration for a per-dependency circuit breaker.

    Attributes:
        failure_threshold: Consecutive failures before opening the circuit.
        recovery_timeout_seconds: Time in OPEN before a probe is allowed.
        half_open_max_calls: Probe calls admitted while HALF_OPEN.
    """

    failure_threshold: int = 5
    recovery_timeout_seconds: float = 60.0
    half_open_max_calls: int = 2

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            msg = f"failure_threshold must be >= 1, got {self.failure_threshold}"
            raise ValueError(msg)
        if self.recovery_timeout_seconds < 0:
            msg = (
                "recovery_timeout_seconds must be >= 0, "
                f"got {self.recovery_timeout_seconds}"
            )
            raise ValueError(msg)
        if self.half_open_max_calls < 1:
            msg = f"half_open_max_calls must be >= 1, got {self.half_open_max_calls}"
            raise ValueError(msg)


@dataclass(frozen=True)
class ResilienceConfig:
    """Master configuration for the resilient access layer.

    Attributes:
        circuit: Circuit breaker settings shared by every protected dependency.
        retry: Default retry policy for call sites that pass none.
        operation_timeout_seconds: Coarse deadline for a whole call sequence,
            or None to disable it.
    """

    circuit: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    operation_timeout_seconds: float | None = 30.0


# Default configuration instance for convenience
DEFAULT_CONFIG = ResilienceConfig()
