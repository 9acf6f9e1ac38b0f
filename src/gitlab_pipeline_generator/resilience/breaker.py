"""Circuit breaker for a protected remote dependency.

Stops calling a failing dependency for a cooldown period, then lets a
probe call through to test whether it has recovered.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..resilience_config import CircuitBreakerConfig, CircuitState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Admission:
    """Result of asking the breaker to let one call through.

    Attributes:
        allowed: Whether the call may proceed.
        probe_generation: HALF_OPEN episode whose probe slot this call
            holds, or None for a call admitted outside HALF_OPEN.
    """

    allowed: bool
    probe_generation: int | None = None

    @property
    def is_probe(self) -> bool:
        return self.probe_generation is not None


@dataclass(frozen=True)
class CircuitBreakerStats:
    """Point-in-time snapshot of a circuit breaker."""

    identifier: str
    state: CircuitState
    consecutive_failures: int
    total_failures: int
    total_successes: int
    half_open_calls: int
    last_transition_at: float
    time_until_retry: float


class CircuitBreaker:
    """Three-state circuit breaker shared by every caller of one dependency.

    One instance is created per protected dependency and lives for the
    whole process. All reads and writes of state, counters and the
    transition timestamp happen under a single ``asyncio.Lock``.

    Usage:
        breaker = CircuitBreaker("gitlab", config)

        admission = await breaker.admit()
        if admission.allowed:
            try:
                result = await call()
                await breaker.record_success(admission)
            except Exception as e:
                await breaker.record_failure(str(e), admission)

    Attributes:
        identifier: Name of the protected dependency.
        config: Thresholds and timeouts.
        state: Current circuit state.
    """

    def __init__(
        self,
        identifier: str,
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the circuit breaker.

        Args:
            identifier: Name of the protected dependency (used in logs).
            config: Configuration settings. Uses defaults if None.
            clock: Monotonic time source in seconds.
        """
        self._identifier = identifier
        self._config = config or CircuitBreakerConfig()
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._total_failures = 0
        self._total_successes = 0
        self._half_open_calls = 0
        self._half_open_generation = 0
        self._last_transition_at = clock()

        self._lock = asyncio.Lock()

    @property
    def identifier(self) -> str:
        """Return the circuit identifier."""
        return self._identifier

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    @property
    def state(self) -> CircuitState:
        """Return the current circuit state."""
        return self._state

    @property
    def consecutive_failures(self) -> int:
        """Return the current consecutive failure count."""
        return self._consecutive_failures

    @property
    def last_transition_at(self) -> float:
        return self._last_transition_at

    @property
    def is_open(self) -> bool:
        """Check if circuit is currently open (blocking calls)."""
        return self._state == CircuitState.OPEN

    @property
    def is_closed(self) -> bool:
        """Check if circuit is currently closed (normal operation)."""
        return self._state == CircuitState.CLOSED

    async def admit(self) -> Admission:
        """Ask the gate to let one call through.

        An OPEN circuit whose recovery timeout has elapsed moves to
        HALF_OPEN and admits this call as the first probe. Pass the
        returned Admission back to record_success(), record_failure() or
        release_probe() so only probes decide the HALF_OPEN transition.

        Returns:
            Admission telling whether the call may proceed and whether it
            holds a probe slot.
        """
        async with self._lock:
            if self._state == CircuitState.CLOSED:
                return Admission(allowed=True)

            if self._state == CircuitState.OPEN:
                if not self._should_attempt_recovery():
                    return Admission(allowed=False)
                self._transition_to_half_open()

            # HALF_OPEN: admit a bounded number of probes
            if self._half_open_calls < self._config.half_open_max_calls:
                self._half_open_calls += 1
                return Admission(allowed=True, probe_generation=self._half_open_generation)
            return Admission(allowed=False)

    async def check_and_allow(self) -> bool:
        """Check if a call should be allowed through the circuit.

        Returns:
            True if the call is allowed, False if blocked.
        """
        return (await self.admit()).allowed

    async def is_accepting_calls(self) -> bool:
        """Return False while the circuit is OPEN, without changing state.

        Used between retry attempts: a sequence already admitted through
        the gate stops as soon as another caller has tripped the circuit.
        """
        async with self._lock:
            return self._state != CircuitState.OPEN

    async def release_probe(self, admission: Admission) -> None:
        """Return an admitted probe slot without recording an outcome.

        Called when an admitted call is cancelled. Does nothing unless the
        admission holds a slot in the current HALF_OPEN episode.
        """
        async with self._lock:
            if self._is_current_probe(admission) and self._half_open_calls > 0:
                self._half_open_calls -= 1

    def _is_current_probe(self, admission: Admission) -> bool:
        return (
            self._state == CircuitState.HALF_OPEN
            and admission.probe_generation == self._half_open_generation
        )

    def _decides_half_open(self, admission: Admission | None) -> bool:
        # No admission means a direct report, which is trusted as is
        return admission is None or self._is_current_probe(admission)

    def _should_attempt_recovery(self) -> bool:
        """Check if enough time has passed to attempt recovery."""
        elapsed = self._clock() - self._last_transition_at
        return elapsed >= self._config.recovery_timeout_seconds

    def _time_until_retry(self) -> float:
        if self._state != CircuitState.OPEN:
            return 0.0
        elapsed = self._clock() - self._last_transition_at
        return max(0.0, self._config.recovery_timeout_seconds - elapsed)

    async def time_until_retry(self) -> float:
        """Get seconds until the circuit can attempt recovery."""
        async with self._lock:
            return self._time_until_retry()

    async def record_failure(self, reason: str, admission: Admission | None = None) -> bool:
        """Record a failure and potentially open the circuit.

        Args:
            reason: Human-readable failure reason.
            admission: The Admission the failed call was let through with.
                While HALF_OPEN, only a current probe reopens the circuit.

        Returns:
            True if circuit transitioned to OPEN state, False otherwise.
        """
        async with self._lock:
            self._consecutive_failures += 1
            self._total_failures += 1

            if self._state == CircuitState.HALF_OPEN:
                if not self._decides_half_open(admission):
                    logger.debug(
                        "Circuit %s ignoring non-probe failure while half-open: %s",
                        self._identifier,
                        reason,
                    )
                    return False
                # First probe outcome decides; remaining probe budget is dropped
                self._transition_to_open(reason, from_half_open=True)
                return True

            if self._state == CircuitState.OPEN:
                logger.debug(
                    "Circuit %s failure recorded while open: %s",
                    self._identifier,
                    reason,
                )
                return False

            logger.warning(
                "Circuit %s failure %d/%d: %s",
                self._identifier,
                self._consecutive_failures,
                self._config.failure_threshold,
                reason,
            )
            if self._consecutive_failures >= self._config.failure_threshold:
                self._transition_to_open(reason)
                return True
            return False

    async def record_success(self, admission: Admission | None = None) -> bool:
        """Record a success and potentially close the circuit.

        Args:
            admission: The Admission the call was let through with. While
                HALF_OPEN, only a current probe closes the circuit.

        Returns:
            True if circuit transitioned to CLOSED state, False otherwise.
        """
        async with self._lock:
            self._total_successes += 1

            if self._state == CircuitState.HALF_OPEN and self._decides_half_open(admission):
                self._transition_to_closed()
                return True

            if self._state == CircuitState.CLOSED:
                self._consecutive_failures = 0

            logger.debug(
                "Circuit %s success: state=%s",
                self._identifier,
                self._state.value,
            )
            return False

    async def reset(self) -> None:
        """Manually reset the circuit to closed state.

        This is typically used for administrative intervention.
        """
        async with self._lock:
            if self._state != CircuitState.CLOSED:
                logger.info("Circuit %s manually reset to CLOSED", self._identifier)
            self._state = CircuitState.CLOSED
            self._consecutive_failures = 0
            self._half_open_calls = 0
            self._last_transition_at = self._clock()

    async def get_stats(self) -> CircuitBreakerStats:
        """Return a consistent snapshot of the breaker."""
        async with self._lock:
            return CircuitBreakerStats(
                identifier=self._identifier,
                state=self._state,
                consecutive_failures=self._consecutive_failures,
                total_failures=self._total_failures,
                total_successes=self._total_successes,
                half_open_calls=self._half_open_calls,
                last_transition_at=self._last_transition_at,
                time_until_retry=self._time_until_retry(),
            )

    def _transition_to_open(self, reason: str, from_half_open: bool = False) -> None:
        """Transition circuit to OPEN state."""
        self._state = CircuitState.OPEN
        self._last_transition_at = self._clock()
        self._half_open_calls = 0

        logger.warning(
            "Circuit %s OPENED%s: %s (failures=%d)",
            self._identifier,
            " after failed probe" if from_half_open else "",
            reason,
            self._consecutive_failures,
        )

    def _transition_to_half_open(self) -> None:
        """Transition circuit to HALF_OPEN state for recovery testing."""
        self._state = CircuitState.HALF_OPEN
        self._last_transition_at = self._clock()
        self._half_open_calls = 0
        self._half_open_generation += 1

        logger.info("Circuit %s entering HALF_OPEN for recovery test", self._identifier)

    def _transition_to_closed(self) -> None:
        """Transition circuit to CLOSED state after successful recovery."""
        self._state = CircuitState.CLOSED
        self._last_transition_at = self._clock()
        self._consecutive_failures = 0
        self._half_open_calls = 0

        logger.info("Circuit %s CLOSED after successful recovery", self._identifier)
