"""Single entry point for resilient calls to a remote dependency.

Composes the circuit breaker gate, the retry executor and the error
translator. Callers get an ``OperationOutcome`` back and never see an
exception for a dependency fault.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ..resilience_config import DEFAULT_CONFIG, ResilienceConfig, RetryPolicy
from .breaker import Admission, CircuitBreaker, CircuitBreakerStats
from .exceptions import CircuitOpenError
from .outcome import ErrorKind, Failure, OperationOutcome, Success
from .retry import RetryExecutor, Sleep
from .translator import ErrorTranslator

logger = logging.getLogger(__name__)

T = TypeVar("T")
InputT = TypeVar("InputT")

_USE_CONFIG: Any = object()


@dataclass(frozen=True)
class PartialItem(Generic[InputT, T]):
    """Outcome of one item in a partial run."""

    input: InputT
    outcome: OperationOutcome[T]


@dataclass
class PartialResult(Generic[InputT, T]):
    """Per-item outcomes of a batch that tolerates individual failures."""

    items: list[PartialItem[InputT, T]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for item in self.items if item.outcome.is_success)

    @property
    def failure_count(self) -> int:
        return len(self.items) - self.success_count

    @property
    def has_any_success(self) -> bool:
        return self.success_count > 0

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0

    @property
    def successful_results(self) -> list[T]:
        return [item.outcome.value for item in self.items if isinstance(item.outcome, Success)]

    @property
    def failures(self) -> list[Failure]:
        return [item.outcome for item in self.items if isinstance(item.outcome, Failure)]


class ResilientOperationFacade:
    """Run remote operations behind a circuit breaker with retries.

    The breaker is injected so that every facade talking to the same
    dependency shares one instance.

    Usage:
        breaker = CircuitBreaker("gitlab", config.circuit)
        facade = ResilientOperationFacade(breaker, config)

        outcome = await facade.try_execute(lambda: client.get_project(42))
        if outcome.is_success:
            project = outcome.value

    Callers should still impose a coarse external timeout: the retry
    policy bounds the backoff, not the latency of the operation itself.
    """

    def __init__(
        self,
        breaker: CircuitBreaker,
        config: ResilienceConfig | None = None,
        translator: ErrorTranslator | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._breaker = breaker
        self._config = config or DEFAULT_CONFIG
        self._translator = translator or ErrorTranslator()
        self._retry = RetryExecutor(self._translator, sleep=sleep)

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def translator(self) -> ErrorTranslator:
        return self._translator

    async def try_execute(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy | None = None,
        timeout: float | None = _USE_CONFIG,
    ) -> OperationOutcome[T]:
        """Execute an operation with circuit breaking and retries.

        Args:
            operation: Zero-argument coroutine function; must be idempotent.
            policy: Retry policy for this call site. Uses the configured
                default if None.
            timeout: Deadline in seconds for the whole sequence, None for no
                deadline. Uses ``operation_timeout_seconds`` if omitted.

        Returns:
            Success or the terminal Failure. The operation is never invoked
            while the breaker is OPEN.

        Raises:
            asyncio.CancelledError: If the calling task is cancelled. A
                cancelled call is not counted as a breaker failure.
        """
        effective_policy = policy or self._config.retry
        deadline = self._config.operation_timeout_seconds if timeout is _USE_CONFIG else timeout

        admission = await self._breaker.admit()
        if not admission.allowed:
            wait = await self._breaker.time_until_retry()
            logger.info(
                "Circuit %s open, rejecting call (retry in %.1fs)",
                self._breaker.identifier,
                wait,
            )
            translated = self._translator.translate(
                CircuitOpenError(self._breaker.identifier, wait)
            )
            return translated.to_failure(attempts=0)

        attempts = 0

        async def counted() -> T:
            nonlocal attempts
            attempts += 1
            return await operation()

        try:
            async with asyncio.timeout(deadline):
                outcome = await self._retry.execute(
                    counted,
                    effective_policy,
                    should_continue=self._breaker.is_accepting_calls,
                )
        except TimeoutError as exc:
            outcome = Failure(
                kind=ErrorKind.TIMEOUT,
                message=(
                    f"GitLab operation timeout: no result within {deadline:.1f}s "
                    f"after {attempts} attempt(s). Try again later."
                ),
                retriable=True,
                attempts=attempts,
                cause=exc,
            )
        except asyncio.CancelledError:
            await self._breaker.release_probe(admission)
            raise

        await self._report(outcome, admission)
        return outcome

    async def _report(self, outcome: OperationOutcome[Any], admission: Admission) -> None:
        """Report a terminal outcome to the breaker."""
        if isinstance(outcome, Success):
            await self._breaker.record_success(admission)
            return
        if outcome.kind == ErrorKind.CIRCUIT_OPEN:
            # Another caller already tripped the circuit mid-sequence.
            return
        await self._breaker.record_failure(outcome.message, admission)

    async def execute_partial(
        self,
        inputs: Iterable[InputT],
        operation: Callable[[InputT], Awaitable[T]],
        continue_on_failure: bool = True,
        policy: RetryPolicy | None = None,
    ) -> PartialResult[InputT, T]:
        """Run an operation per input, collecting each outcome.

        Args:
            inputs: Items to process, in order.
            operation: Coroutine function called with one item.
            continue_on_failure: If False, stop after the first failure.
            policy: Retry policy applied to each item.

        Returns:
            PartialResult with one entry per processed input.
        """
        result: PartialResult[InputT, T] = PartialResult()
        for item in inputs:
            outcome = await self.try_execute(_bind(operation, item), policy)
            result.items.append(PartialItem(input=item, outcome=outcome))
            if not outcome.is_success and not continue_on_failure:
                logger.info("Stopping partial run after failure on %r", item)
                break
        return result

    async def get_circuit_breaker_stats(self) -> CircuitBreakerStats:
        return await self._breaker.get_stats()

    async def reset_circuit_breaker(self) -> None:
        await self._breaker.reset()


def _bind(
    operation: Callable[[InputT], Awaitable[T]], item: InputT
) -> Callable[[], Awaitable[T]]:
    def call() -> Awaitable[T]:
        return operation(item)

    return call
