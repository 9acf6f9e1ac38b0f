"""Concurrency tests for the circuit breaker.

Many callers share one breaker; these tests verify that counters and
transitions are not lost when calls race.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from gitlab_pipeline_generator.resilience import CircuitBreaker, ResilientOperationFacade
from gitlab_pipeline_generator.resilience_config import (
    CircuitBreakerConfig,
    CircuitState,
    ResilienceConfig,
    RetryPolicy,
)

if TYPE_CHECKING:
    from tests.conftest import FakeClock


async def test_concurrent_failures_are_all_counted(clock: FakeClock) -> None:
    breaker = CircuitBreaker("gitlab", CircuitBreakerConfig(failure_threshold=1000), clock=clock)

    await asyncio.gather(*(breaker.record_failure(f"f{i}") for i in range(200)))

    stats = await breaker.get_stats()
    assert stats.consecutive_failures == 200
    assert stats.total_failures == 200
    assert stats.state == CircuitState.CLOSED


async def test_concurrent_failures_open_circuit_once(clock: FakeClock) -> None:
    breaker = CircuitBreaker("gitlab", CircuitBreakerConfig(failure_threshold=5), clock=clock)

    opened = await asyncio.gather(*(breaker.record_failure(f"f{i}") for i in range(20)))

    assert opened.count(True) == 1
    assert breaker.state == CircuitState.OPEN


async def test_concurrent_probes_respect_budget(clock: FakeClock) -> None:
    config = CircuitBreakerConfig(
        failure_threshold=1, recovery_timeout_seconds=10.0, half_open_max_calls=2
    )
    breaker = CircuitBreaker("gitlab", config, clock=clock)
    await breaker.record_failure("boom")
    clock.advance(10.0)

    allowed = await asyncio.gather(*(breaker.check_and_allow() for _ in range(10)))

    assert allowed.count(True) == 2
    assert breaker.state == CircuitState.HALF_OPEN


async def test_concurrent_facade_calls_share_breaker(clock: FakeClock) -> None:
    """Concurrent failing callers trip the shared breaker; later calls fail fast."""
    breaker = CircuitBreaker(
        "gitlab", CircuitBreakerConfig(failure_threshold=3), clock=clock
    )
    facade = ResilientOperationFacade(
        breaker, ResilienceConfig(operation_timeout_seconds=None)
    )
    calls = 0

    async def failing() -> None:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0)
        raise ConnectionError("connection refused")

    outcomes = await asyncio.gather(
        *(facade.try_execute(failing, RetryPolicy.no_retry()) for _ in range(3))
    )
    assert all(not o.is_success for o in outcomes)
    assert breaker.state == CircuitState.OPEN

    calls_before = calls
    outcome = await facade.try_execute(failing, RetryPolicy.no_retry())
    assert not outcome.is_success
    assert calls == calls_before
