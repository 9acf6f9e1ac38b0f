"""Circuit breaker registry.

Holds exactly one breaker per protected dependency for the life of the
process, so every caller of the same dependency shares its state.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from ..resilience_config import CircuitBreakerConfig
from .breaker import CircuitBreaker, CircuitBreakerStats

logger = logging.getLogger(__name__)


class CircuitBreakerRegistry:
    """Central registry for per-dependency circuit breakers.

    Usage:
        registry = CircuitBreakerRegistry(config)
        breaker = await registry.get("gitlab:https://gitlab.com")

    Attributes:
        config: Configuration applied to every breaker created here.
    """

    def __init__(
        self,
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or CircuitBreakerConfig()
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}
        self._lock = asyncio.Lock()

    async def get(self, dependency: str) -> CircuitBreaker:
        """Get or create the breaker for a dependency.

        Args:
            dependency: Stable name of the dependency (e.g. the GitLab URL).

        Returns:
            The shared CircuitBreaker for that dependency.
        """
        async with self._lock:
            breaker = self._breakers.get(dependency)
            if breaker is None:
                breaker = CircuitBreaker(dependency, self._config, clock=self._clock)
                self._breakers[dependency] = breaker
                logger.debug("Created circuit breaker for %s", dependency)
            return breaker

    async def get_all_stats(self) -> list[CircuitBreakerStats]:
        """Return stats for every registered breaker, ordered by name."""
        async with self._lock:
            breakers = sorted(self._breakers.values(), key=lambda b: b.identifier)
        return [await breaker.get_stats() for breaker in breakers]

    async def reset_all(self) -> int:
        """Reset every breaker to CLOSED.

        Returns:
            Number of breakers reset.
        """
        async with self._lock:
            breakers = list(self._breakers.values())
        for breaker in breakers:
            await breaker.reset()
        logger.info("Reset %d circuit breakers", len(breakers))
        return len(breakers)
