"""Retry executor with capped exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..resilience_config import RetryPolicy
from .outcome import ErrorKind, Failure, OperationOutcome, Success
from .translator import ErrorTranslator

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
ContinueCheck = Callable[[], Awaitable[bool]]
Sleep = Callable[[float], Awaitable[None]]


class RetryExecutor:
    """Run an operation under a retry policy.

    Each failure is classified by the ErrorTranslator. Transient kinds are
    retried after ``min(base * 2**(attempt-1), max)`` seconds while
    attempts remain; every other kind is returned after the first attempt.

    The wrapped operation must be idempotent. The backoff wait is an
    ``asyncio.sleep``, so cancelling the calling task aborts the sequence
    mid-backoff with ``asyncio.CancelledError``.
    """

    def __init__(
        self,
        translator: ErrorTranslator | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._translator = translator or ErrorTranslator()
        self._sleep = sleep

    async def execute(
        self,
        operation: Operation[T],
        policy: RetryPolicy,
        should_continue: ContinueCheck | None = None,
    ) -> OperationOutcome[T]:
        """Execute an operation, retrying transient failures.

        Args:
            operation: Zero-argument coroutine function to invoke.
            policy: Attempt budget and backoff bounds.
            should_continue: Checked before and after each backoff wait;
                returning False ends the sequence with a CIRCUIT_OPEN failure
                without invoking the operation again.

        Returns:
            Success with the value, or the terminal Failure.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                value = await operation()
            except Exception as exc:
                translated = self._translator.translate(exc)
                failure = translated.to_failure(attempts=attempt, cause=exc)
            else:
                if attempt > 1:
                    logger.info("Operation succeeded on attempt %d", attempt)
                return Success(value=value, attempts=attempt)

            if not failure.retriable:
                logger.debug(
                    "Non-retriable %s failure on attempt %d",
                    failure.kind.value,
                    attempt,
                )
                return failure

            if attempt >= policy.max_attempts:
                logger.warning(
                    "Operation failed after %d attempt(s): %s",
                    attempt,
                    failure.message,
                )
                return failure

            if should_continue is not None and not await should_continue():
                return _circuit_opened(failure)

            delay = policy.delay_for(attempt)
            logger.info(
                "Attempt %d/%d failed (%s), retrying in %.2fs",
                attempt,
                policy.max_attempts,
                failure.kind.value,
                delay,
            )
            await self._sleep(delay)

            # The circuit may have opened while this sequence was backing off
            if should_continue is not None and not await should_continue():
                return _circuit_opened(failure)


def _circuit_opened(failure: Failure) -> Failure:
    logger.warning(
        "Stopping retries after attempt %d: circuit opened", failure.attempts
    )
    return Failure(
        kind=ErrorKind.CIRCUIT_OPEN,
        message=(
            "GitLab API became unavailable during retries (circuit breaker "
            f"open). Last error: {failure.message}"
        ),
        retriable=False,
        attempts=failure.attempts,
        cause=failure.cause,
    )
