"""Resilience layer exception classes."""

from __future__ import annotations


class ResilienceError(Exception):
    """Base exception for resilience layer errors."""

    pass


class CircuitOpenError(ResilienceError):
    """Raised when a circuit is open and a call is blocked."""

    def __init__(self, identifier: str, time_until_retry: float) -> None:
        self.identifier = identifier
        self.time_until_retry = time_until_retry
        super().__init__(f"Circuit {identifier} is open. Retry in {time_until_retry:.1f}s")
