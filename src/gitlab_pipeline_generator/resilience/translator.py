"""Failure classification for GitLab API calls.

Turns a raw failure (an HTTP status, a client exception, a transport
error) into an ``ErrorKind``, a retriable flag, and a message a user can
act on.
"""

from __future__ import annotations

import asyncio
import logging
import socket
import time
from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from ..gitlab_client.errors import GitLabApiError, RateLimitedError
from .exceptions import CircuitOpenError
from .outcome import ErrorKind, Failure

logger = logging.getLogger(__name__)

_RETRIABLE_KINDS = frozenset(
    {
        ErrorKind.RATE_LIMITED,
        ErrorKind.SERVER_ERROR,
        ErrorKind.NETWORK,
        ErrorKind.TIMEOUT,
    }
)


@dataclass(frozen=True)
class TranslatedError:
    """Result of classifying a raw failure."""

    kind: ErrorKind
    retriable: bool
    message: str

    def to_failure(self, attempts: int, cause: BaseException | None = None) -> Failure:
        return Failure(
            kind=self.kind,
            message=self.message,
            retriable=self.retriable,
            attempts=attempts,
            cause=cause,
        )


@dataclass(frozen=True)
class RateLimitInfo:
    """Rate limit information from GitLab response headers.

    Attributes:
        limit: Requests allowed per window, if reported.
        remaining: Requests left in the current window, if reported.
        reset_at: Unix timestamp when the window resets, if reported.
        retry_after_seconds: ``Retry-After`` value, if reported.
    """

    limit: int | None = None
    remaining: int | None = None
    reset_at: int | None = None
    retry_after_seconds: float | None = None

    @property
    def is_exceeded(self) -> bool:
        return self.remaining is not None and self.remaining <= 0

    def seconds_until_reset(self, now: float | None = None) -> float | None:
        """Seconds until the caller may send again, if known."""
        if self.retry_after_seconds is not None:
            return self.retry_after_seconds
        if self.reset_at is None:
            return None
        current = time.time() if now is None else now
        return max(0.0, self.reset_at - current)

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> RateLimitInfo:
        """Parse ``RateLimit-*`` and ``Retry-After`` headers (case-insensitive)."""
        lowered = {key.lower(): value for key, value in headers.items()}
        return cls(
            limit=_parse_int(lowered.get("ratelimit-limit")),
            remaining=_parse_int(lowered.get("ratelimit-remaining")),
            reset_at=_parse_int(lowered.get("ratelimit-reset")),
            retry_after_seconds=_parse_float(lowered.get("retry-after")),
        )


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _parse_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value.strip())
    except ValueError:
        return None


class ErrorTranslator:
    """Classify raw failures into error kinds and user-facing messages.

    Usage:
        translator = ErrorTranslator()
        translated = translator.translate(exc)
        if translated.retriable:
            ...
    """

    def is_retriable(self, kind: ErrorKind) -> bool:
        """Return True for transient error kinds."""
        return kind in _RETRIABLE_KINDS

    def translate(self, failure: BaseException) -> TranslatedError:
        """Classify a raw exception raised by a wrapped operation.

        Args:
            failure: The exception the operation raised.

        Returns:
            TranslatedError with kind, retriable flag and message.
        """
        if isinstance(failure, CircuitOpenError):
            return self._make(
                ErrorKind.CIRCUIT_OPEN,
                "GitLab API is temporarily unavailable (circuit breaker open). "
                f"Retry in {failure.time_until_retry:.0f}s or continue in manual mode.",
            )

        if isinstance(failure, GitLabApiError):
            rate_limit = None
            if isinstance(failure, RateLimitedError):
                rate_limit = RateLimitInfo.from_headers(failure.headers)
            return self.translate_status(
                failure.status_code,
                detail=failure.message,
                error_code=failure.error_code,
                rate_limit=rate_limit,
            )

        if isinstance(failure, httpx.HTTPStatusError):
            return self.translate_status(
                failure.response.status_code,
                detail=failure.response.text,
                rate_limit=RateLimitInfo.from_headers(failure.response.headers),
            )

        # Timeouts first: httpx.TimeoutException is also a TransportError.
        if isinstance(failure, (httpx.TimeoutException, TimeoutError, asyncio.TimeoutError)):
            return self._make(
                ErrorKind.TIMEOUT,
                "GitLab request timeout: no response within the deadline. "
                "Try again or increase the timeout setting.",
            )

        if isinstance(failure, (httpx.TransportError, ConnectionError, socket.gaierror)):
            return self._make(
                ErrorKind.NETWORK,
                f"Unable to reach GitLab: network connection failed ({failure}). "
                "Check your internet connection and the instance URL.",
            )

        logger.debug("Unclassified failure %s: %s", type(failure).__name__, failure)
        return self._make(
            ErrorKind.UNKNOWN,
            f"Unexpected GitLab API error: {failure}. "
            "Please check your connection and try again.",
        )

    def translate_status(
        self,
        status_code: int,
        detail: str | None = None,
        error_code: str | None = None,
        rate_limit: RateLimitInfo | None = None,
    ) -> TranslatedError:
        """Classify an HTTP status returned by GitLab.

        Args:
            status_code: HTTP status code.
            detail: Server-provided detail, used for unknown statuses.
            error_code: GitLab ``error`` field, refines auth messages.
            rate_limit: Parsed rate limit headers for 429 responses.
        """
        if status_code == 401:
            if error_code == "invalid_token":
                message = (
                    "Authentication failed: your GitLab token is invalid or has expired. "
                    "Please generate a new personal access token."
                )
            else:
                message = (
                    "Authentication failed. Please check your GitLab personal access "
                    "token and ensure it has the required permissions."
                )
            return self._make(ErrorKind.UNAUTHORIZED, message)

        if status_code == 403:
            if error_code == "insufficient_scope":
                message = (
                    "Your GitLab token doesn't have the required permission scope. "
                    "Please ensure it has the 'api' or 'read_api' scope."
                )
            else:
                message = (
                    "Access denied. You don't have permission to access this resource. "
                    "Please check your project permissions or contact the project owner."
                )
            return self._make(ErrorKind.FORBIDDEN, message)

        if status_code == 404:
            return self._make(
                ErrorKind.NOT_FOUND,
                "Resource not found. The specified project, file, or endpoint doesn't "
                "exist or you don't have access to it.",
            )

        if status_code == 408:
            return self._make(
                ErrorKind.TIMEOUT,
                "GitLab request timeout (HTTP 408). Please try again.",
            )

        if status_code == 429:
            message = "GitLab rate limit exceeded. Please wait a moment before making more requests."
            wait = rate_limit.seconds_until_reset() if rate_limit else None
            if wait is not None:
                message += f" The limit resets in about {wait:.0f}s."
            return self._make(ErrorKind.RATE_LIMITED, message)

        if status_code >= 500:
            return self._make(
                ErrorKind.SERVER_ERROR,
                f"GitLab server error (HTTP {status_code}). Please try again later "
                "or contact your GitLab administrator.",
            )

        suffix = f": {detail}" if detail else ""
        return self._make(
            ErrorKind.UNKNOWN,
            f"GitLab API error (HTTP {status_code}){suffix}. "
            "Please check your input parameters and try again.",
        )

    def _make(self, kind: ErrorKind, message: str) -> TranslatedError:
        return TranslatedError(kind=kind, retriable=self.is_retriable(kind), message=message)
