"""Graceful degradation when the GitLab API cannot be used.

The coordinator is invoked whenever a resilient call ends in a terminal
failure. It hands off to the degraded analysis table and the pipeline
generator so the tool still produces a usable (if reduced-fidelity)
result, and turns the failure into guidance for the user.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from ..analysis import AnalysisResult, ProjectType
from ..pipeline import PipelineConfiguration, PipelineGenerator
from ..resilience.facade import ResilientOperationFacade
from ..resilience.outcome import ErrorKind, Failure, Success
from ..resilience_config import RetryPolicy
from .degraded import DegradedAnalysisProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

MANUAL_MODE_SUGGESTION = (
    "You can still generate a pipeline manually: "
    "gitlab-pipeline-generator generate --type <project-type>"
)


@dataclass(frozen=True)
class FallbackResult(Generic[T]):
    """Result of an operation that may have fallen back.

    Attributes:
        value: Live value, or the fallback's value.
        used_fallback: True when the fallback produced ``value``.
        operation_name: Name used in logs.
        failure: The terminal failure that triggered the fallback.
    """

    value: T
    used_fallback: bool
    operation_name: str
    failure: Failure | None = None


@dataclass
class UserGuidance:
    """What to tell the user after a terminal failure."""

    operation_context: str
    error_message: str
    suggestions: list[str] = field(default_factory=list)
    can_continue_with_manual_mode: bool = True
    should_retry_later: bool = False


_SUGGESTIONS: dict[ErrorKind, tuple[str, ...]] = {
    ErrorKind.UNAUTHORIZED: (
        "Verify your GitLab personal access token is correct and not expired",
        "Ensure your token has the required scopes (api or read_api)",
        "Check that the GitLab instance URL is correct",
    ),
    ErrorKind.FORBIDDEN: (
        "Ask the project owner for at least Reporter access",
        "Check that the project is accessible to your account",
    ),
    ErrorKind.NOT_FOUND: (
        "Verify the project ID or path is correct",
        "Check whether the project has been moved or deleted",
    ),
    ErrorKind.RATE_LIMITED: (
        "Wait a few minutes before retrying the operation",
        "Ask your GitLab administrator about rate limits",
    ),
    ErrorKind.SERVER_ERROR: (
        "GitLab is experiencing issues, try again later",
        "Check the GitLab status page for known incidents",
    ),
    ErrorKind.NETWORK: (
        "Check your internet connection",
        "Verify the GitLab instance URL is reachable",
        "Check for firewall or proxy issues",
    ),
    ErrorKind.TIMEOUT: (
        "Try again, or increase the timeout setting",
        "Verify the GitLab instance URL is reachable",
    ),
    ErrorKind.CIRCUIT_OPEN: (
        "GitLab has failed repeatedly; calls are paused for a short cooldown",
        "Try again after the cooldown",
    ),
    ErrorKind.UNKNOWN: (
        "Check the error details for more specific information",
        "Try the operation again in a few minutes",
    ),
}

_RETRY_LATER_KINDS = frozenset(
    {
        ErrorKind.RATE_LIMITED,
        ErrorKind.SERVER_ERROR,
        ErrorKind.NETWORK,
        ErrorKind.TIMEOUT,
        ErrorKind.CIRCUIT_OPEN,
    }
)


class FallbackCoordinator:
    """Hand terminal failures off to degraded, local-only generation."""

    def __init__(
        self,
        provider: DegradedAnalysisProvider | None = None,
        generator: PipelineGenerator | None = None,
    ) -> None:
        self._provider = provider or DegradedAnalysisProvider()
        self._generator = generator or PipelineGenerator()

    def can_fallback_to_manual_mode(self) -> bool:
        """Manual mode needs nothing remote, so it is always available."""
        return True

    def get_degraded_analysis(self, project_type: ProjectType) -> AnalysisResult:
        return self._provider.get_basic_analysis(project_type)

    def generate_fallback_pipeline(self, project_type: ProjectType) -> PipelineConfiguration:
        """Generate a minimal valid pipeline from degraded analysis.

        Args:
            project_type: Project ecosystem chosen by the user.

        Returns:
            PipelineConfiguration with at least one stage and one job.
        """
        analysis = self.get_degraded_analysis(project_type)
        logger.info("Generating fallback pipeline for %s", project_type.value)
        return self._generator.generate(analysis)

    def create_user_guidance(self, failure: Failure, operation_context: str) -> UserGuidance:
        """Build user-facing guidance for a terminal failure.

        Args:
            failure: Terminal failure from the resilient layer.
            operation_context: What the user was trying to do.
        """
        suggestions = list(_SUGGESTIONS[failure.kind])
        if self.can_fallback_to_manual_mode():
            suggestions.append(MANUAL_MODE_SUGGESTION)
        return UserGuidance(
            operation_context=operation_context,
            error_message=failure.message,
            suggestions=suggestions,
            can_continue_with_manual_mode=self.can_fallback_to_manual_mode(),
            should_retry_later=failure.kind in _RETRY_LATER_KINDS,
        )

    async def execute_with_fallback(
        self,
        facade: ResilientOperationFacade,
        operation: Callable[[], Awaitable[T]],
        fallback: Callable[[Failure], T],
        operation_name: str,
        policy: RetryPolicy | None = None,
    ) -> FallbackResult[T]:
        """Run an operation resiliently, falling back on terminal failure.

        Args:
            facade: Resilient facade for the remote dependency.
            operation: Remote operation to attempt.
            fallback: Local, synchronous producer called with the failure.
            operation_name: Name used in logs.
            policy: Retry policy for the remote attempt.

        Returns:
            FallbackResult holding either the live or the fallback value.
        """
        logger.debug("Attempting GitLab operation: %s", operation_name)
        outcome = await facade.try_execute(operation, policy)
        if isinstance(outcome, Success):
            return FallbackResult(
                value=outcome.value,
                used_fallback=False,
                operation_name=operation_name,
            )

        logger.warning(
            "GitLab operation %s failed (%s), falling back to manual mode",
            operation_name,
            outcome.kind.value,
        )
        return FallbackResult(
            value=fallback(outcome),
            used_fallback=True,
            operation_name=operation_name,
            failure=outcome,
        )
