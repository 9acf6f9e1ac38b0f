"""Pipeline generation workflow driven by live GitLab analysis.

Analyses a remote project through the resilient facade and, when GitLab
cannot be used, degrades to a pipeline built from static defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .analysis import AnalysisConfidence, AnalysisMode, AnalysisResult, ProjectType
from .fallback import MANUAL_MODE_SUGGESTION, FallbackCoordinator, UserGuidance
from .fallback.degraded import DegradedAnalysisProvider
from .gitlab_client import GitLabClient
from .pipeline import PipelineConfiguration, PipelineGenerator
from .resilience import OperationOutcome, ResilientOperationFacade
from .resilience_config import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class WorkflowResult:
    """Pipeline plus what the user should be told about how it was made."""

    pipeline: PipelineConfiguration
    analysis: AnalysisResult
    used_fallback: bool
    messages: list[str] = field(default_factory=list)
    guidance: UserGuidance | None = None


class PipelineWorkflow:
    """Generate pipelines for GitLab projects, degrading gracefully.

    Usage:
        workflow = PipelineWorkflow(client, facade)
        result = await workflow.generate_for_project("group/app")
        print(result.pipeline.to_yaml())
    """

    def __init__(
        self,
        client: GitLabClient,
        facade: ResilientOperationFacade,
        coordinator: FallbackCoordinator | None = None,
        provider: DegradedAnalysisProvider | None = None,
        generator: PipelineGenerator | None = None,
        policy: RetryPolicy | None = None,
    ) -> None:
        self._client = client
        self._facade = facade
        self._provider = provider or DegradedAnalysisProvider()
        self._generator = generator or PipelineGenerator()
        self._coordinator = coordinator or FallbackCoordinator(self._provider, self._generator)
        self._policy = policy

    async def try_authenticate(self) -> OperationOutcome[dict[str, object]]:
        """Validate the token by fetching the current user."""
        return await self._facade.try_execute(
            self._client.get_current_user, RetryPolicy.conservative()
        )

    async def _analyze_live(
        self, project: str | int, type_hint: ProjectType | None
    ) -> AnalysisResult:
        details = await self._client.get_project(project)
        languages = await self._client.get_project_languages(project)

        warnings: list[str] = []
        if type_hint is not None:
            project_type = type_hint
        else:
            project_type = self._provider.project_type_from_languages(languages)
            if project_type == ProjectType.UNKNOWN:
                project_type = self._provider.detect_project_type(
                    str(details.get("name", "")),
                    str(details.get("path_with_namespace", "")),
                )
                if project_type != ProjectType.UNKNOWN:
                    warnings.append("Project type guessed from the project name.")

        logger.info(
            "Live analysis of %s: %s (languages=%s)",
            project,
            project_type.value,
            ", ".join(languages) or "none",
        )
        return self._provider.build_from_table(
            project_type,
            confidence=AnalysisConfidence.MEDIUM,
            mode=AnalysisMode.LIVE,
            warnings=tuple(warnings),
        )

    async def generate_for_project(
        self,
        project: str | int,
        type_hint: ProjectType | None = None,
    ) -> WorkflowResult:
        """Analyse a project and generate its pipeline.

        Args:
            project: GitLab project ID or ``namespace/path``.
            type_hint: User-chosen project type. Overrides detection, and is
                the type used if GitLab cannot be reached.

        Returns:
            WorkflowResult; ``used_fallback`` tells whether GitLab data was used.
        """
        fallback_type = type_hint or ProjectType.UNKNOWN
        result = await self._coordinator.execute_with_fallback(
            self._facade,
            lambda: self._analyze_live(project, type_hint),
            lambda failure: self._coordinator.get_degraded_analysis(fallback_type),
            operation_name=f"analyze project {project}",
            policy=self._policy,
        )

        analysis = result.value
        pipeline = self._generator.generate(analysis)
        messages = list(analysis.warnings)
        guidance = None
        if result.used_fallback and result.failure is not None:
            guidance = self._coordinator.create_user_guidance(
                result.failure, f"analyzing project {project}"
            )
            messages.insert(0, result.failure.message)
            if type_hint is None:
                messages.append(MANUAL_MODE_SUGGESTION)

        return WorkflowResult(
            pipeline=pipeline,
            analysis=analysis,
            used_fallback=result.used_fallback,
            messages=messages,
            guidance=guidance,
        )
