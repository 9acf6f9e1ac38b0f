"""Minimal GitLab CI pipeline generation from an analysis result.

Produces a small but valid ``.gitlab-ci.yml``: a build job and, when the
ecosystem has test commands, a test job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import yaml

from .analysis import AnalysisMode, AnalysisResult

logger = logging.getLogger(__name__)


@dataclass
class Job:
    """A single CI job."""

    name: str
    stage: str
    script: list[str]
    image: str | None = None
    cache_paths: list[str] = field(default_factory=list)
    artifact_paths: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"stage": self.stage}
        if self.image:
            data["image"] = self.image
        data["script"] = list(self.script)
        if self.cache_paths:
            data["cache"] = {"key": "$CI_COMMIT_REF_SLUG", "paths": list(self.cache_paths)}
        if self.artifact_paths:
            data["artifacts"] = {"paths": list(self.artifact_paths), "expire_in": "1 week"}
        return data


@dataclass
class PipelineConfiguration:
    """An ordered set of stages and jobs, serializable to GitLab CI YAML."""

    stages: list[str] = field(default_factory=list)
    jobs: list[Job] = field(default_factory=list)
    variables: dict[str, str] = field(default_factory=dict)
    header_comments: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"stages": list(self.stages)}
        if self.variables:
            data["variables"] = dict(self.variables)
        for job in self.jobs:
            data[job.name] = job.to_dict()
        return data

    def to_yaml(self) -> str:
        """Serialize to ``.gitlab-ci.yml`` text."""
        body = yaml.safe_dump(self.to_dict(), sort_keys=False, default_flow_style=False)
        header = "".join(f"# {line}\n" for line in self.header_comments)
        return header + body


class PipelineGenerator:
    """Turn an AnalysisResult into a PipelineConfiguration."""

    def generate(self, analysis: AnalysisResult) -> PipelineConfiguration:
        """Generate a pipeline for the analysed project.

        Args:
            analysis: Live or degraded analysis result.

        Returns:
            PipelineConfiguration with at least one stage and one job.
        """
        pipeline = PipelineConfiguration()
        if analysis.mode == AnalysisMode.DEGRADED:
            pipeline.header_comments.append(
                "Generated in degraded mode from default settings; review before use."
            )
        pipeline.header_comments.append(
            f"Project type: {analysis.detected_type.value} ({analysis.framework_name})"
        )

        build_script = list(analysis.build_commands) or ['echo "No build step"']
        pipeline.stages.append("build")
        pipeline.jobs.append(
            Job(
                name="build",
                stage="build",
                image=analysis.image,
                script=build_script,
                cache_paths=list(analysis.cache_paths),
                artifact_paths=list(analysis.artifact_paths),
            )
        )

        if analysis.test_commands:
            pipeline.stages.append("test")
            pipeline.jobs.append(
                Job(
                    name="test",
                    stage="test",
                    image=analysis.image,
                    script=list(analysis.test_commands),
                    cache_paths=list(analysis.cache_paths),
                )
            )

        logger.debug(
            "Generated pipeline with %d stage(s) for %s",
            len(pipeline.stages),
            analysis.detected_type.value,
        )
        return pipeline
