"""Unit tests for pipeline generation."""

from __future__ import annotations

import pytest
import yaml

from gitlab_pipeline_generator.analysis import (
    AnalysisConfidence,
    AnalysisMode,
    AnalysisResult,
    ProjectType,
)
from gitlab_pipeline_generator.fallback import DegradedAnalysisProvider
from gitlab_pipeline_generator.pipeline import Job, PipelineConfiguration, PipelineGenerator


@pytest.fixture
def generator() -> PipelineGenerator:
    return PipelineGenerator()


def test_job_to_dict_includes_cache_and_artifacts() -> None:
    job = Job(
        name="build",
        stage="build",
        image="node:20",
        script=["npm ci"],
        cache_paths=["node_modules/"],
        artifact_paths=["dist/"],
    )
    assert job.to_dict() == {
        "stage": "build",
        "image": "node:20",
        "script": ["npm ci"],
        "cache": {"key": "$CI_COMMIT_REF_SLUG", "paths": ["node_modules/"]},
        "artifacts": {"paths": ["dist/"], "expire_in": "1 week"},
    }


def test_job_to_dict_minimal() -> None:
    job = Job(name="lint", stage="test", script=["make lint"])
    assert job.to_dict() == {"stage": "test", "script": ["make lint"]}


def test_configuration_yaml_keeps_order_and_header() -> None:
    pipeline = PipelineConfiguration(
        stages=["build"],
        jobs=[Job(name="build", stage="build", script=["make"])],
        variables={"GIT_DEPTH": "10"},
        header_comments=["hello"],
    )
    text = pipeline.to_yaml()

    assert text.startswith("# hello\n")
    assert list(yaml.safe_load(text)) == ["stages", "variables", "build"]


@pytest.mark.parametrize("project_type", list(ProjectType))
def test_degraded_pipeline_for_every_type_is_valid(
    generator: PipelineGenerator, project_type: ProjectType
) -> None:
    analysis = DegradedAnalysisProvider().get_basic_analysis(project_type)

    text = generator.generate(analysis).to_yaml()
    data = yaml.safe_load(text)

    assert "degraded mode" in text
    assert data["stages"][0] == "build"
    assert data["build"]["script"]
    for stage in data["stages"]:
        assert stage in ("build", "test")
        assert data[stage]["stage"] == stage


def test_test_stage_follows_test_commands(generator: PipelineGenerator) -> None:
    provider = DegradedAnalysisProvider()

    with_tests = generator.generate(provider.get_basic_analysis(ProjectType.NODEJS))
    without_tests = generator.generate(provider.get_basic_analysis(ProjectType.DOCKER))

    assert with_tests.stages == ["build", "test"]
    assert [job.name for job in with_tests.jobs] == ["build", "test"]
    assert without_tests.stages == ["build"]


def test_live_analysis_has_no_degraded_header(generator: PipelineGenerator) -> None:
    analysis = DegradedAnalysisProvider().build_from_table(
        ProjectType.RUST, confidence=AnalysisConfidence.MEDIUM, mode=AnalysisMode.LIVE
    )
    pipeline = generator.generate(analysis)

    assert not any("degraded" in line for line in pipeline.header_comments)
    assert pipeline.header_comments == ["Project type: rust (Rust)"]


def test_empty_build_commands_get_placeholder(generator: PipelineGenerator) -> None:
    analysis = AnalysisResult(detected_type=ProjectType.UNKNOWN, framework_name="Unknown")
    pipeline = generator.generate(analysis)
    assert pipeline.jobs[0].script == ['echo "No build step"']
