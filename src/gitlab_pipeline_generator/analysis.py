"""Project analysis records shared by live analysis, fallback and generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ProjectType(Enum):
    """Project ecosystems the generator knows how to build."""

    UNKNOWN = "unknown"
    DOTNET = "dotnet"
    NODEJS = "nodejs"
    PYTHON = "python"
    JAVA = "java"
    GO = "go"
    RUBY = "ruby"
    PHP = "php"
    RUST = "rust"
    STATIC = "static"
    DOCKER = "docker"
    MIXED = "mixed"


class AnalysisConfidence(Enum):
    """How much an analysis result can be trusted."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AnalysisMode(Enum):
    """Where an analysis result came from."""

    LIVE = "live"  # Built from data fetched from GitLab
    DEGRADED = "degraded"  # Built from static defaults only


@dataclass(frozen=True)
class AnalysisResult:
    """Simplified project analysis record.

    Attributes:
        detected_type: Project ecosystem.
        framework_name: Human-readable framework/runtime name.
        framework_version: Default runtime version, if any.
        build_tool: Build tool name.
        image: Container image for CI jobs.
        build_commands: Commands for the build job.
        test_commands: Commands for the test job.
        cache_paths: Dependency cache locations.
        artifact_paths: Build output locations.
        confidence: Trust level of the result.
        mode: Live or degraded.
        warnings: Notes shown to the user.
    """

    detected_type: ProjectType
    framework_name: str
    framework_version: str | None = None
    build_tool: str = "unknown"
    image: str = "alpine:latest"
    build_commands: tuple[str, ...] = ()
    test_commands: tuple[str, ...] = ()
    cache_paths: tuple[str, ...] = ()
    artifact_paths: tuple[str, ...] = ()
    confidence: AnalysisConfidence = AnalysisConfidence.LOW
    mode: AnalysisMode = AnalysisMode.DEGRADED
    warnings: tuple[str, ...] = field(default_factory=tuple)

