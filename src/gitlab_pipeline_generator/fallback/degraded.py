"""Degraded project analysis for when the GitLab API is unavailable.

Everything here is a static table lookup: no network or file access, so
the failure path stays responsive.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from ..analysis import AnalysisConfidence, AnalysisMode, AnalysisResult, ProjectType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Defaults:
    framework_name: str
    framework_version: str | None
    build_tool: str
    image: str
    build_commands: tuple[str, ...]
    test_commands: tuple[str, ...]
    cache_paths: tuple[str, ...] = ()
    artifact_paths: tuple[str, ...] = ()


_DEFAULTS: dict[ProjectType, _Defaults] = {
    ProjectType.DOTNET: _Defaults(
        framework_name=".NET",
        framework_version="8.0",
        build_tool="dotnet",
        image="mcr.microsoft.com/dotnet/sdk:8.0",
        build_commands=("dotnet restore", "dotnet build --no-restore"),
        test_commands=("dotnet test --no-build",),
        cache_paths=(".nuget/packages",),
        artifact_paths=("bin/", "obj/"),
    ),
    ProjectType.NODEJS: _Defaults(
        framework_name="Node.js",
        framework_version="20",
        build_tool="npm",
        image="node:20",
        build_commands=("npm ci", "npm run build --if-present"),
        test_commands=("npm test",),
        cache_paths=("node_modules/",),
        artifact_paths=("dist/",),
    ),
    ProjectType.PYTHON: _Defaults(
        framework_name="Python",
        framework_version="3.12",
        build_tool="pip",
        image="python:3.12",
        build_commands=("pip install -r requirements.txt",),
        test_commands=("python -m pytest",),
        cache_paths=(".cache/pip",),
    ),
    ProjectType.JAVA: _Defaults(
        framework_name="Java (Maven)",
        framework_version="17",
        build_tool="maven",
        image="maven:3.9-eclipse-temurin-17",
        build_commands=("mvn -B clean compile",),
        test_commands=("mvn -B test",),
        cache_paths=(".m2/repository",),
        artifact_paths=("target/",),
    ),
    ProjectType.GO: _Defaults(
        framework_name="Go",
        framework_version="1.22",
        build_tool="go",
        image="golang:1.22",
        build_commands=("go mod download", "go build ./..."),
        test_commands=("go test ./...",),
        cache_paths=(".go/pkg/mod",),
    ),
    ProjectType.RUBY: _Defaults(
        framework_name="Ruby",
        framework_version="3.3",
        build_tool="bundler",
        image="ruby:3.3",
        build_commands=("bundle install",),
        test_commands=("bundle exec rake test",),
        cache_paths=("vendor/ruby",),
    ),
    ProjectType.PHP: _Defaults(
        framework_name="PHP",
        framework_version="8.3",
        build_tool="composer",
        image="composer:2",
        build_commands=("composer install --no-interaction",),
        test_commands=("vendor/bin/phpunit",),
        cache_paths=("vendor/",),
    ),
    ProjectType.RUST: _Defaults(
        framework_name="Rust",
        framework_version="1.77",
        build_tool="cargo",
        image="rust:1.77",
        build_commands=("cargo build --release",),
        test_commands=("cargo test",),
        cache_paths=("target/",),
        artifact_paths=("target/release/",),
    ),
    ProjectType.STATIC: _Defaults(
        framework_name="Static site",
        framework_version=None,
        build_tool="none",
        image="alpine:latest",
        build_commands=("mkdir -p public", "cp -r ./*.html public/ || true"),
        test_commands=(),
        artifact_paths=("public/",),
    ),
    ProjectType.DOCKER: _Defaults(
        framework_name="Docker",
        framework_version=None,
        build_tool="docker",
        image="docker:24",
        build_commands=('docker build -t "$CI_REGISTRY_IMAGE:$CI_COMMIT_SHORT_SHA" .',),
        test_commands=(),
    ),
    ProjectType.MIXED: _Defaults(
        framework_name="Mixed",
        framework_version=None,
        build_tool="make",
        image="alpine:latest",
        build_commands=("make build",),
        test_commands=("make test",),
    ),
    ProjectType.UNKNOWN: _Defaults(
        framework_name="Unknown",
        framework_version=None,
        build_tool="unknown",
        image="alpine:latest",
        build_commands=('echo "Configure build commands for this project"',),
        test_commands=('echo "Configure test commands for this project"',),
    ),
}

# Ordered: the first matching keyword set wins.
_NAME_PATTERNS: tuple[tuple[ProjectType, tuple[str, ...]], ...] = (
    (ProjectType.DOTNET, ("dotnet", ".net", "csharp", "c#")),
    (ProjectType.NODEJS, ("node", "npm", "javascript", "typescript", "react", "vue", "angular")),
    (ProjectType.PYTHON, ("python", "django", "flask", "fastapi", "pandas")),
    (ProjectType.JAVA, ("java", "spring", "maven", "gradle")),
    (ProjectType.GO, ("golang", "go-")),
    (ProjectType.RUST, ("rust", "cargo")),
    (ProjectType.PHP, ("php", "laravel", "symfony", "composer")),
    (ProjectType.RUBY, ("ruby", "rails")),
    (ProjectType.DOCKER, ("docker",)),
)

_LANGUAGE_TYPES: dict[str, ProjectType] = {
    "c#": ProjectType.DOTNET,
    "f#": ProjectType.DOTNET,
    "javascript": ProjectType.NODEJS,
    "typescript": ProjectType.NODEJS,
    "python": ProjectType.PYTHON,
    "java": ProjectType.JAVA,
    "kotlin": ProjectType.JAVA,
    "go": ProjectType.GO,
    "ruby": ProjectType.RUBY,
    "php": ProjectType.PHP,
    "rust": ProjectType.RUST,
    "html": ProjectType.STATIC,
    "css": ProjectType.STATIC,
    "dockerfile": ProjectType.DOCKER,
}

# Primary language share below which a project counts as mixed.
_MIXED_THRESHOLD = 60.0


class DegradedAnalysisProvider:
    """Produce minimal usable analysis results from a static table."""

    def get_basic_analysis(self, project_type: ProjectType) -> AnalysisResult:
        """Return the degraded analysis for a project type.

        Args:
            project_type: Project ecosystem to describe.

        Returns:
            AnalysisResult with LOW confidence and a degraded-mode warning.
        """
        logger.debug("Degraded analysis lookup for %s", project_type.value)
        return self.build_from_table(
            project_type,
            confidence=AnalysisConfidence.LOW,
            mode=AnalysisMode.DEGRADED,
            warnings=(
                "Degraded mode: GitLab analysis was unavailable, so default "
                f"{_DEFAULTS[project_type].framework_name} settings were used. "
                "Review the generated pipeline before committing it.",
            ),
        )

    def build_from_table(
        self,
        project_type: ProjectType,
        confidence: AnalysisConfidence,
        mode: AnalysisMode,
        warnings: tuple[str, ...] = (),
    ) -> AnalysisResult:
        """Build an analysis record from the defaults for a project type."""
        defaults = _DEFAULTS[project_type]
        return AnalysisResult(
            detected_type=project_type,
            framework_name=defaults.framework_name,
            framework_version=defaults.framework_version,
            build_tool=defaults.build_tool,
            image=defaults.image,
            build_commands=defaults.build_commands,
            test_commands=defaults.test_commands,
            cache_paths=defaults.cache_paths,
            artifact_paths=defaults.artifact_paths,
            confidence=confidence,
            mode=mode,
            warnings=warnings,
        )

    def detect_project_type(self, name: str, path: str = "") -> ProjectType:
        """Guess a project type from its name and path."""
        haystack = f"{name} {path}".lower()
        for project_type, keywords in _NAME_PATTERNS:
            if any(keyword in haystack for keyword in keywords):
                return project_type
        return ProjectType.UNKNOWN

    def project_type_from_languages(self, languages: Mapping[str, float]) -> ProjectType:
        """Map a GitLab language breakdown to a project type.

        Args:
            languages: Language name to percentage, as returned by the
                ``/projects/:id/languages`` endpoint.
        """
        if not languages:
            return ProjectType.UNKNOWN

        language, share = max(languages.items(), key=lambda item: item[1])
        project_type = _LANGUAGE_TYPES.get(language.lower(), ProjectType.UNKNOWN)
        if project_type == ProjectType.UNKNOWN:
            return project_type
        if share < _MIXED_THRESHOLD:
            # Known primary language but no clear majority
            secondary = {
                _LANGUAGE_TYPES.get(name.lower())
                for name, pct in languages.items()
                if pct >= 100.0 - _MIXED_THRESHOLD
            }
            secondary.discard(None)
            secondary.discard(ProjectType.STATIC)
            if len(secondary) > 1:
                return ProjectType.MIXED
        return project_type
