"""Tests for the pipeline generator CLI.

This module tests the command-line interface using click.testing.CliRunner
to verify commands, arguments, error handling, and degraded output.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
import yaml
from click.testing import CliRunner

from gitlab_pipeline_generator.cli import cli
from gitlab_pipeline_generator.gitlab_client import DEFAULT_GITLAB_URL, GitLabClient
from gitlab_pipeline_generator.project_config import load_project_config

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def runner() -> CliRunner:
    """Create a CliRunner for testing."""
    return CliRunner()


def _patch_client(monkeypatch: pytest.MonkeyPatch, handler: Handler) -> None:
    """Route the CLI's GitLab traffic to an httpx.MockTransport."""

    class MockGitLabClient(GitLabClient):
        def __init__(
            self,
            base_url: str = DEFAULT_GITLAB_URL,
            token: str | None = None,
            timeout: float = 30.0,
        ) -> None:
            super().__init__(base_url=base_url, token=token, timeout=timeout)
            self._client = httpx.AsyncClient(
                transport=httpx.MockTransport(handler),
                base_url=f"{self.base_url}/api/v4",
            )

    monkeypatch.setattr("gitlab_pipeline_generator.cli.GitLabClient", MockGitLabClient)


def _single_attempt_project(root: Path) -> None:
    config_dir = root / ".gitlab-pipeline"
    config_dir.mkdir()
    (config_dir / "config.toml").write_text(
        '[project]\nname = "app"\n\n[retry]\nmax_attempts = 1\n', encoding="utf-8"
    )


class TestCLIGroup:
    """CLI command structure."""

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "GitLab Pipeline Generator" in result.output
        for command in ("init", "generate", "analyze"):
            assert command in result.output

    def test_invalid_command_fails_gracefully(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["bogus"])
        assert result.exit_code != 0


class TestInitCommand:
    """`init` creates .gitlab-pipeline/config.toml."""

    def test_init_creates_config(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["init", "--name", "web", "--type", "nodejs"])

        assert result.exit_code == 0, result.output
        assert "Initialized project 'web'" in result.output
        config = load_project_config(tmp_path)
        assert config.project_type.value == "nodejs"

    def test_init_existing_errors(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        runner.invoke(cli, ["init", "--name", "web"])
        result = runner.invoke(cli, ["init", "--name", "web"])

        assert result.exit_code == 1
        assert "already initialized" in result.output

    def test_init_force_overwrites(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        runner.invoke(cli, ["init", "--name", "web"])
        result = runner.invoke(cli, ["init", "--name", "api", "--force"])

        assert result.exit_code == 0
        assert load_project_config(tmp_path).name == "api"

    def test_init_rejects_bad_url(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["init", "--name", "web", "--url", "gitlab.local"])
        assert result.exit_code == 1
        assert "gitlab.url" in result.output


class TestGenerateCommand:
    """`generate` works without contacting GitLab."""

    def test_generate_with_type(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["generate", "--type", "python"])

        assert result.exit_code == 0
        assert "python -m pytest" in result.output

    def test_generate_uses_config_type(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        runner.invoke(cli, ["init", "--name", "svc", "--type", "rust"])
        output = tmp_path / ".gitlab-ci.yml"

        result = runner.invoke(cli, ["generate", "-o", str(output)])

        assert result.exit_code == 0
        data = yaml.safe_load(output.read_text(encoding="utf-8"))
        assert data["build"]["script"] == ["cargo build --release"]

    def test_generate_without_type_or_config_errors(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["generate"])

        assert result.exit_code == 1
        assert "--type is required" in result.output

    def test_generate_rejects_unknown_type(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["generate", "--type", "cobol"])
        assert result.exit_code == 2

    def test_generate_missing_project_dir_errors(
        self, runner: CliRunner, tmp_path: Path
    ) -> None:
        result = runner.invoke(cli, ["generate", "--project-dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "Project config not found" in result.output


class TestAnalyzeCommand:
    """`analyze` with a mocked GitLab."""

    def test_live_analysis(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/languages"):
                return httpx.Response(200, json={"Go": 97.0, "Makefile": 3.0})
            return httpx.Response(200, json={"id": 9, "name": "worker"})

        _patch_client(monkeypatch, handler)
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(cli, ["analyze", "group/worker", "--token", "glpat-x"])

        assert result.exit_code == 0, result.output
        assert "go test ./..." in result.output
        assert "degraded" not in result.output

    def test_unreachable_gitlab_falls_back(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        _patch_client(monkeypatch, handler)
        _single_attempt_project(tmp_path)

        result = runner.invoke(
            cli,
            ["analyze", "group/app", "--type", "nodejs", "--project-dir", str(tmp_path)],
        )

        assert result.exit_code == 0, result.output
        assert "Unable to reach GitLab" in result.output
        assert "  - Check your internet connection" in result.output
        assert "npm ci" in result.output

    def test_strict_exits_2_on_fallback(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "401 Unauthorized"})

        _patch_client(monkeypatch, handler)
        _single_attempt_project(tmp_path)

        result = runner.invoke(
            cli, ["analyze", "42", "--strict", "--project-dir", str(tmp_path)]
        )

        assert result.exit_code == 2
        assert "Authentication failed" in result.output
        assert "generate --type <project-type>" in result.output
