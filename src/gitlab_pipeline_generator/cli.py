"""CLI for the GitLab pipeline generator.

Generates .gitlab-ci.yml files either from live analysis of a GitLab
project or, in manual mode, from defaults for a chosen project type.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from .analysis import ProjectType
from .fallback import FallbackCoordinator
from .gitlab_client import DEFAULT_GITLAB_URL, GitLabClient
from .pipeline import PipelineConfiguration
from .project_config import ProjectConfig, create_default_config, resolve_config_for_cli
from .resilience import CircuitBreakerRegistry, ResilientOperationFacade
from .workflow import PipelineWorkflow, WorkflowResult

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

_TYPE_CHOICE = click.Choice([t.value for t in ProjectType])


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """GitLab Pipeline Generator - .gitlab-ci.yml from project analysis."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _load_config(project_dir: str | None) -> ProjectConfig | None:
    try:
        return resolve_config_for_cli(project_dir)
    except (FileNotFoundError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _write_pipeline(pipeline: PipelineConfiguration, output: str | None) -> None:
    content = pipeline.to_yaml()
    if output is None:
        click.echo(content, nl=False)
        return
    Path(output).write_text(content, encoding="utf-8")
    click.echo(f"Pipeline written to {output}", err=True)


@cli.command(name="init")
@click.option("--name", default=None, help="Project name (default: directory name)")
@click.option("--type", "project_type", type=_TYPE_CHOICE, default="unknown",
              help="Default project type for manual generation")
@click.option("--url", default=DEFAULT_GITLAB_URL, help="GitLab instance URL")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
def init_command(name: str | None, project_type: str, url: str, force: bool) -> None:
    """Create .gitlab-pipeline/config.toml in the current directory."""
    try:
        config = create_default_config(
            Path.cwd(),
            name=name,
            project_type=ProjectType(project_type),
            gitlab_url=url,
            force=force,
        )
    except (FileExistsError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Initialized project '{config.name}'")


@cli.command()
@click.option("--type", "project_type", type=_TYPE_CHOICE, default=None,
              help="Project type (default: from config)")
@click.option("--output", "-o", type=click.Path(), help="Write pipeline to this file")
@click.option("--project-dir", type=click.Path(), help="Project root with .gitlab-pipeline/")
def generate(project_type: str | None, output: str | None, project_dir: str | None) -> None:
    """Generate a pipeline manually, without contacting GitLab."""
    config = _load_config(project_dir)
    if project_type is not None:
        resolved_type = ProjectType(project_type)
    elif config is not None:
        resolved_type = config.project_type
    else:
        click.echo("Error: --type is required when no project config exists", err=True)
        sys.exit(1)

    coordinator = FallbackCoordinator()
    _write_pipeline(coordinator.generate_fallback_pipeline(resolved_type), output)


@cli.command()
@click.argument("project")
@click.option("--type", "project_type", type=_TYPE_CHOICE, default=None,
              help="Override detected project type (also used if GitLab is unreachable)")
@click.option("--token", envvar="GITLAB_TOKEN", help="GitLab personal access token")
@click.option("--url", default=None, help="GitLab instance URL (default: from config)")
@click.option("--output", "-o", type=click.Path(), help="Write pipeline to this file")
@click.option("--project-dir", type=click.Path(), help="Project root with .gitlab-pipeline/")
@click.option("--strict", is_flag=True, help="Exit with status 2 if GitLab could not be used")
def analyze(
    project: str,
    project_type: str | None,
    token: str | None,
    url: str | None,
    output: str | None,
    project_dir: str | None,
    strict: bool,
) -> None:
    """Analyse a GitLab PROJECT (ID or namespace/path) and generate its pipeline."""
    config = _load_config(project_dir)
    type_hint = ProjectType(project_type) if project_type is not None else None
    if type_hint is None and config is not None and config.project_type != ProjectType.UNKNOWN:
        type_hint = config.project_type

    result = asyncio.run(_analyze_async(project, type_hint, token, url, config))

    for message in result.messages:
        click.echo(message, err=True)
    if result.guidance is not None:
        for suggestion in result.guidance.suggestions:
            click.echo(f"  - {suggestion}", err=True)

    _write_pipeline(result.pipeline, output)
    if strict and result.used_fallback:
        sys.exit(2)


async def _analyze_async(
    project: str,
    type_hint: ProjectType | None,
    token: str | None,
    url: str | None,
    config: ProjectConfig | None,
) -> WorkflowResult:
    """Async implementation of the analyze command."""
    resolved = config or ProjectConfig(name="adhoc")
    base_url = url or resolved.gitlab.url

    registry = CircuitBreakerRegistry(resolved.resilience.circuit)
    breaker = await registry.get(f"gitlab:{base_url}")
    facade = ResilientOperationFacade(breaker, resolved.resilience)

    async with GitLabClient(
        base_url=base_url,
        token=token,
        timeout=resolved.gitlab.timeout_seconds,
    ) as client:
        workflow = PipelineWorkflow(client, facade)
        return await workflow.generate_for_project(project, type_hint)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
