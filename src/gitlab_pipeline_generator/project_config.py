"""Project configuration for the GitLab pipeline generator.

Manages the per-project .gitlab-pipeline/ directory holding config.toml
with GitLab connection and resilience settings. Provides discovery via
find_project_root() and CLI integration via resolve_config_for_cli().
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .analysis import ProjectType
from .gitlab_client import DEFAULT_GITLAB_URL
from .resilience_config import CircuitBreakerConfig, ResilienceConfig, RetryPolicy

logger = logging.getLogger(__name__)

_CONFIG_DIR = ".gitlab-pipeline"
_CONFIG_FILE = "config.toml"


@dataclass(frozen=True)
class GitLabConfig:
    """GitLab connection configuration. The token is never stored here."""

    url: str = DEFAULT_GITLAB_URL
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class ProjectConfig:
    """Per-project generator configuration.

    Loaded from .gitlab-pipeline/config.toml via load_project_config().
    """

    name: str
    project_type: ProjectType = ProjectType.UNKNOWN
    gitlab: GitLabConfig = field(default_factory=GitLabConfig)
    resilience: ResilienceConfig = field(default_factory=ResilienceConfig)


def load_project_config(project_path: Path) -> ProjectConfig:
    """Load config from .gitlab-pipeline/config.toml.

    Args:
        project_path: Path to the project root directory.

    Returns:
        Parsed ProjectConfig.

    Raises:
        FileNotFoundError: If .gitlab-pipeline/config.toml is missing.
        ValueError: On invalid, empty, or corrupt TOML.
    """
    config_file = project_path / _CONFIG_DIR / _CONFIG_FILE
    if not config_file.exists():
        msg = f"Project config not found: {config_file}"
        raise FileNotFoundError(msg)

    content = config_file.read_text(encoding="utf-8")
    if not content.strip():
        msg = f"Config file is empty: {config_file}"
        raise ValueError(msg)

    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {config_file}: {exc}"
        raise ValueError(msg) from exc

    return _parse_config(data)


def _section(data: dict[str, object], name: str) -> dict[str, object]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        msg = f"[{name}] section must be a table"
        raise ValueError(msg)
    return section


def _operation_timeout(gitlab: dict[str, object]) -> float | None:
    """Read the coarse call deadline; 0 disables it."""
    value = float(gitlab.get("operation_timeout_seconds", 30.0))
    if value < 0:
        msg = f"gitlab.operation_timeout_seconds must be >= 0 (0 disables), got {value}"
        raise ValueError(msg)
    return value or None


def _parse_config(data: dict[str, object]) -> ProjectConfig:
    """Parse raw TOML data into a ProjectConfig.

    Unknown fields are silently ignored for forward compatibility.
    """
    project = _section(data, "project")
    gitlab = _section(data, "gitlab")
    circuit = _section(data, "circuit_breaker")
    retry = _section(data, "retry")

    name = project.get("name")
    if not isinstance(name, str) or not name:
        msg = "project.name is required and must be a non-empty string"
        raise ValueError(msg)

    type_value = str(project.get("type", ProjectType.UNKNOWN.value))
    try:
        project_type = ProjectType(type_value)
    except ValueError as exc:
        valid = ", ".join(t.value for t in ProjectType)
        msg = f"project.type must be one of {valid}, got '{type_value}'"
        raise ValueError(msg) from exc

    defaults = ResilienceConfig()
    try:
        resilience = ResilienceConfig(
            circuit=CircuitBreakerConfig(
                failure_threshold=int(
                    circuit.get("failure_threshold", defaults.circuit.failure_threshold)
                ),
                recovery_timeout_seconds=float(
                    circuit.get(
                        "recovery_timeout_seconds",
                        defaults.circuit.recovery_timeout_seconds,
                    )
                ),
                half_open_max_calls=int(
                    circuit.get("half_open_max_calls", defaults.circuit.half_open_max_calls)
                ),
            ),
            retry=RetryPolicy(
                max_attempts=int(retry.get("max_attempts", defaults.retry.max_attempts)),
                base_delay_seconds=float(
                    retry.get("base_delay_seconds", defaults.retry.base_delay_seconds)
                ),
                max_delay_seconds=float(
                    retry.get("max_delay_seconds", defaults.retry.max_delay_seconds)
                ),
            ),
            operation_timeout_seconds=_operation_timeout(gitlab),
        )
        gitlab_config = GitLabConfig(
            url=str(gitlab.get("url", DEFAULT_GITLAB_URL)),
            timeout_seconds=float(gitlab.get("timeout_seconds", 30.0)),
        )
    except TypeError as exc:
        msg = f"Invalid value type in config: {exc}"
        raise ValueError(msg) from exc

    config = ProjectConfig(
        name=name,
        project_type=project_type,
        gitlab=gitlab_config,
        resilience=resilience,
    )
    _validate_config(config)
    return config


def create_default_config(
    project_path: Path,
    *,
    name: str | None = None,
    project_type: ProjectType = ProjectType.UNKNOWN,
    gitlab_url: str = DEFAULT_GITLAB_URL,
    force: bool = False,
) -> ProjectConfig:
    """Create .gitlab-pipeline/ with a default config.toml.

    Args:
        project_path: Path to the project root directory.
        name: Project name. Defaults to directory basename.
        project_type: Default project type for manual generation.
        gitlab_url: GitLab instance URL.
        force: Overwrite existing configuration.

    Returns:
        The created ProjectConfig.

    Raises:
        FileExistsError: If .gitlab-pipeline/ exists and force=False.
    """
    config_dir = project_path / _CONFIG_DIR
    if config_dir.exists() and not force:
        msg = f"Project already initialized: {config_dir}"
        raise FileExistsError(msg)

    resolved_name = name or project_path.resolve().name

    config = ProjectConfig(
        name=resolved_name,
        project_type=project_type,
        gitlab=GitLabConfig(url=gitlab_url),
    )
    _validate_config(config)

    config_dir.mkdir(parents=True, exist_ok=True)
    config_file = config_dir / _CONFIG_FILE
    config_file.write_text(_generate_toml(config), encoding="utf-8")

    logger.info("Initialized project '%s' at %s", resolved_name, config_dir)
    return config


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from start to find nearest .gitlab-pipeline/ directory.

    Args:
        start: Starting directory. Defaults to cwd.

    Returns:
        The directory containing .gitlab-pipeline/, or None if not found.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        if (current / _CONFIG_DIR).is_dir():
            return current
        parent = current.parent
        if parent == current:
            return None
        current = parent


def resolve_config_for_cli(project_override: str | None = None) -> ProjectConfig | None:
    """Resolve the project config for CLI commands.

    Args:
        project_override: Explicit project root. If given, its config must exist.

    Returns:
        The loaded config, or None when no .gitlab-pipeline/ is found and no
        override was given (defaults apply).

    Raises:
        FileNotFoundError: If the override has no config.
        ValueError: If config.toml is corrupt or invalid.
    """
    if project_override is not None:
        return load_project_config(Path(project_override))

    project_root = find_project_root()
    if project_root is None:
        logger.debug("No %s/ directory found, using defaults", _CONFIG_DIR)
        return None
    return load_project_config(project_root)


def _generate_toml(config: ProjectConfig) -> str:
    """Generate TOML string from a ProjectConfig.

    Handles Python→TOML type mapping: integers and floats unquoted,
    strings quoted.
    """
    circuit = config.resilience.circuit
    retry = config.resilience.retry
    operation_timeout = config.resilience.operation_timeout_seconds or 0
    lines = [
        "[project]",
        f'name = "{_escape_toml_string(config.name)}"',
        f'type = "{config.project_type.value}"',
        "",
        "[gitlab]",
        f'url = "{_escape_toml_string(config.gitlab.url)}"',
        f"timeout_seconds = {float(config.gitlab.timeout_seconds)}",
        f"operation_timeout_seconds = {float(operation_timeout)}",
        "",
        "[circuit_breaker]",
        f"failure_threshold = {circuit.failure_threshold}",
        f"recovery_timeout_seconds = {float(circuit.recovery_timeout_seconds)}",
        f"half_open_max_calls = {circuit.half_open_max_calls}",
        "",
        "[retry]",
        f"max_attempts = {retry.max_attempts}",
        f"base_delay_seconds = {float(retry.base_delay_seconds)}",
        f"max_delay_seconds = {float(retry.max_delay_seconds)}",
        "",
    ]
    return "\n".join(lines)


def _escape_toml_string(value: str) -> str:
    """Escape special characters for TOML string values."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _validate_config(config: ProjectConfig) -> None:
    """Validate config values not covered by the dataclasses themselves.

    Raises:
        ValueError: On invalid configuration.
    """
    if not config.name or not config.name.strip():
        msg = "project.name must not be empty"
        raise ValueError(msg)
    if " " in config.name or "\t" in config.name:
        msg = f"project.name must not contain whitespace: '{config.name}'"
        raise ValueError(msg)

    if not config.gitlab.url.startswith(("http://", "https://")):
        msg = f"gitlab.url must start with http:// or https://, got '{config.gitlab.url}'"
        raise ValueError(msg)
    if config.gitlab.timeout_seconds <= 0:
        msg = f"gitlab.timeout_seconds must be > 0, got {config.gitlab.timeout_seconds}"
        raise ValueError(msg)
