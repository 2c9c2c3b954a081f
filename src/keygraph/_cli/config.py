"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from keygraph._graph import ResolutionStrategy


class ConfigError(Exception):
    """Error in keygraph configuration."""


@dataclass(slots=True, frozen=True)
class ScriptSource:
    """Script path with optional variable name."""

    script: Path
    name: str | None = None

    def __str__(self) -> str:
        return str(self.script) if self.name is None else f"{self.script} ({self.name})"


@dataclass(slots=True, frozen=True)
class ModuleSource:
    """Module path with variable name (e.g., 'examples.build_targets:graph')."""

    module_path: str

    def __str__(self) -> str:
        return self.module_path


GraphSource = ScriptSource | ModuleSource


@dataclass(slots=True, frozen=True)
class KeygraphConfig:
    """Configuration loaded from pyproject.toml.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    graph: GraphSource | None = None
    strategy: ResolutionStrategy = ResolutionStrategy.RECURSIVE
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _parse_graph_source(value: object, project_root: Path) -> GraphSource:
    """Parse the graph field from config.

    Args:
        value: The raw value from TOML (string or dict)
        project_root: Project root directory for resolving relative paths

    Returns:
        Parsed GraphSource

    Raises:
        ConfigError: If the value format is invalid

    """
    if isinstance(value, str):
        # Module path format: "module.path:variable"
        if ":" not in value:
            msg = f"Invalid module path '{value}'. Expected format: 'module.path:variable_name'"
            raise ConfigError(msg)
        return ModuleSource(module_path=value)

    if isinstance(value, dict):
        # Script path format: { script = "path.py", name = "graph" }
        value_dict = cast("dict[str, object]", value)
        if "script" not in value_dict:
            msg = "Invalid [tool.keygraph].graph configuration. Expected string or table with 'script' key."
            raise ConfigError(msg)

        script_value = value_dict["script"]
        if not isinstance(script_value, str):
            msg = "Invalid [tool.keygraph].graph.script: expected string path"
            raise ConfigError(msg)
        script_path = Path(script_value)
        if not script_path.is_absolute():
            script_path = project_root / script_path

        name = value_dict.get("name")
        if name is not None and not isinstance(name, str):
            msg = "Invalid [tool.keygraph].graph.name: expected string"
            raise ConfigError(msg)

        return ScriptSource(script=script_path, name=name)

    msg = "Invalid [tool.keygraph].graph configuration. Expected string or table with 'script' key."
    raise ConfigError(msg)


def _parse_strategy(value: object) -> ResolutionStrategy:
    if not isinstance(value, str):
        msg = "Invalid [tool.keygraph].strategy: expected string"
        raise ConfigError(msg)
    try:
        return ResolutionStrategy(value)
    except ValueError as e:
        choices = ", ".join(f"'{s}'" for s in ResolutionStrategy)
        msg = f"Invalid [tool.keygraph].strategy '{value}'. Expected one of: {choices}"
        raise ConfigError(msg) from e


def load_config(pyproject_path: Path) -> KeygraphConfig:
    """Load and validate [tool.keygraph] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed KeygraphConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    tool_section = data.get("tool", {})
    keygraph_section = tool_section.get("keygraph", {})

    if not keygraph_section:
        return KeygraphConfig(project_root=project_root)

    graph_source: GraphSource | None = None
    if "graph" in keygraph_section:
        graph_source = _parse_graph_source(keygraph_section["graph"], project_root)

    strategy = ResolutionStrategy.RECURSIVE
    if "strategy" in keygraph_section:
        strategy = _parse_strategy(keygraph_section["strategy"])

    return KeygraphConfig(
        graph=graph_source,
        strategy=strategy,
        project_root=project_root,
    )


def get_config() -> KeygraphConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        KeygraphConfig (may be empty if no pyproject.toml or no [tool.keygraph] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return KeygraphConfig()
    return load_config(pyproject_path)
