"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path


class ConfigError(Exception):
    """Error in grapho configuration."""


@dataclass(slots=True, frozen=True)
class GraphoConfig:
    """Configuration loaded from the ``[tool.grapho]`` table of pyproject.toml.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    plan: Path | None = None
    save: Path | None = None
    output_node: str | None = None
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


def _parse_path(section: dict[str, object], key: str, project_root: Path) -> Path | None:
    if key not in section:
        return None
    value = section[key]
    if not isinstance(value, str):
        msg = f"Invalid [tool.grapho].{key}: expected string path"
        raise ConfigError(msg)
    path = Path(value)
    if not path.is_absolute():
        path = project_root / path
    return path


def load_config(pyproject_path: Path) -> GraphoConfig:
    """Load and validate [tool.grapho] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed GraphoConfig

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

    section = data.get("tool", {}).get("grapho", {})
    if not section:
        return GraphoConfig(project_root=project_root)

    output_node = section.get("output_node")
    if output_node is not None and not isinstance(output_node, str):
        msg = "Invalid [tool.grapho].output_node: expected string"
        raise ConfigError(msg)

    return GraphoConfig(
        plan=_parse_path(section, "plan", project_root),
        save=_parse_path(section, "save", project_root),
        output_node=output_node,
        project_root=project_root,
    )


def get_config() -> GraphoConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        GraphoConfig (may be empty if no pyproject.toml or no [tool.grapho] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return GraphoConfig()
    return load_config(pyproject_path)
