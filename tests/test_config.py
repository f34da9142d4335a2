"""Tests for the configuration module."""

from pathlib import Path

import pytest

from grapho._cli.config import (
    ConfigError,
    GraphoConfig,
    find_pyproject_toml,
    load_config,
)


class TestFindPyprojectToml:
    """Tests for find_pyproject_toml function."""

    def test_finds_in_current_directory(self, tmp_path: Path) -> None:
        """Should find pyproject.toml in current directory."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        result = find_pyproject_toml(tmp_path)

        assert result == pyproject

    def test_finds_in_parent_directory(self, tmp_path: Path) -> None:
        """Should find pyproject.toml in parent directory."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        subdir = tmp_path / "src" / "pkg"
        subdir.mkdir(parents=True)

        result = find_pyproject_toml(subdir)

        assert result == pyproject

    def test_returns_none_when_not_found(self, tmp_path: Path) -> None:
        """Should return None when no pyproject.toml is found."""
        result = find_pyproject_toml(tmp_path)

        assert result is None


class TestLoadConfigPaths:
    """Tests for loading plan and save paths."""

    def test_relative_plan_path(self, tmp_path: Path) -> None:
        """Relative paths are resolved from the project root."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[tool.grapho]
plan = "plans/scene.toml"
""",
        )

        config = load_config(pyproject)

        assert config.plan == tmp_path / "plans" / "scene.toml"
        assert config.project_root == tmp_path

    def test_absolute_save_path(self, tmp_path: Path) -> None:
        """Absolute paths are kept as they are."""
        target = tmp_path / "out" / "scene.json"
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(f'[tool.grapho]\nsave = "{target.as_posix()}"\n')

        config = load_config(pyproject)

        assert config.save == target

    def test_full_configuration(self, tmp_path: Path) -> None:
        """Should parse every supported key."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[tool.grapho]
plan = "scene.toml"
save = "scene.json"
output_node = "final"
""",
        )

        config = load_config(pyproject)

        assert config == GraphoConfig(
            plan=tmp_path / "scene.toml",
            save=tmp_path / "scene.json",
            output_node="final",
            project_root=tmp_path,
        )

    def test_invalid_plan_type_raises_error(self, tmp_path: Path) -> None:
        """Should raise ConfigError for a non-string path."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[tool.grapho]
plan = 123
""",
        )

        with pytest.raises(ConfigError, match=r"Invalid \[tool.grapho\].plan"):
            load_config(pyproject)

    def test_invalid_output_node_type_raises_error(self, tmp_path: Path) -> None:
        """Should raise ConfigError for a non-string output node."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[tool.grapho]
output_node = ["a", "b"]
""",
        )

        with pytest.raises(ConfigError, match="output_node"):
            load_config(pyproject)


class TestLoadConfigEmptySection:
    """Tests for pyproject.toml files without grapho settings."""

    def test_no_tool_grapho_section(self, tmp_path: Path) -> None:
        """Should return an empty config with the project root set."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[project]
name = "test"
""",
        )

        config = load_config(pyproject)

        assert config == GraphoConfig(project_root=tmp_path)

    def test_empty_tool_grapho_section(self, tmp_path: Path) -> None:
        """Should return an empty config for an empty section."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[tool.grapho]\n")

        config = load_config(pyproject)

        assert config.plan is None
        assert config.save is None
        assert config.output_node is None


class TestLoadConfigErrors:
    """Tests for configuration error handling."""

    def test_invalid_toml_raises_error(self, tmp_path: Path) -> None:
        """Should raise ConfigError for invalid TOML."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("invalid toml [[[")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(pyproject)


class TestGraphoConfigDataclass:
    """Tests for GraphoConfig dataclass."""

    def test_default_values(self) -> None:
        """Should have correct default values."""
        config = GraphoConfig()

        assert config.plan is None
        assert config.save is None
        assert config.output_node is None
        assert config.project_root is None

    def test_frozen(self) -> None:
        """Should be immutable."""
        config = GraphoConfig()

        with pytest.raises(AttributeError):
            config.plan = Path("plan.toml")  # type: ignore[misc]
