"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path


class ConfigError(Exception):
    """Error in argbind configuration."""


@dataclass(slots=True, frozen=True)
class ArgbindConfig:
    """Configuration loaded from the [tool.argbind] table of pyproject.toml.

    Attributes:
        resolver: Module path ('module.path:variable') of an entity resolver or repository.
        data_must_be_array: Bind whole payloads to a `data` parameter by default.
        project_root: Directory containing pyproject.toml.

    """

    resolver: str | None = None
    data_must_be_array: bool = False
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


def load_config(pyproject_path: Path) -> ArgbindConfig:
    """Load and validate [tool.argbind] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed ArgbindConfig

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

    section = data.get("tool", {}).get("argbind", {})
    if not section:
        return ArgbindConfig(project_root=project_root)

    resolver = section.get("resolver")
    if resolver is not None:
        if not isinstance(resolver, str):
            msg = "Invalid [tool.argbind].resolver: expected string"
            raise ConfigError(msg)
        if ":" not in resolver:
            msg = f"Invalid module path '{resolver}'. Expected format: 'module.path:variable_name'"
            raise ConfigError(msg)

    data_must_be_array = section.get("data_must_be_array", False)
    if not isinstance(data_must_be_array, bool):
        msg = "Invalid [tool.argbind].data_must_be_array: expected boolean"
        raise ConfigError(msg)

    return ArgbindConfig(
        resolver=resolver,
        data_must_be_array=data_must_be_array,
        project_root=project_root,
    )


def get_config() -> ArgbindConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        ArgbindConfig (may be empty if no pyproject.toml or no [tool.argbind] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return ArgbindConfig()
    return load_config(pyproject_path)
