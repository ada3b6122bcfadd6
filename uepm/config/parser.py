"""Configuration file parsing utilities."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from uepm.config.schemas import ProjectSettings

SETTINGS_FILE = "uepm.yaml"

# Files whose presence marks a directory as a project root
PROJECT_MARKERS = (SETTINGS_FILE, "package.json")
UPROJECT_SUFFIX = ".uproject"


class ConfigError(Exception):
    """Error loading or parsing configuration."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


def load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed YAML as a dictionary

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"File not found: {path}", path)

    try:
        with open(path, encoding="utf-8") as f:
            result = yaml.safe_load(f)
            if result is None:
                return {}
            if not isinstance(result, dict):
                raise ConfigError(f"YAML file must contain a mapping: {path}", path)
            return result
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", path) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e


def save_yaml(path: Path, data: dict[str, Any]) -> None:
    """Save data to a YAML file.

    Args:
        path: Path to write to
        data: Data to serialize
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def load_settings(project_root: Path) -> ProjectSettings:
    """Load project settings from uepm.yaml.

    A missing settings file is not an error; defaults are used instead.

    Args:
        project_root: Path to the project root directory

    Returns:
        Parsed ProjectSettings

    Raises:
        ConfigError: If the file exists but is invalid
    """
    settings_path = project_root / SETTINGS_FILE
    if not settings_path.exists():
        return ProjectSettings()

    data = load_yaml(settings_path)

    try:
        return ProjectSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}", settings_path) from e


def save_settings(project_root: Path, settings: ProjectSettings) -> None:
    """Save project settings to uepm.yaml.

    Args:
        project_root: Path to the project root directory
        settings: ProjectSettings to save
    """
    settings_path = project_root / SETTINGS_FILE
    save_yaml(settings_path, settings.model_dump())


def is_project_root(path: Path) -> bool:
    """Check whether a directory looks like a project root."""
    if any((path / marker).exists() for marker in PROJECT_MARKERS):
        return True
    try:
        return any(
            p.is_file() and p.name.lower().endswith(UPROJECT_SUFFIX) for p in path.iterdir()
        )
    except OSError:
        return False


def find_project_root(start_path: Path | None = None) -> Path | None:
    """Find the project root by looking for uepm.yaml, package.json or a .uproject.

    Args:
        start_path: Directory to start searching from (defaults to cwd)

    Returns:
        Path to project root, or None if not found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()
    while current != current.parent:
        if is_project_root(current):
            return current
        current = current.parent

    # Check root
    if is_project_root(current):
        return current

    return None
