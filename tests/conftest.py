"""Shared fixtures for uepm tests."""

import json
import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from uepm.config.schemas import LinkRecord
from uepm.core.project import Project

PackageFactory = Callable[..., Path]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory."""
    path = Path(tempfile.mkdtemp(prefix="uepm_test_"))
    yield path
    if path.exists():
        shutil.rmtree(path)


@pytest.fixture
def temp_project(temp_dir: Path) -> Path:
    """Create a temporary Unreal project directory with package.json."""
    project_dir = temp_dir / "MyGame"
    project_dir.mkdir()
    (project_dir / "MyGame.uproject").write_text('{"FileVersion": 3}')
    (project_dir / "package.json").write_text(json.dumps({"name": "my-game", "dependencies": {}}))
    return project_dir


@pytest.fixture
def install_package(temp_project: Path) -> PackageFactory:
    """Factory creating an installed package under node_modules.

    ``files`` maps paths relative to the package directory to file contents.
    """

    def factory(name: str, files: dict[str, str] | None = None, root: Path | None = None) -> Path:
        package_dir = (root or temp_project) / "node_modules" / name
        package_dir.mkdir(parents=True, exist_ok=True)
        (package_dir / "package.json").write_text(json.dumps({"name": name, "version": "1.0.0"}))
        for rel_path, content in (files or {}).items():
            file_path = package_dir / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content)
        return package_dir

    return factory


@pytest.fixture
def plugins_dir(temp_project: Path) -> Path:
    """Default plugins directory of the temporary project (not created)."""
    return temp_project / "Plugins"


@pytest.fixture
def sample_record(temp_dir: Path) -> LinkRecord:
    """Sample link record."""
    return LinkRecord(
        plugin_name="Foo",
        package_name="pkg-a",
        target_dir=str(temp_dir / "node_modules" / "pkg-a"),
    )


@pytest.fixture
def initialized_project(temp_project: Path) -> Project:
    """Project with uepm.yaml initialized."""
    return Project.init(temp_project)
