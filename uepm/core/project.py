"""Project model representing an Unreal project whose plugins come from npm."""

from dataclasses import dataclass
from pathlib import Path

from uepm.config.parser import (
    SETTINGS_FILE,
    UPROJECT_SUFFIX,
    find_project_root,
    is_project_root,
    load_settings,
    save_settings,
)
from uepm.config.schemas import LinkMode, LinkRecord, ProjectSettings
from uepm.core.discovery import find_plugins
from uepm.core.manifest import LinkManifestManager
from uepm.core.reconciler import LinkReconciler, SyncResult
from uepm.utils.filesystem import list_directory, path_exists

DEFAULT_PLUGINS_DIR = "Plugins"


@dataclass
class PluginStatus:
    """A discovered plugin and the state of its link."""

    record: LinkRecord
    managed: bool
    linked: bool


class Project:
    """Represents a project managed by uepm.

    A project is a directory holding ``node_modules`` and, usually, a
    ``.uproject`` file. Settings come from an optional uepm.yaml.
    """

    def __init__(self, root: Path, settings: ProjectSettings):
        """Initialize a Project.

        Args:
            root: Path to the project root directory
            settings: Parsed project settings
        """
        self._root = root.resolve()
        self._settings = settings

    @classmethod
    def load(cls, path: Path | None = None) -> "Project":
        """Load a project from disk.

        Args:
            path: Path to the project root, or None to search from cwd

        Returns:
            Loaded Project instance

        Raises:
            FileNotFoundError: If no project is found
            ConfigError: If uepm.yaml is invalid
        """
        if path is None:
            path = find_project_root()
            if path is None:
                raise FileNotFoundError(
                    "No uepm.yaml, package.json or .uproject found in current directory "
                    "or any parent directory"
                )
        else:
            path = path.resolve()
            if not path.is_dir():
                raise FileNotFoundError(f"Project directory does not exist: {path}")
            if not is_project_root(path):
                raise FileNotFoundError(f"No uepm.yaml, package.json or .uproject found in {path}")

        return cls(path, load_settings(path))

    @classmethod
    def init(
        cls,
        path: Path,
        link_mode: LinkMode = "auto",
        plugins_dir: str | None = None,
    ) -> "Project":
        """Initialize a new project by writing uepm.yaml.

        Args:
            path: Path to the project root directory
            link_mode: Default link mode
            plugins_dir: Optional plugins directory override

        Returns:
            New Project instance

        Raises:
            FileExistsError: If uepm.yaml already exists
        """
        path = path.resolve()
        settings_path = path / SETTINGS_FILE

        if settings_path.exists():
            raise FileExistsError(f"Project already initialized: {settings_path}")

        settings = ProjectSettings(link_mode=link_mode, plugins_dir=plugins_dir)
        project = cls(path, settings)
        project.save()
        return project

    def save(self) -> None:
        """Save the project settings to disk."""
        save_settings(self._root, self._settings)

    @property
    def root(self) -> Path:
        """Get the project root directory."""
        return self._root

    @property
    def settings(self) -> ProjectSettings:
        """Get the underlying settings."""
        return self._settings

    @property
    def link_mode(self) -> LinkMode:
        return self._settings.link_mode

    @property
    def packages_dir(self) -> Path:
        """Get the directory packages are installed in."""
        return self._root / self._settings.packages_dir

    @property
    def plugins_dir(self) -> Path:
        """Get the directory plugin links are created in."""
        if self._settings.plugins_dir:
            override = Path(self._settings.plugins_dir).expanduser()
            if not override.is_absolute():
                override = self._root / override
            return override.resolve()
        return self._root / DEFAULT_PLUGINS_DIR

    @property
    def uproject_path(self) -> Path | None:
        """Get the .uproject file in the project root, if there is one."""
        for entry in list_directory(self._root):
            if entry.name.lower().endswith(UPROJECT_SUFFIX) and entry.is_file():
                return entry
        return None

    def reconciler(
        self,
        mode: LinkMode | None = None,
        destination: Path | None = None,
    ) -> LinkReconciler:
        """Build a reconciler for this project.

        Args:
            mode: Link mode, defaults to the configured one
            destination: Plugins directory, defaults to the configured one
        """
        return LinkReconciler(
            self._root,
            destination if destination is not None else self.plugins_dir,
            mode or self.link_mode,
            packages_dir=self._settings.packages_dir,
        )

    def sync_links(
        self,
        mode: LinkMode | None = None,
        destination: Path | None = None,
    ) -> SyncResult:
        """Synchronize the plugin links of this project."""
        return self.reconciler(mode, destination).sync()

    def list_plugins(self, destination: Path | None = None) -> list[PluginStatus]:
        """List discovered plugins with their link state.

        Args:
            destination: Plugins directory, defaults to the configured one

        Returns:
            One entry per discovered plugin, in discovery order
        """
        destination = destination if destination is not None else self.plugins_dir
        managed = LinkManifestManager(destination).load()

        statuses: list[PluginStatus] = []
        for record in find_plugins(self._root, self._settings.packages_dir):
            link_path = destination / record.plugin_name
            is_managed = managed.get(record.plugin_name) == record
            statuses.append(
                PluginStatus(
                    record=record,
                    managed=is_managed,
                    linked=is_managed and path_exists(link_path),
                )
            )
        return statuses

    def __repr__(self) -> str:
        return f"Project(root={self._root!r}, link_mode={self.link_mode!r})"
