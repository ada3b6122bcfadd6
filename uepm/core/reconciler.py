"""Reconciliation of plugin links against installed packages.

A sync run scans the installed packages, compares what it finds with the
link manifest, removes links whose package went away, creates links for
new plugins and writes the manifest once at the end.

Only paths recorded in the manifest are ever removed or replaced. Anything
else found in the plugins directory belongs to the user.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from uepm.config.schemas import LinkMode, LinkRecord
from uepm.core.discovery import PACKAGES_DIR, find_plugins
from uepm.core.linker import LinkError, create_link, get_link_strategy, remove_link
from uepm.core.manifest import LinkManifestManager
from uepm.utils.filesystem import ensure_directory, is_link, path_exists

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Result of one sync run.

    ``ok`` is True whenever the run got to the end, even if individual
    links failed; those failures are listed in ``warnings``.
    """

    ok: bool = False
    linked: list[LinkRecord] = field(default_factory=list)
    removed: list[LinkRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using camelCase record fields."""
        data: dict[str, Any] = {
            "ok": self.ok,
            "linked": [r.to_json() for r in self.linked],
            "removed": [r.to_json() for r in self.removed],
            "warnings": list(self.warnings),
        }
        if self.error is not None:
            data["error"] = self.error
        return data


class LinkReconciler:
    """Keeps a plugins directory in line with the installed packages.

    The reconciler owns the link manifest of its destination directory.
    Runs must not overlap for the same destination.
    """

    def __init__(
        self,
        install_root: Path,
        destination_dir: Path,
        mode: LinkMode = "auto",
        packages_dir: str = PACKAGES_DIR,
    ):
        """Initialize the reconciler.

        Args:
            install_root: Directory holding the package container
            destination_dir: Plugins directory the links are created in
            mode: "auto" for native links, "copy" for full copies
            packages_dir: Name of the package container
        """
        self.install_root = install_root.resolve()
        self.destination_dir = destination_dir.resolve()
        self.mode = mode
        self.packages_dir = packages_dir
        self.manifest_manager = LinkManifestManager(self.destination_dir)

    def sync(self) -> SyncResult:
        """Link every discovered plugin and drop links to removed ones.

        Returns:
            SyncResult describing what changed
        """
        discovered = find_plugins(self.install_root, self.packages_dir)
        return self._run(discovered)

    def clean(self) -> SyncResult:
        """Remove every link recorded in the manifest."""
        return self._run([])

    def _run(self, discovered: list[LinkRecord]) -> SyncResult:
        result = SyncResult()
        try:
            self._reconcile(discovered, result)
        except (OSError, LinkError) as e:
            logger.error("Link sync for %s failed: %s", self.destination_dir, e)
            result.ok = False
            result.error = str(e)
        return result

    def _reconcile(self, discovered: list[LinkRecord], result: SyncResult) -> None:
        if not discovered and not self.manifest_manager.exists():
            logger.debug("Nothing to link and no manifest in %s", self.destination_dir)
            result.ok = True
            return

        ensure_directory(self.destination_dir)
        managed = self.manifest_manager.load()

        desired = self._desired_set(discovered, result)

        new_managed = dict(managed)
        self._remove_stale(managed, desired, new_managed, result)
        self._link_desired(managed, desired, new_managed, result)

        self.manifest_manager.save(list(new_managed.values()))
        result.ok = True

        logger.info(
            "Synced %s: %d linked, %d removed, %d warning(s)",
            self.destination_dir,
            len(result.linked),
            len(result.removed),
            len(result.warnings),
        )

    def _desired_set(
        self, discovered: list[LinkRecord], result: SyncResult
    ) -> dict[str, LinkRecord]:
        desired: dict[str, LinkRecord] = {}
        for record in discovered:
            kept = desired.get(record.plugin_name)
            if kept is not None:
                result.warnings.append(
                    f"Multiple packages provide plugin '{record.plugin_name}'; keeping "
                    f"'{kept.package_name}' and dropping '{record.package_name}'."
                )
                continue
            desired[record.plugin_name] = record
        return desired

    def _remove_stale(
        self,
        managed: dict[str, LinkRecord],
        desired: dict[str, LinkRecord],
        new_managed: dict[str, LinkRecord],
        result: SyncResult,
    ) -> None:
        for plugin_name, record in managed.items():
            if plugin_name in desired:
                continue

            link_path = self.destination_dir / plugin_name
            if path_exists(link_path):
                if not is_link(link_path) and self.mode != "copy":
                    # Not something we would have created; forget it but keep the files
                    result.warnings.append(
                        f"Managed link '{link_path}' exists but is not a link "
                        "(manifest entry removed)."
                    )
                    del new_managed[plugin_name]
                    result.removed.append(record)
                    continue
                try:
                    remove_link(link_path)
                except LinkError as e:
                    result.warnings.append(f"Failed to remove link '{link_path}': {e}")
                    continue

            del new_managed[plugin_name]
            result.removed.append(record)

    def _link_desired(
        self,
        managed: dict[str, LinkRecord],
        desired: dict[str, LinkRecord],
        new_managed: dict[str, LinkRecord],
        result: SyncResult,
    ) -> None:
        strategy = get_link_strategy(self.mode)

        for plugin_name, record in desired.items():
            link_path = self.destination_dir / plugin_name
            source_dir = Path(record.target_dir)
            previous = managed.get(plugin_name)

            if path_exists(link_path):
                if previous is None:
                    result.warnings.append(
                        f"Skipping '{link_path}' because it exists (not managed)."
                    )
                    continue
                if previous == record and strategy.is_current(link_path, source_dir):
                    continue
                try:
                    remove_link(link_path)
                except LinkError as e:
                    result.warnings.append(f"Failed to replace link '{link_path}': {e}")
                    continue

            try:
                create_link(link_path, source_dir, self.mode)
            except LinkError as e:
                # A previously managed entry stays recorded so the path is not orphaned
                result.warnings.append(f"Failed to create link '{link_path}': {e}")
                continue

            new_managed[plugin_name] = record
            result.linked.append(record)


def sync_plugin_links(
    install_root: Path, destination_dir: Path, mode: LinkMode = "auto"
) -> SyncResult:
    """Synchronize the plugin links in a destination directory.

    Args:
        install_root: Directory holding ``node_modules``
        destination_dir: Plugins directory the links are created in
        mode: "auto" for native links, "copy" for full copies

    Returns:
        SyncResult describing what changed
    """
    return LinkReconciler(install_root, destination_dir, mode).sync()
