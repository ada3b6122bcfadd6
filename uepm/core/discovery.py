"""Discovery of Unreal plugins inside installed npm packages.

Every package under ``<install_root>/node_modules`` is searched for
``.uplugin`` descriptors. The search is layered and stops at the first
layer that finds anything:

1. descriptors directly in the package root
2. descriptors in ``Plugins/`` and one level of its subdirectories
3. a bounded recursive walk of the whole package

The scan is best effort. Unreadable directories are treated as empty.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from uepm.config.schemas import LinkRecord, is_valid_plugin_name
from uepm.utils.filesystem import is_directory, is_file, list_directory, path_exists

logger = logging.getLogger(__name__)

PACKAGES_DIR = "node_modules"
SCOPE_PREFIX = "@"
DESCRIPTOR_EXTENSION = ".uplugin"
PLUGINS_SUBDIR = "Plugins"
MAX_SEARCH_DEPTH = 6

# Dependency installs and version-control metadata
EXCLUDED_DIRS = frozenset({"node_modules", ".git", ".svn", ".hg"})

# Upper bound on threads used to scan package directories
MAX_SCAN_WORKERS = 8


def plugin_name_from_descriptor(filename: str) -> str | None:
    """Derive a plugin name from a descriptor filename.

    The extension is matched case-insensitively and stripped by length so
    ``Foo.UPLUGIN`` yields ``Foo``.

    Args:
        filename: Name of the file (no directory part)

    Returns:
        The plugin name, or None if the file is not a descriptor or its
        name can't be used as a directory name
    """
    if not filename.lower().endswith(DESCRIPTOR_EXTENSION):
        return None
    name = filename[: -len(DESCRIPTOR_EXTENSION)]
    return name if is_valid_plugin_name(name) else None


def _descriptors_in(directory: Path) -> list[tuple[str, Path]]:
    """Return (plugin_name, directory) for each descriptor directly in a directory."""
    found: list[tuple[str, Path]] = []
    for entry in list_directory(directory):
        plugin_name = plugin_name_from_descriptor(entry.name)
        if plugin_name and is_file(entry):
            found.append((plugin_name, directory))
    return found


def _search_package_root(package_dir: Path) -> list[tuple[str, Path]]:
    return _descriptors_in(package_dir)


def _search_plugins_subdir(package_dir: Path) -> list[tuple[str, Path]]:
    plugins_dir = package_dir / PLUGINS_SUBDIR
    if not is_directory(plugins_dir):
        return []

    found = _descriptors_in(plugins_dir)
    for entry in list_directory(plugins_dir):
        if is_directory(entry):
            found.extend(_descriptors_in(entry))
    return found


def _search_recursive(
    package_dir: Path, max_depth: int = MAX_SEARCH_DEPTH
) -> list[tuple[str, Path]]:
    """Breadth-first search for descriptors, keeping the first hit per plugin name."""
    found: list[tuple[str, Path]] = []
    seen: set[str] = set()
    queue: list[tuple[Path, int]] = [(package_dir, 0)]

    while queue:
        directory, depth = queue.pop(0)
        for entry in list_directory(directory):
            if entry.name in EXCLUDED_DIRS:
                continue
            plugin_name = plugin_name_from_descriptor(entry.name)
            if plugin_name and is_file(entry):
                if plugin_name not in seen:
                    seen.add(plugin_name)
                    found.append((plugin_name, directory))
            elif depth < max_depth and is_directory(entry) and not entry.is_symlink():
                queue.append((entry, depth + 1))

    return found


_STRATEGIES = (_search_package_root, _search_plugins_subdir, _search_recursive)


def scan_package(package_name: str, package_dir: Path) -> list[LinkRecord]:
    """Find the plugins provided by one installed package.

    Args:
        package_name: Package identifier (``name`` or ``@scope/name``)
        package_dir: Directory the package is installed in

    Returns:
        One LinkRecord per distinct plugin name, in discovery order
    """
    for strategy in _STRATEGIES:
        found = strategy(package_dir)
        if found:
            break
    else:
        return []

    records: list[LinkRecord] = []
    seen: set[str] = set()
    for plugin_name, source_dir in found:
        if plugin_name in seen:
            continue
        seen.add(plugin_name)
        records.append(
            LinkRecord(
                plugin_name=plugin_name,
                package_name=package_name,
                target_dir=str(source_dir),
            )
        )

    logger.debug(
        "Package %s provides %d plugin(s): %s",
        package_name,
        len(records),
        ", ".join(r.plugin_name for r in records),
    )
    return records


def list_packages(packages_dir: Path) -> list[tuple[str, Path]]:
    """List installed packages, descending one level into ``@scope`` folders.

    Args:
        packages_dir: The ``node_modules`` directory

    Returns:
        (package_name, package_dir) pairs in lexicographic order
    """
    packages: list[tuple[str, Path]] = []
    for entry in list_directory(packages_dir):
        if entry.name.startswith(".") or not is_directory(entry):
            continue
        if entry.name.startswith(SCOPE_PREFIX):
            for scoped in list_directory(entry):
                if scoped.name.startswith(".") or not is_directory(scoped):
                    continue
                packages.append((f"{entry.name}/{scoped.name}", scoped))
        else:
            packages.append((entry.name, entry))
    return packages


def find_plugins(install_root: Path, packages_dir: str = PACKAGES_DIR) -> list[LinkRecord]:
    """Find every plugin provided by the packages installed under a root.

    Plugin names are only deduplicated within a package. Collisions between
    packages are left for the caller to report.

    Args:
        install_root: Directory containing the package container
        packages_dir: Name of the package container

    Returns:
        LinkRecords in package order, with absolute target directories
    """
    container = install_root.resolve() / packages_dir
    if not path_exists(container):
        logger.debug("No package directory at %s", container)
        return []

    packages = list_packages(container)
    if not packages:
        return []

    workers = min(MAX_SCAN_WORKERS, len(packages))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        per_package = pool.map(lambda pkg: scan_package(*pkg), packages)

    records = [record for found in per_package for record in found]
    logger.info("Discovered %d plugin(s) in %d package(s)", len(records), len(packages))
    return records
