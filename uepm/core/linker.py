"""Creation and removal of plugin links.

A plugin is exposed in the plugins directory in one of three ways:

- a symbolic link (``auto`` mode on Linux and macOS)
- a directory junction (``auto`` mode on Windows, no elevation needed)
- a full copy of the plugin directory (``copy`` mode)

All three are removed through :func:`remove_link`, which never follows a
link into its target.
"""

import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path, PurePath

from uepm.config.schemas import LinkMode
from uepm.core.discovery import EXCLUDED_DIRS
from uepm.utils.filesystem import (
    is_directory,
    is_link,
    path_exists,
    remove_path,
)
from uepm.utils.platform import supports_junctions

logger = logging.getLogger(__name__)


class LinkError(Exception):
    """Error creating or removing a plugin link."""

    def __init__(self, message: str, link_path: Path | None = None):
        self.link_path = link_path
        super().__init__(message)


class LinkStrategy(ABC):
    """A way of making a source directory visible at another path."""

    name: str = ""

    @abstractmethod
    def create(self, link_path: Path, source_dir: Path) -> None:
        """Create ``link_path`` exposing ``source_dir``.

        The parent of ``link_path`` exists and ``link_path`` itself does not.

        Raises:
            LinkError: If the link can't be created
        """
        ...

    @abstractmethod
    def is_current(self, link_path: Path, source_dir: Path) -> bool:
        """Check whether ``link_path`` already exposes ``source_dir`` this way."""
        ...


def _points_to(link_path: Path, source_dir: Path) -> bool:
    try:
        return link_path.resolve() == source_dir.resolve()
    except (OSError, RuntimeError):
        return False


class SymlinkStrategy(LinkStrategy):
    """Expose the plugin through a symbolic link."""

    name = "symlink"

    def create(self, link_path: Path, source_dir: Path) -> None:
        try:
            os.symlink(source_dir, link_path, target_is_directory=True)
        except OSError as e:
            raise LinkError(f"Cannot create symlink: {e}", link_path) from e

    def is_current(self, link_path: Path, source_dir: Path) -> bool:
        return is_link(link_path) and _points_to(link_path, source_dir)


class JunctionStrategy(LinkStrategy):
    """Expose the plugin through a Windows directory junction."""

    name = "junction"

    def create(self, link_path: Path, source_dir: Path) -> None:
        cmd = ["cmd.exe", "/C", "mklink", "/J", str(link_path), str(source_dir)]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise LinkError(f"Cannot run mklink: {e}", link_path) from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            message = f"mklink failed (exit code {result.returncode})."
            if detail:
                message = f"{message} {detail}"
            raise LinkError(message, link_path)

    def is_current(self, link_path: Path, source_dir: Path) -> bool:
        return is_link(link_path) and _points_to(link_path, source_dir)


def is_excluded(relative_path: PurePath) -> bool:
    """Check whether a path relative to the copy root lies in an excluded folder."""
    return any(part in EXCLUDED_DIRS for part in relative_path.parts)


class CopyStrategy(LinkStrategy):
    """Expose the plugin through a full copy of its directory.

    Symlinks inside the source are dereferenced. Dependency installs and
    version-control folders are left out. Exclusion is decided on the path
    relative to the copy root, since the source itself usually sits inside
    ``node_modules``.
    """

    name = "copy"

    def create(self, link_path: Path, source_dir: Path) -> None:
        def ignore(directory: str, names: list[str]) -> set[str]:
            relative = PurePath(directory).relative_to(source_dir)
            return {name for name in names if is_excluded(relative / name)}

        try:
            shutil.copytree(
                source_dir,
                link_path,
                symlinks=False,
                ignore=ignore,
                ignore_dangling_symlinks=True,
            )
        except (OSError, shutil.Error) as e:
            # Leave nothing half-copied behind
            if path_exists(link_path):
                shutil.rmtree(link_path, ignore_errors=True)
            raise LinkError(f"Cannot copy {source_dir}: {e}", link_path) from e

    def is_current(self, link_path: Path, source_dir: Path) -> bool:
        return is_directory(link_path) and not is_link(link_path)


def get_link_strategy(mode: LinkMode) -> LinkStrategy:
    """Get the strategy for a link mode on the current platform.

    Args:
        mode: "auto" for a native link, "copy" for a full copy

    Returns:
        An instantiated strategy

    Raises:
        ValueError: If the mode is unknown
    """
    if mode == "copy":
        return CopyStrategy()
    if mode == "auto":
        return JunctionStrategy() if supports_junctions() else SymlinkStrategy()
    raise ValueError(f"Unknown link mode: {mode}")


def create_link(link_path: Path, source_dir: Path, mode: LinkMode) -> None:
    """Expose ``source_dir`` at ``link_path``.

    An existing link at ``link_path`` is replaced. Anything else there is
    left alone and reported as an error.

    Args:
        link_path: Path to create
        source_dir: Plugin directory to expose
        mode: Link mode

    Raises:
        LinkError: If the path is occupied or the link can't be created
    """
    strategy = get_link_strategy(mode)

    if path_exists(link_path):
        if not is_link(link_path):
            raise LinkError("Destination path already exists and is not a link.", link_path)
        remove_link(link_path)

    try:
        link_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise LinkError(f"Cannot create {link_path.parent}: {e}", link_path) from e

    logger.debug("Creating %s %s -> %s", strategy.name, link_path, source_dir)
    strategy.create(link_path, source_dir)


def remove_link(link_path: Path) -> bool:
    """Remove a link or copied plugin directory.

    Args:
        link_path: Path to remove

    Returns:
        True if something was removed, False if nothing existed

    Raises:
        LinkError: If the path can't be removed
    """
    try:
        removed = remove_path(link_path)
    except OSError as e:
        raise LinkError(f"Cannot remove {link_path}: {e}", link_path) from e
    if removed:
        logger.debug("Removed %s", link_path)
    return removed
