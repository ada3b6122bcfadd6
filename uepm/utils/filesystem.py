"""Filesystem utilities for uepm.

The probes in this module never raise for missing or unreadable paths;
callers treat "cannot tell" the same as "not there".
"""

import os
import shutil
from pathlib import Path

from uepm.utils.platform import is_windows


def path_exists(path: Path) -> bool:
    """Check whether anything exists at a path, without following links.

    Dangling symlinks count as existing.

    Args:
        path: Path to check

    Returns:
        True if an entry exists at the path
    """
    try:
        path.lstat()
    except (OSError, ValueError):
        return False
    return True


def is_junction(path: Path) -> bool:
    """Check whether a path is a Windows directory junction."""
    try:
        return os.path.isjunction(path)
    except (OSError, ValueError):
        return False


def is_link(path: Path) -> bool:
    """Check whether a path is a symlink or a directory junction.

    Args:
        path: Path to check

    Returns:
        True if the entry at the path is a link of either kind
    """
    try:
        return path.is_symlink() or is_junction(path)
    except (OSError, ValueError):
        return False


def list_directory(path: Path) -> list[Path]:
    """List the entries of a directory, sorted by name.

    Args:
        path: Directory to list

    Returns:
        Entries of the directory, or an empty list if it can't be read
    """
    try:
        return sorted(path.iterdir(), key=lambda p: p.name)
    except (OSError, ValueError):
        return []


def is_directory(path: Path) -> bool:
    """Check whether a path is a directory (following links), never raising."""
    try:
        return path.is_dir()
    except (OSError, ValueError):
        return False


def is_file(path: Path) -> bool:
    """Check whether a path is a regular file (following links), never raising."""
    try:
        return path.is_file()
    except (OSError, ValueError):
        return False


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The directory path
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_path(path: Path) -> bool:
    """Remove a file, link or directory tree.

    Links (symlinks and junctions) are removed themselves; their targets
    are never touched.

    Args:
        path: Path to remove

    Returns:
        True if something was removed, False if nothing existed
    """
    if not path_exists(path):
        return False

    if is_junction(path):
        os.rmdir(path)
    elif path.is_symlink():
        # Directory symlinks on Windows must be removed like directories
        if is_windows() and is_directory(path):
            os.rmdir(path)
        else:
            path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink()
    return True
