"""Platform and OS detection utilities."""

import platform
from typing import Literal

PlatformOS = Literal["windows", "linux", "macos"]


def get_os() -> PlatformOS:
    """Get the current operating system.

    Returns:
        One of: "windows", "linux", "macos"
    """
    system = platform.system().lower()
    if system == "darwin":
        return "macos"
    elif system == "windows":
        return "windows"
    else:
        return "linux"


def is_windows() -> bool:
    """Check if the current OS is Windows.

    Returns:
        True if running on Windows
    """
    return get_os() == "windows"


def supports_junctions() -> bool:
    """Check if directory junctions should be used instead of symlinks.

    Symlink creation on Windows usually needs elevated privileges, while
    ``mklink /J`` does not.
    """
    return is_windows()
