"""
buildxvfb - Platform Utilities

Centralized platform detection for the node a build runs on.
All platform-conditional code should import from this module.
"""

import os
import shutil
import sys
import tempfile


def is_linux() -> bool:
    """Check if running on Linux."""
    return sys.platform.startswith("linux")


def is_macos() -> bool:
    """Check if running on macOS."""
    return sys.platform == "darwin"


def is_windows() -> bool:
    """Check if running on Windows."""
    return sys.platform == "win32"


def is_unix() -> bool:
    """Check if the node can launch Unix processes (anything POSIX)."""
    return os.name == "posix"


def platform_name() -> str:
    """Return a normalized platform name string."""
    if is_linux():
        return "linux"
    if is_macos():
        return "macos"
    if is_windows():
        return "windows"
    return sys.platform


def default_root_path() -> str:
    """Return the node-local directory framebuffer dirs are created under."""
    return tempfile.gettempdir()


def which_xvfb(home: str = "") -> str | None:
    """Return the full path of the Xvfb binary, or None if it can't be found.

    With *home* set, only ``<home>/Xvfb`` is considered; otherwise PATH is
    searched.
    """
    if home:
        candidate = os.path.join(home, "Xvfb")
        return candidate if os.access(candidate, os.X_OK) else None
    return shutil.which("Xvfb")
