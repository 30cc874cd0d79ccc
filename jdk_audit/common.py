"""
Common utilities shared across jdk_audit modules.
"""

from __future__ import annotations

import os

HOME = os.path.expanduser("~")

SDKMAN_FOLDER = os.path.join(HOME, ".sdkman", "candidates", "java")

# Folders whose contents are controlled by a Java version manager
VERSION_MANAGER_FOLDERS = (
    SDKMAN_FOLDER,
    os.path.join(HOME, ".asdf", "installs", "java"),
    os.path.join(HOME, ".jabba", "jdk"),
    os.path.join(HOME, ".jenv", "versions"),
)


def normalize_path(path: str) -> str:
    """Normalize a path for comparison (case, separators, trailing slash)."""
    return os.path.normcase(os.path.normpath(os.path.abspath(path)))


def is_under(path: str, folder: str) -> bool:
    """
    Check whether path equals or lies below folder.

    Args:
        path: Path to test
        folder: Candidate parent folder

    Returns:
        True if path is folder or a descendant of it
    """
    if not path or not folder:
        return False
    p = normalize_path(path)
    f = normalize_path(folder)
    return p == f or p.startswith(f.rstrip(os.sep) + os.sep)


def is_handled_by_version_manager(path: str, folders: tuple[str, ...] = VERSION_MANAGER_FOLDERS) -> bool:
    """Check whether path lies inside a version-manager-controlled folder."""
    return any(is_under(path, folder) for folder in folders)


def vlog(msg: str, verbose: bool = False) -> None:
    """Log msg on the package logger when verbose or $JDK_AUDIT_DEBUG=1."""
    if verbose or os.environ.get("JDK_AUDIT_DEBUG", "0") == "1":
        from .logging_config import get_logger
        get_logger().info(msg)
