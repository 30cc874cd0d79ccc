"""
Local Java runtime detection.

Finds ``java`` launchers below search roots and captures their
``-version`` banner.
"""

import logging
import os
import re
import subprocess
from typing import Iterable, Sequence

from .environment import WINDOWS, detect_operating_system

logger = logging.getLogger(__name__)

# Constants
TIMEOUT_SECONDS = float(os.environ.get("JDK_AUDIT_TIMEOUT_SECONDS", "5"))

# Installers nest a private JRE below some JDKs under this folder name
SECONDARY_RUNTIME_SEGMENT = "jre"

# Joins banner lines; never appears in a version banner
LINE_DELIMITER = "|"

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")


def launcher_name(operating_system: str | None = None) -> str:
    """Return the Java launcher file name for the platform."""
    if operating_system is None:
        operating_system = detect_operating_system()
    return "java.exe" if operating_system == WINDOWS else "java"


def is_secondary_runtime(path: str) -> bool:
    """Check whether path contains the nested-JRE folder segment."""
    parts = re.split(r"[\\/]+", path)
    return any(part.lower() == SECONDARY_RUNTIME_SEGMENT for part in parts[:-1])


def find_runtimes(roots: Iterable[str], launcher: str | None = None) -> list[str]:
    """Find Java launchers below the given roots.

    Args:
        roots: Directories to walk recursively
        launcher: Launcher file name (default: platform launcher)

    Returns:
        Paths of readable launcher files, secondary JREs excluded
    """
    if launcher is None:
        launcher = launcher_name()
    wanted = launcher.lower()

    paths: list[str] = []
    seen: set[str] = set()

    for root in roots or ():
        if not root or not os.path.isdir(root):
            logger.debug(f"Skipping missing search root: {root}")
            continue

        # os.walk skips directories it cannot list; symlinked dirs are not followed
        for dirpath, _dirnames, filenames in os.walk(root, onerror=_log_walk_error):
            for filename in filenames:
                if filename.lower() != wanted:
                    continue
                path = os.path.join(dirpath, filename)
                if not os.path.isfile(path) or not os.access(path, os.R_OK):
                    continue
                if is_secondary_runtime(path):
                    logger.debug(f"Ignoring secondary runtime: {path}")
                    continue
                if path not in seen:
                    seen.add(path)
                    paths.append(path)

    return paths


def _log_walk_error(error: OSError) -> None:
    logger.debug(f"Cannot read {error.filename}: {error.strerror}")


def install_root_of(java_path: str) -> str:
    """Return the installation root (parent of the bin folder) of a launcher."""
    return os.path.dirname(os.path.dirname(os.path.abspath(java_path)))


def run_version_query(
    java_path: str,
    timeout: float | None = None,
    args: Sequence[str] = ("-version",),
) -> str | None:
    """Run ``java -version`` and return its banner.

    Args:
        java_path: Path to the launcher
        timeout: Timeout in seconds (default: TIMEOUT_SECONDS)
        args: Version query arguments

    Returns:
        Non-empty output lines joined with LINE_DELIMITER, or None if the
        process could not be run, timed out or printed nothing
    """
    try:
        proc = subprocess.run(
            [java_path, *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
            timeout=timeout or TIMEOUT_SECONDS,
            check=False,
            env={**os.environ, "TERM": "dumb"},
        )
    except subprocess.TimeoutExpired:
        logger.debug(f"Version query timed out: {java_path}")
        return None
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Cannot run {java_path}: {e}")
        return None

    lines = [ANSI_ESCAPE_RE.sub("", line.strip()) for line in (proc.stdout or "").splitlines()]
    # The delimiter must not leak into a line
    lines = [line.replace(LINE_DELIMITER, " ") for line in lines if line]
    if not lines:
        return None
    return LINE_DELIMITER.join(lines)


def split_banner(banner: str) -> list[str]:
    """Split a joined banner back into lines."""
    return banner.split(LINE_DELIMITER) if banner else []
