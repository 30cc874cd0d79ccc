"""
Host environment detection.

Detects the operating system (including musl-based Alpine Linux), the CPU
architecture and whether the process runs natively or under emulation
(Rosetta 2 on macOS). The result is a SysInfo describing the host itself,
not any particular Java installation.
"""

from __future__ import annotations

import os
import platform
import subprocess
from dataclasses import dataclass

from .common import vlog

# Operating system tokens
WINDOWS = "windows"
MACOS = "macos"
LINUX = "linux"
ALPINE_LINUX = "alpine_linux"
SOLARIS = "solaris"
UNKNOWN = "unknown"

# Operating modes
NATIVE = "native"
EMULATED = "emulated"

OS_RELEASE_FILE = "/etc/os-release"

# Raw architecture text -> canonical token
ARCHITECTURE_ALIASES = {
    "amd64": "amd64",
    "x86_64": "amd64",
    "x64": "amd64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "x86": "x86",
    "x32": "x86",
    "x86_32": "x86",
    "i386": "x86",
    "i486": "x86",
    "i586": "x86",
    "i686": "x86",
    "arm": "arm",
    "arm32": "arm",
    "aarch32": "arm",
    "armv6l": "arm",
    "armv7l": "arm",
    "ppc64le": "ppc64le",
    "ppc64": "ppc64",
    "ppc": "ppc",
    "s390x": "s390x",
    "sparcv9": "sparcv9",
    "sparc": "sparc",
    "riscv64": "riscv64",
    "ia64": "ia64",
    "mips": "mips",
}

# Canonical token -> other tokens the package catalog uses for the same CPU
ARCHITECTURE_SYNONYMS: dict[str, tuple[str, ...]] = {
    "amd64": ("x64", "x86_64"),
    "aarch64": ("arm64",),
    "x86": ("x32", "x86_32", "i386", "i586", "i686"),
    "arm": ("arm32", "aarch32", "armv6l", "armv7l"),
}


@dataclass(frozen=True)
class SysInfo:
    """
    Host system information.

    Attributes:
        operating_system: OS token ('windows', 'macos', 'linux', 'alpine_linux', ...)
        architecture: Canonical architecture token ('amd64', 'aarch64', ...)
        operating_mode: 'native', 'emulated' or 'unknown'
    """
    operating_system: str
    architecture: str
    operating_mode: str = NATIVE

    def __str__(self) -> str:
        return f"{self.operating_system}/{self.architecture} ({self.operating_mode})"

    @property
    def architecture_synonyms(self) -> tuple[str, ...]:
        return ARCHITECTURE_SYNONYMS.get(self.architecture, ())


def normalize_architecture(text: str | None) -> str:
    """
    Map raw architecture text to a canonical token.

    Args:
        text: Text like 'x86_64', 'AMD64', 'arm64'

    Returns:
        Canonical token, or 'unknown' if not recognised
    """
    if not text:
        return UNKNOWN
    arch = text.strip().lower()
    if arch in ARCHITECTURE_ALIASES:
        return ARCHITECTURE_ALIASES[arch]

    # Loose matching for descriptive strings
    if "sparc" in arch:
        return "sparc"
    if "amd64" in arch or "86_64" in arch:
        return "amd64"
    if "aarch64" in arch or ("arm" in arch and "64" in arch):
        return "aarch64"
    if "86" in arch:
        return "x86"
    if "s390x" in arch:
        return "s390x"
    if "ppc64" in arch:
        return "ppc64"
    if "arm" in arch:
        return "arm"
    return UNKNOWN


def _run(args: list[str]) -> str:
    """Run a short host command and return stripped stdout, or '' on failure."""
    try:
        proc = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            text=True,
            timeout=2,
            check=False,
        )
        return (proc.stdout or "").strip()
    except (OSError, subprocess.SubprocessError):
        return ""


def is_alpine_linux(os_release_file: str = OS_RELEASE_FILE) -> bool:
    """
    Check whether the host is Alpine Linux (musl libc).

    Args:
        os_release_file: Path to os-release file

    Returns:
        True if a NAME entry mentions Alpine
    """
    try:
        with open(os_release_file, "r", encoding="utf-8", errors="ignore") as f:
            for line in f:
                if line.startswith("NAME=") and "alpine" in line.lower():
                    return True
    except OSError:
        pass
    return False


def detect_operating_system() -> str:
    """
    Detect the host operating system.

    Returns:
        One of 'windows', 'macos', 'linux', 'alpine_linux', 'solaris', 'unknown'
    """
    system = platform.system().lower()
    if system.startswith("win"):
        return WINDOWS
    if system == "darwin" or "mac" in system:
        return MACOS
    if "nux" in system or "nix" in system:
        return ALPINE_LINUX if is_alpine_linux() else LINUX
    if "sunos" in system:
        return SOLARIS
    return UNKNOWN


def detect_architecture(operating_system: str | None = None) -> str:
    """
    Detect the host CPU architecture.

    Args:
        operating_system: OS token (detected if None)

    Returns:
        Canonical architecture token
    """
    if operating_system is None:
        operating_system = detect_operating_system()

    if operating_system == WINDOWS:
        raw = os.environ.get("PROCESSOR_ARCHITEW6432") or os.environ.get("PROCESSOR_ARCHITECTURE", "")
    else:
        raw = _run(["uname", "-m"])

    arch = normalize_architecture(raw)
    if arch == UNKNOWN:
        arch = normalize_architecture(platform.machine())
    return arch


def detect_operating_mode(operating_system: str) -> str:
    """
    Detect whether the process runs natively.

    On macOS, a translated (Rosetta 2) process reports sysctl.proc_translated=1.
    """
    if operating_system == MACOS:
        return EMULATED if _run(["sysctl", "-in", "sysctl.proc_translated"]) == "1" else NATIVE
    if operating_system == UNKNOWN:
        return UNKNOWN
    return NATIVE


def detect_sys_info(verbose: bool = False) -> SysInfo:
    """
    Detect operating system, architecture and operating mode of the host.

    Args:
        verbose: Enable verbose logging

    Returns:
        SysInfo for the host
    """
    operating_system = detect_operating_system()
    architecture = detect_architecture(operating_system)
    mode = detect_operating_mode(operating_system)
    info = SysInfo(operating_system, architecture, mode)
    vlog(f"Host system: {info}", verbose)
    return info


def get_java_home() -> str:
    """Return the JAVA_HOME of the current process, or '' if unset."""
    return os.environ.get("JAVA_HOME", "").strip()
