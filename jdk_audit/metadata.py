"""
Auxiliary metadata of a Java installation.

Loads the files next to the launcher that help classify a build: the
``release`` properties file, JavaFX evidence (legacy ``jfxrt.jar`` with its
manifest, ``jmods/javafx*``) and the vendor ``readme.txt``. A missing or
unreadable file simply leaves its signal unset.
"""

from __future__ import annotations

import logging
import os
import zipfile
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

RELEASE_FILE = "release"
README_FILE = "readme.txt"
LEGACY_TOOLKIT_JAR = "jfxrt.jar"
TOOLKIT_MODULE_PREFIX = "javafx"
MANIFEST_ENTRY = "META-INF/MANIFEST.MF"
LEGACY_EXT_FOLDERS = (
    os.path.join("jre", "lib", "ext"),
    os.path.join("lib", "ext"),
)


@dataclass
class InstallMetadata:
    """
    Signals gathered from files of one installation.

    Attributes:
        install_root: Installation root folder
        release: Parsed release properties (empty if no release file)
        has_release_file: Whether a release file was read
        legacy_toolkit_jar: True/False when an ext folder exists, None otherwise
        jmods_toolkit: True/False when a jmods folder exists, None otherwise
        toolkit_manifest: Created-By / Build-Jdk tags of the legacy toolkit jar
        readme_lines: Lowercased readme lines, None if no readme exists
    """
    install_root: str
    release: dict[str, str] = field(default_factory=dict)
    has_release_file: bool = False
    legacy_toolkit_jar: bool | None = None
    jmods_toolkit: bool | None = None
    toolkit_manifest: dict[str, str] = field(default_factory=dict)
    readme_lines: list[str] | None = None

    def readme_contains(self, phrase: str) -> bool:
        """Case-insensitive phrase search in the readme."""
        if not self.readme_lines:
            return False
        phrase = phrase.lower()
        return any(phrase in line for line in self.readme_lines)


def parse_properties(text: str) -> dict[str, str]:
    """
    Parse key=value lines.

    Blank lines and lines starting with '#' or '!' are skipped. One pair of
    surrounding double quotes is removed from each value.
    """
    props: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line[0] in "#!":
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
            value = value[1:-1]
        props[key.strip()] = value
    return props


def parse_manifest(text: str) -> dict[str, str]:
    """
    Parse 'Key: value' manifest lines.

    Continuation lines (starting with a single space) are appended to the
    previous value.
    """
    attrs: dict[str, str] = {}
    last_key = ""
    for raw in text.splitlines():
        if raw.startswith(" ") and last_key:
            attrs[last_key] += raw[1:]
            continue
        if ":" not in raw:
            continue
        key, value = raw.split(":", 1)
        last_key = key.strip()
        attrs[last_key] = value.strip()
    return attrs


def _read_text(path: str) -> str | None:
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError as e:
        logger.debug(f"Cannot read {path}: {e}")
        return None


def _list_files(folder: str) -> list[str] | None:
    """Names of regular files in folder, None if the folder is missing or unreadable."""
    if not os.path.isdir(folder):
        return None
    try:
        return [entry.name for entry in os.scandir(folder) if entry.is_file()]
    except OSError as e:
        logger.debug(f"Cannot list {folder}: {e}")
        return None


def _find_case_insensitive(folder: str, name: str) -> str | None:
    names = _list_files(folder)
    if not names:
        return None
    for candidate in names:
        if candidate.lower() == name.lower():
            return os.path.join(folder, candidate)
    return None


def read_jar_manifest(jar_path: str) -> dict[str, str]:
    """
    Read the Created-By and Build-Jdk tags from a jar manifest.

    Returns:
        Dict with 'Created-By' and 'Build-Jdk' keys ('' when absent)
    """
    tags = {"Created-By": "", "Build-Jdk": ""}
    try:
        with zipfile.ZipFile(jar_path) as jar:
            text = jar.read(MANIFEST_ENTRY).decode("utf-8", errors="replace")
    except (OSError, KeyError, zipfile.BadZipFile) as e:
        logger.debug(f"No manifest in {jar_path}: {e}")
        return tags

    for key, value in parse_manifest(text).items():
        for tag in tags:
            if key.lower() == tag.lower():
                tags[tag] = value
    return tags


def load_install_metadata(install_root: str) -> InstallMetadata:
    """Collect the classification signals of an installation.

    Args:
        install_root: Installation root (parent of the bin folder)

    Returns:
        InstallMetadata with every found signal set
    """
    meta = InstallMetadata(install_root=install_root)

    release_text = _read_text(os.path.join(install_root, RELEASE_FILE))
    if release_text is not None:
        meta.release = parse_properties(release_text)
        meta.has_release_file = True

    for ext_folder in LEGACY_EXT_FOLDERS:
        names = _list_files(os.path.join(install_root, ext_folder))
        if names is None:
            continue
        jar = next((n for n in names if n.lower() == LEGACY_TOOLKIT_JAR), None)
        meta.legacy_toolkit_jar = jar is not None
        if jar is not None:
            meta.toolkit_manifest = read_jar_manifest(os.path.join(install_root, ext_folder, jar))
        break

    jmods = _list_files(os.path.join(install_root, "jmods"))
    if jmods is not None:
        meta.jmods_toolkit = any(n.startswith(TOOLKIT_MODULE_PREFIX) for n in jmods)

    readme_path = _find_case_insensitive(install_root, README_FILE)
    if readme_path:
        readme_text = _read_text(readme_path)
        if readme_text is not None:
            meta.readme_lines = [line.lower() for line in readme_text.splitlines()]

    return meta
