"""
JavaFX SDK update checks.

Installed SDKs are found as ``javafx*`` folders below the configured search
paths, identified by ``lib/javafx.properties``. Available releases come from
the OpenJFX Maven metadata; a newer release of the same feature version is
offered with its Gluon download link if that link answers.
"""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Callable, Iterable

from .catalog import CatalogClient, CatalogError
from .common import vlog
from .environment import LINUX, MACOS, WINDOWS, SysInfo
from .metadata import parse_properties
from .versioning import VersionNumber

logger = logging.getLogger(__name__)

OPENJFX_METADATA_URL = "https://repo1.maven.org/maven2/org/openjfx/javafx/maven-metadata.xml"
GLUON_DOWNLOAD_URL = "https://download2.gluonhq.com/openjfx"

SDK_FOLDER_PREFIX = "javafx"
PROPERTIES_FILE = os.path.join("lib", "javafx.properties")
RUNTIME_VERSION_KEY = "javafx.runtime.version"

GLUON_OS_NAMES = {
    WINDOWS: "windows",
    LINUX: "linux",
    MACOS: "osx",
}

GLUON_ARCHITECTURES = {
    "x86": "x86",
    "amd64": "x64",
    "aarch64": "aarch64",
    "arm": "arm32",
}


@dataclass(frozen=True)
class SdkUpdate:
    """
    Newest known release for an installed SDK.

    Attributes:
        version: Newest release of the same feature version
        uri: Download link, '' when no usable update exists
    """
    version: VersionNumber
    uri: str = ""

    @property
    def has_update(self) -> bool:
        return bool(self.uri)

    def to_dict(self) -> dict[str, str]:
        return {"version": str(self.version), "uri": self.uri}


def read_runtime_version(properties_path: str) -> VersionNumber | None:
    """Read javafx.runtime.version from a javafx.properties file."""
    try:
        with open(properties_path, "r", encoding="utf-8", errors="replace") as f:
            props = parse_properties(f.read())
    except OSError as e:
        logger.debug(f"Cannot read {properties_path}: {e}")
        return None
    version = VersionNumber.try_parse(props.get(RUNTIME_VERSION_KEY, ""))
    return version.semver() if version is not None else None


def find_javafx_sdks(search_paths: Iterable[str]) -> dict[VersionNumber, str]:
    """
    Find installed JavaFX SDKs.

    Args:
        search_paths: Folders containing javafx-sdk-* folders

    Returns:
        Mapping version -> path of its javafx.properties
    """
    found: dict[VersionNumber, str] = {}
    for search_path in search_paths or ():
        try:
            entries = [e for e in os.scandir(search_path) if e.is_dir()]
        except OSError as e:
            logger.debug(f"Cannot list {search_path}: {e}")
            continue
        for entry in entries:
            if not entry.name.lower().startswith(SDK_FOLDER_PREFIX):
                continue
            properties_path = os.path.join(entry.path, PROPERTIES_FILE)
            if not os.path.isfile(properties_path):
                continue
            version = read_runtime_version(properties_path)
            if version is not None:
                found[version] = properties_path
    return found


def parse_maven_versions(xml_text: str) -> list[VersionNumber]:
    """
    Extract the <version> entries of Maven metadata.

    Returns:
        Parsed versions; [] for malformed XML
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        logger.warning(f"Malformed OpenJFX metadata: {e}")
        return []
    versions = []
    for node in root.iter("version"):
        version = VersionNumber.try_parse((node.text or "").strip())
        if version is not None:
            versions.append(version)
    return versions


def get_available_openjfx_versions(client: CatalogClient, url: str = OPENJFX_METADATA_URL) -> list[VersionNumber]:
    """Fetch all published OpenJFX versions, [] if the channel is unreachable."""
    try:
        return parse_maven_versions(client.fetch_text(url))
    except CatalogError as e:
        logger.warning(f"Cannot fetch OpenJFX versions: {e}")
        return []


def _folder_version(version: VersionNumber) -> str:
    text = str(version.feature)
    if version.update > 0:
        text += f".{version.interim}.{version.update}"
        if version.patch > 0:
            text += f".{version.patch}"
    return text


def gluon_download_uri(version: VersionNumber, operating_system: str, architecture: str) -> str:
    """
    Build the Gluon SDK download link, e.g.
    https://download2.gluonhq.com/openjfx/21.0.1/openjfx-21.0.1_linux-x64_bin-sdk.zip

    Returns:
        Link, or '' if Gluon ships no SDK for the platform
    """
    os_name = GLUON_OS_NAMES.get(operating_system)
    arch_name = GLUON_ARCHITECTURES.get(architecture)
    if os_name is None or arch_name is None:
        return ""
    folder = _folder_version(version)
    file_version = folder if version.is_ga else version.to_string(include_build=True)
    return f"{GLUON_DOWNLOAD_URL}/{folder}/openjfx-{file_version}_{os_name}-{arch_name}_bin-sdk.zip"


def check_for_javafx_update(
    version: VersionNumber,
    sys_info: SysInfo,
    available: Iterable[VersionNumber],
    uri_checker: Callable[[str], bool] | None = None,
) -> SdkUpdate:
    """
    Find the newest release of the same feature version.

    Args:
        version: Installed SDK version
        sys_info: Host information for the download link
        available: Published versions
        uri_checker: Called with the link; a False result drops it

    Returns:
        SdkUpdate; its uri is set only for a newer release with a valid link
    """
    same_feature = sorted((v for v in available if v.feature == version.feature), reverse=True)
    if not same_feature:
        return SdkUpdate(version)

    latest = same_feature[0]
    if not latest.is_newer_than(version):
        return SdkUpdate(latest)

    uri = gluon_download_uri(latest, sys_info.operating_system, sys_info.architecture)
    if uri and uri_checker is not None and not uri_checker(uri):
        logger.debug(f"Download link not reachable: {uri}")
        uri = ""
    return SdkUpdate(latest, uri)


def check_for_javafx_updates(
    search_paths: Iterable[str],
    client: CatalogClient,
    sys_info: SysInfo,
    verbose: bool = False,
) -> dict[VersionNumber, SdkUpdate]:
    """
    Check all installed JavaFX SDKs for updates.

    Returns:
        Mapping installed version -> SdkUpdate
    """
    sdks = find_javafx_sdks(search_paths)
    if not sdks:
        return {}
    vlog(f"Found {len(sdks)} JavaFX SDK(s)", verbose)

    available = get_available_openjfx_versions(client)
    return {
        version: check_for_javafx_update(version, sys_info, available, client.uri_exists)
        for version in sdks
    }
