"""
Vendor classification of Java installations.

Turns a ``java -version`` banner plus the installation's metadata into a
Distribution. Vendor detection is driven by ordered tables that are
evaluated top to bottom, first match wins:

- BRAND_MARKERS: case-sensitive brand strings in the runtime (detail) line
- IMPLEMENTOR_TABLE: IMPLEMENTOR values of the release file
- README_MARKERS: vendor phrases in readme.txt
- FALLBACK_MARKERS: case-insensitive words in the detail and VM lines

Adding a vendor means adding a row; the control flow stays as it is.

Example banner::

    openjdk version "17.0.2" 2022-01-18 LTS
    OpenJDK Runtime Environment Zulu17.32+13-CA (build 17.0.2+8-LTS)
    OpenJDK 64-Bit Server VM Zulu17.32+13-CA (build 17.0.2+8-LTS, mixed mode)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, NamedTuple

from .common import normalize_path
from .detection import split_banner
from .distribution import (
    BUILD_OF_GRAALVM,
    BUILD_OF_OPEN_JDK,
    DEFAULT_FEATURES,
    FEATURE_NONE,
    UNKNOWN_BUILD_OF_OPENJDK,
    Distribution,
    feature_from_text,
)
from .environment import SysInfo
from .metadata import InstallMetadata
from .versioning import VersionNumber, extract_version_number

logger = logging.getLogger(__name__)

QUOTED_VERSION_RE = re.compile(r'"([^"]*)"')
VENDOR_BUILD_RE = re.compile(r"\((build\s)(.*)\)")
GRAALVM_VERSION_RE = re.compile(r"(.*graalvm\s)(.*)(\s\(.*)")
JVMCI_RE = re.compile(r"jvmci-([0-9][\w.\-]*)")

# First GraalVM community build that carries no GraalVM brand in its banner
GRAALVM_COMMUNITY_JVMCI = VersionNumber.from_text("23.0-b12")

# JVM notices printed before the banner
NOTICE_PREFIXES = ("Picked up ", "NOTE: ")

UNKNOWN_API_STRING = "oracle_open_jdk"


def _vendor_build(line: str) -> VersionNumber | None:
    """Read the version from the '(build ...)' part of a banner line."""
    m = VENDOR_BUILD_RE.search(line)
    return VersionNumber.try_parse(m.group(2)) if m else None


def _graalvm_version(line: str) -> VersionNumber | None:
    m = GRAALVM_VERSION_RE.search(line.lower())
    return VersionNumber.try_parse(m.group(2)) if m else None


class BrandMarker(NamedTuple):
    required: tuple[str, ...]
    name: str
    api_string: str
    build_scope: str = BUILD_OF_OPEN_JDK
    version_extractor: Callable[[str], VersionNumber | None] | None = None
    prefix: bool = False
    excluded: tuple[str, ...] = ()

    def matches(self, line: str) -> bool:
        if any(token in line for token in self.excluded):
            return False
        if self.prefix:
            return line.startswith(self.required[0])
        return all(token in line for token in self.required)


BRAND_MARKERS: tuple[BrandMarker, ...] = (
    BrandMarker(("Zulu",), "Zulu", "zulu", version_extractor=_vendor_build),
    BrandMarker(("Zing",), "ZuluPrime", "zulu_prime", version_extractor=_vendor_build),
    BrandMarker(("Prime",), "ZuluPrime", "zulu_prime", version_extractor=_vendor_build),
    BrandMarker(("Semeru", "Certified"), "Semeru certified", "semeru_certified"),
    BrandMarker(("Semeru",), "Semeru", "semeru"),
    BrandMarker(("Tencent",), "Kona", "kona"),
    BrandMarker(("Bisheng",), "Bisheng", "bisheng"),
    BrandMarker(("Homebrew",), "Homebrew", "homebrew"),
    BrandMarker(("Corretto",), "Corretto", "corretto"),
    BrandMarker(("Temurin",), "Temurin", "temurin"),
    BrandMarker(("Microsoft",), "Microsoft", "microsoft"),
    BrandMarker(("SapMachine",), "SAP Machine", "sap_machine"),
    BrandMarker(("Dragonwell",), "Dragonwell", "dragonwell"),
    BrandMarker(("JBR",), "JetBrains", "jetbrains"),
    BrandMarker(("Red_Hat",), "Red Hat", "redhat"),
    BrandMarker(("AdoptOpenJDK",), "Adopt OpenJDK", "aoj"),
    BrandMarker(("Java(TM) SE",), "Oracle", "oracle", prefix=True, excluded=("GraalVM",)),
)


class ImplementorRow(NamedTuple):
    implementor: str
    name: str
    api_string: str
    # IMPLEMENTOR_VERSION prefixes that must match, empty means any
    version_prefixes: tuple[str, ...] = ()
    build_scope: str = BUILD_OF_OPEN_JDK


IMPLEMENTOR_TABLE: tuple[ImplementorRow, ...] = (
    ImplementorRow("AdoptOpenJDK", "Adopt OpenJDK", "aoj"),
    ImplementorRow("Alibaba", "Dragonwell", "dragonwell"),
    ImplementorRow("Amazon.com Inc.", "Corretto", "corretto"),
    ImplementorRow("Azul Systems, Inc.", "Zulu", "zulu", ("Zulu",)),
    ImplementorRow("Azul Systems, Inc.", "ZuluPrime", "zulu_prime", ("Zing", "Prime")),
    ImplementorRow("mandrel", "Mandrel", "mandrel", build_scope=BUILD_OF_GRAALVM),
    ImplementorRow("Microsoft", "Microsoft", "microsoft"),
    ImplementorRow("ojdkbuild", "OJDK Build", "ojdk_build"),
    ImplementorRow("Oracle Corporation", "Oracle OpenJDK", "oracle_open_jdk"),
    ImplementorRow("Red Hat, Inc.", "Red Hat", "redhat"),
    ImplementorRow("SAP SE", "SAP Machine", "sap_machine"),
    ImplementorRow("OpenLogic", "OpenLogic", "openlogic"),
    ImplementorRow("JetBrains s.r.o.", "JetBrains", "jetbrains"),
    ImplementorRow("Eclipse Foundation", "Temurin", "temurin"),
    ImplementorRow("Tencent", "Kona", "kona"),
    ImplementorRow("Bisheng", "Bisheng", "bisheng"),
    ImplementorRow("Debian", "Debian", "debian"),
    ImplementorRow("Ubuntu", "Ubuntu", "ubuntu"),
    ImplementorRow("Homebrew", "Homebrew", "homebrew"),
)

# (JVM_VARIANT, name, api string), applied to Adopt OpenJDK builds only
JVM_VARIANTS = (
    ("dcevm", "Trava OpenJDK", "trava"),
    ("openj9", "Adopt OpenJDK J9", "aoj_openj9"),
)

RELEASE_OS_NAMES = {
    "darwin": "macos",
    "linux": "linux",
    "windows": "windows",
}

# (readme phrase, name, api string, build scope), most specific first
README_MARKERS = (
    ("liberica native image kit", "Liberica Native", "liberica_native", BUILD_OF_GRAALVM),
    ("liberica", "Liberica", "liberica", BUILD_OF_OPEN_JDK),
)

GRAALVM_CE = "graalvm"

# (lowercase word, name, api string)
FALLBACK_MARKERS = (
    (GRAALVM_CE, "GraalVM CE", "graalvm_ce"),
    ("microsoft", "Microsoft", "microsoft"),
    ("corretto", "Corretto", "corretto"),
    ("temurin", "Temurin", "temurin"),
)

# IMPLEMENTOR -> (name, api prefix) for GraalVM CE builds found by the fallback
GRAALVM_IMPLEMENTORS = {
    "GraalVM Community": ("GraalVM CE", "graalvm_ce"),
    "GraalVM Enterprise": ("GraalVM", "graalvm"),
}


@dataclass
class _Classification:
    """Mutable working state of a single classify() call."""
    version: VersionNumber
    name: str | None = None
    api_string: str = ""
    build_scope: str = BUILD_OF_OPEN_JDK
    jdk_version: VersionNumber | None = None
    operating_system: str = ""
    architecture: str = ""
    fx_bundled: bool = False
    modules: list[str] = field(default_factory=list)
    toolkit_manifest: dict[str, str] = field(default_factory=dict)
    feature: str = FEATURE_NONE

    @property
    def resolved(self) -> bool:
        return self.name is not None

    def assign(self, name: str, api_string: str, build_scope: str | None = None) -> None:
        self.name = name
        self.api_string = api_string
        if build_scope is not None:
            self.build_scope = build_scope


def _banner_lines(banner: str) -> list[str]:
    lines = [line.strip() for line in split_banner(banner)]
    return [line for line in lines if line and not line.startswith(NOTICE_PREFIXES)]


def parse_banner_version(line: str, banner: str = "") -> VersionNumber:
    """
    Read the installation version from the first banner line.

    Falls back to any dotted number in the whole banner, then to 0.
    """
    m = QUOTED_VERSION_RE.search(line)
    if m:
        version = VersionNumber.try_parse(m.group(1))
        if version is not None:
            return VersionNumber(version.feature, version.interim, version.update, pre=version.pre, build=version.build)
    dotted = extract_version_number(banner or line)
    return VersionNumber.try_parse(dotted) or VersionNumber(0)


def _apply_prefix(state: _Classification, line1: str, line2: str) -> None:
    if line1.startswith("openjdk"):
        return
    if line1.startswith("java"):
        if "GraalVM" in line2:
            state.assign("GraalVM", "graalvm", BUILD_OF_GRAALVM)
        else:
            state.assign("Oracle", "oracle")


def _apply_brand_markers(state: _Classification, line2: str) -> bool:
    for marker in BRAND_MARKERS:
        if not marker.matches(line2):
            continue
        state.assign(marker.name, marker.api_string, marker.build_scope)
        if marker.version_extractor is not None:
            vendor_version = marker.version_extractor(line2)
            if vendor_version is not None:
                state.version = vendor_version
        return True
    return False


def _apply_jvmci(state: _Classification, line2: str) -> None:
    if state.api_string == "graalvm":
        return
    m = JVMCI_RE.search(line2)
    if not m:
        return
    found = VersionNumber.try_parse(m.group(1))
    if found is not None and found >= GRAALVM_COMMUNITY_JVMCI:
        state.assign("GraalVM Community", "graalvm_community", BUILD_OF_GRAALVM)


def _lookup_implementor(release: dict[str, str]) -> ImplementorRow | None:
    implementor = release.get("IMPLEMENTOR", "")
    implementor_version = release.get("IMPLEMENTOR_VERSION", "")
    for row in IMPLEMENTOR_TABLE:
        if row.implementor != implementor:
            continue
        if row.version_prefixes and not implementor_version.startswith(row.version_prefixes):
            continue
        return row
    return None


def _apply_release(state: _Classification, metadata: InstallMetadata) -> None:
    release = metadata.release

    if not state.resolved and "IMPLEMENTOR" in release:
        row = _lookup_implementor(release)
        if row is not None:
            state.assign(row.name, row.api_string, row.build_scope)

    if "OS_ARCH" in release:
        state.architecture = release["OS_ARCH"].lower()

    if release.get("BUILD_TYPE") == "commercial":
        state.assign("Oracle", "oracle")

    if "JVM_VARIANT" in release and state.api_string == "aoj":
        variant = release["JVM_VARIANT"].lower()
        for jvm_variant, name, api_string in JVM_VARIANTS:
            if variant == jvm_variant:
                state.assign(name, api_string)
                break

    os_name = release.get("OS_NAME", "").lower()
    if os_name in RELEASE_OS_NAMES:
        state.operating_system = RELEASE_OS_NAMES[os_name]

    if "MODULES" in release:
        state.modules = release["MODULES"].split()

    if state.api_string == "mandrel":
        state.build_scope = BUILD_OF_GRAALVM
        _take_jdk_version(state, release)


def _take_jdk_version(state: _Classification, release: dict[str, str]) -> None:
    if state.jdk_version is None and "JAVA_VERSION" in release:
        state.jdk_version = VersionNumber.try_parse(release["JAVA_VERSION"])


def _use_graalvm_version(state: _Classification, release: dict[str, str], line3: str) -> None:
    """Report the GraalVM version; the Java version still gives the major."""
    java_version = state.version
    graal_version = _graalvm_version(line3)
    if graal_version is not None:
        state.version = graal_version
    _take_jdk_version(state, release)
    if state.jdk_version is None:
        state.jdk_version = java_version


def _apply_readme(state: _Classification, metadata: InstallMetadata, line3: str) -> None:
    for phrase, name, api_string, build_scope in README_MARKERS:
        if not metadata.readme_contains(phrase):
            continue
        state.assign(name, api_string, build_scope)
        if build_scope == BUILD_OF_GRAALVM:
            _use_graalvm_version(state, metadata.release, line3)
        return


def _apply_fallback_markers(state: _Classification, metadata: InstallMetadata, line2: str, line3: str) -> None:
    text = f"{line2}\n{line3}".lower()
    for word, name, api_string in FALLBACK_MARKERS:
        if word not in text:
            continue
        if word == GRAALVM_CE:
            _apply_graalvm_ce(state, metadata, line3)
        else:
            state.assign(name, api_string)
        return


def _apply_graalvm_ce(state: _Classification, metadata: InstallMetadata, line3: str) -> None:
    release = metadata.release
    name, prefix = GRAALVM_IMPLEMENTORS.get(release.get("IMPLEMENTOR", ""), ("GraalVM CE", "graalvm_ce"))
    major = state.version.feature
    state.assign(name, f"{prefix}{major}" if major >= 8 else "", BUILD_OF_GRAALVM)

    if release.get("VENDOR", "").lower() == "gluon":
        state.assign("Gluon GraalVM CE", "gluon_graalvm", BUILD_OF_GRAALVM)
    _use_graalvm_version(state, release, line3)


def _apply_toolkit(state: _Classification, metadata: InstallMetadata) -> None:
    if metadata.legacy_toolkit_jar is not None:
        state.fx_bundled = metadata.legacy_toolkit_jar
        state.toolkit_manifest = dict(metadata.toolkit_manifest)
    if metadata.jmods_toolkit is not None:
        state.fx_bundled = metadata.jmods_toolkit
    if not state.fx_bundled and "MODULES" in metadata.release:
        state.fx_bundled = "javafx" in metadata.release["MODULES"]


def _feature_list(features: str | Iterable[str]) -> list[str]:
    if isinstance(features, str):
        features = features.split(",")
    return [f.strip().lower() for f in features if f and f.strip()]


def detect_feature(line3: str, features: str | Iterable[str] = DEFAULT_FEATURES) -> str:
    """
    Find the first allowed preview feature mentioned in the VM line.

    Args:
        line3: Third banner line
        features: Comma-separated allow-list or iterable of keywords

    Returns:
        Feature tag, or 'none'
    """
    text = line3.lower()
    for keyword in _feature_list(features):
        tag = feature_from_text(keyword)
        if tag == FEATURE_NONE:
            logger.debug(f"Ignoring unknown feature keyword: {keyword}")
            continue
        if keyword in text:
            return tag
    return FEATURE_NONE


def classify(
    banner: str,
    metadata: InstallMetadata | None,
    install_path: str,
    sys_info: SysInfo,
    features: str | Iterable[str] = DEFAULT_FEATURES,
    show_unknown_builds: bool = False,
    java_home: str | None = None,
    handled_by_version_manager: bool = False,
) -> Distribution:
    """
    Classify one Java installation.

    Args:
        banner: '|'-joined output of 'java -version'
        metadata: Signals loaded from the installation folder
        install_path: Installation root
        sys_info: Host system information (default OS and architecture)
        features: Preview feature allow-list
        show_unknown_builds: Query unknown builds as Oracle OpenJDK
        java_home: JAVA_HOME of the process, used to flag the active JDK
        handled_by_version_manager: Installation is managed by sdkman & co

    Returns:
        Distribution, with a best-effort version if the banner is garbled
    """
    if metadata is None:
        metadata = InstallMetadata(install_root=install_path)

    lines = _banner_lines(banner)
    line1 = lines[0] if lines else ""
    line2 = lines[1] if len(lines) > 1 else ""
    line3 = lines[2] if len(lines) > 2 else ""

    state = _Classification(version=parse_banner_version(line1, banner))

    _apply_prefix(state, line1, line2)
    if not _apply_brand_markers(state, line2):
        _apply_jvmci(state, line2)

    if metadata.has_release_file:
        _apply_release(state, metadata)

    if not state.resolved and len(lines) > 2 and metadata.readme_lines is not None:
        _apply_readme(state, metadata, line3)

    if not state.resolved:
        _apply_fallback_markers(state, metadata, line2, line3)

    _apply_toolkit(state, metadata)

    if line3:
        state.feature = detect_feature(line3, features)

    if not state.architecture:
        state.architecture = sys_info.architecture
    if not state.operating_system:
        state.operating_system = sys_info.operating_system

    unknown_build = not state.resolved
    if unknown_build and show_unknown_builds and not state.api_string:
        state.api_string = UNKNOWN_API_STRING

    major = (state.jdk_version or state.version).feature
    in_use = bool(java_home) and normalize_path(java_home) == normalize_path(install_path)

    return Distribution(
        name=state.name or UNKNOWN_BUILD_OF_OPENJDK,
        api_string=state.api_string,
        version=state.version.to_string(include_build=True, reduced=True),
        major_version=major,
        operating_system=state.operating_system,
        architecture=state.architecture,
        fx_bundled=state.fx_bundled,
        install_path=install_path,
        feature=state.feature,
        build_scope=state.build_scope,
        handled_by_version_manager=handled_by_version_manager,
        modules=list(state.modules),
        in_use=in_use,
        unknown_build=unknown_build,
        toolkit_created_by=state.toolkit_manifest.get("Created-By", ""),
        toolkit_build_jdk=state.toolkit_manifest.get("Build-Jdk", ""),
    )
