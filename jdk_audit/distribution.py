"""
Distribution records describing detected Java installations.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

from .versioning import VersionNumber

UNKNOWN_BUILD_OF_OPENJDK = "Unknown build of OpenJDK"

# Preview feature tags
FEATURE_NONE = "none"
FEATURES = ("loom", "panama", "metropolis", "valhalla", "lanai", "kona_fiber", "crac")
DEFAULT_FEATURES = ",".join(FEATURES)

# Build scopes
BUILD_OF_OPEN_JDK = "build_of_openjdk"
BUILD_OF_GRAALVM = "build_of_graalvm"
BUILD_SCOPES = frozenset({BUILD_OF_OPEN_JDK, BUILD_OF_GRAALVM})


def feature_from_text(text: str | None) -> str:
    """Map a feature keyword to its tag, or 'none' if not a known feature."""
    tag = (text or "").strip().lower()
    return tag if tag in FEATURES else FEATURE_NONE


@dataclass(unsafe_hash=True)
class Distribution:
    """
    A detected Java installation.

    Identity (equality and hash) is (api_string, version, architecture,
    fx_bundled, install_path); every other attribute is descriptive.

    Attributes:
        name: Display vendor name ("Zulu", "Temurin", ...)
        api_string: Catalog vendor identifier, "" when unknown
        version: Reduced version string, build number included
        major_version: Feature release number
        operating_system: OS token the build targets
        architecture: Architecture token the build targets
        fx_bundled: Whether JavaFX ships inside this JDK
        install_path: Absolute path of the installation root
        feature: Preview feature tag or 'none'
        build_scope: 'build_of_openjdk' or 'build_of_graalvm'
        handled_by_version_manager: Installed below a version manager folder
        modules: Module names declared in the release file
        in_use: Installation root matches JAVA_HOME
        unknown_build: Vendor could not be determined
        toolkit_created_by: Created-By tag of the bundled legacy JavaFX jar
        toolkit_build_jdk: Build-Jdk tag of the bundled legacy JavaFX jar
    """
    name: str = field(compare=False)
    api_string: str
    version: str
    major_version: int = field(compare=False)
    operating_system: str = field(compare=False)
    architecture: str
    fx_bundled: bool
    install_path: str
    feature: str = field(default=FEATURE_NONE, compare=False)
    build_scope: str = field(default=BUILD_OF_OPEN_JDK, compare=False)
    handled_by_version_manager: bool = field(default=False, compare=False)
    modules: list[str] = field(default_factory=list, compare=False)
    in_use: bool = field(default=False, compare=False)
    unknown_build: bool = field(default=False, compare=False)
    toolkit_created_by: str = field(default="", compare=False)
    toolkit_build_jdk: str = field(default="", compare=False)

    def __post_init__(self):
        if self.build_scope not in BUILD_SCOPES:
            raise ValueError(f"Invalid build_scope: {self.build_scope}")

    @property
    def parent_folder_name(self) -> str:
        """Name of the installation folder, for display."""
        return os.path.basename(self.install_path.rstrip("/\\"))

    @property
    def version_number(self) -> VersionNumber:
        return VersionNumber.from_text(self.version)

    @property
    def feature_api_string(self) -> str:
        return "" if self.feature == FEATURE_NONE else self.feature

    def display_name(self) -> str:
        """Name with JavaFX marker, e.g. 'Zulu (FX)'."""
        return f"{self.name} (FX)" if self.fx_bundled else self.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "api_string": self.api_string,
            "version": self.version,
            "major_version": self.major_version,
            "operating_system": self.operating_system,
            "architecture": self.architecture,
            "fx_bundled": self.fx_bundled,
            "install_path": self.install_path,
            "parent_folder_name": self.parent_folder_name,
            "feature": self.feature,
            "build_scope": self.build_scope,
            "handled_by_version_manager": self.handled_by_version_manager,
            "modules": list(self.modules),
            "in_use": self.in_use,
            "unknown_build": self.unknown_build,
            "toolkit_created_by": self.toolkit_created_by,
            "toolkit_build_jdk": self.toolkit_build_jdk,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Distribution:
        """Create from dictionary."""
        return cls(
            name=data.get("name", UNKNOWN_BUILD_OF_OPENJDK),
            api_string=data.get("api_string", ""),
            version=data.get("version", "0"),
            major_version=int(data.get("major_version", 0)),
            operating_system=data.get("operating_system", ""),
            architecture=data.get("architecture", ""),
            fx_bundled=bool(data.get("fx_bundled", False)),
            install_path=data.get("install_path", ""),
            feature=data.get("feature", FEATURE_NONE),
            build_scope=data.get("build_scope", BUILD_OF_OPEN_JDK),
            handled_by_version_manager=bool(data.get("handled_by_version_manager", False)),
            modules=list(data.get("modules", [])),
            in_use=bool(data.get("in_use", False)),
            unknown_build=bool(data.get("unknown_build", False)),
            toolkit_created_by=data.get("toolkit_created_by", ""),
            toolkit_build_jdk=data.get("toolkit_build_jdk", ""),
        )
