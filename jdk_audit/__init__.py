"""
jdk-audit - Java distribution detection and update checks.

Core Modules:
- Detection: Launcher discovery, version banners, installation metadata
- Classification: Table-driven vendor detection, de-duplicating registry
- Updates: Package catalog client, update resolution, JavaFX SDK checks
- Foundation: Host detection, config, logging, snapshots, rendering
"""

__version__ = "1.0.0"
__author__ = "jdk-audit Contributors"

VERSION = __version__

# Detection
from .versioning import VersionNumber, extract_version_number
from .detection import find_runtimes, run_version_query, install_root_of, launcher_name
from .metadata import InstallMetadata, load_install_metadata, parse_properties, parse_manifest

# Classification
from .distribution import (
    Distribution,
    UNKNOWN_BUILD_OF_OPENJDK,
    FEATURES,
    DEFAULT_FEATURES,
    FEATURE_NONE,
    BUILD_OF_OPEN_JDK,
    BUILD_OF_GRAALVM,
)
from .classifier import classify, BRAND_MARKERS, IMPLEMENTOR_TABLE, FALLBACK_MARKERS
from .registry import DistributionRegistry
from .scanner import Scanner, scan_distributions, inspect_runtime

# Updates
from .catalog import CatalogClient, CatalogError, NetworkError, ParseError, Pkg
from .resolver import get_available_updates, has_newer_package
from .javafx import (
    SdkUpdate,
    find_javafx_sdks,
    get_available_openjfx_versions,
    check_for_javafx_update,
    check_for_javafx_updates,
)

# Foundation
from .environment import SysInfo, detect_sys_info, detect_operating_system, detect_architecture, get_java_home
from .config import Config, Preferences, load_config, load_config_file, validate_config, default_search_paths
from .snapshot import build_entries, load_snapshot, write_snapshot, get_snapshot_path
from .render import render_table, render_javafx, print_summary

# Logging configuration
from .logging_config import (
    setup_logging,
    get_logger,
)

__all__ = [
    # Version
    "__version__",
    "VERSION",
    # Detection
    "VersionNumber",
    "extract_version_number",
    "find_runtimes",
    "run_version_query",
    "install_root_of",
    "launcher_name",
    "InstallMetadata",
    "load_install_metadata",
    "parse_properties",
    "parse_manifest",
    # Classification
    "Distribution",
    "UNKNOWN_BUILD_OF_OPENJDK",
    "FEATURES",
    "DEFAULT_FEATURES",
    "FEATURE_NONE",
    "BUILD_OF_OPEN_JDK",
    "BUILD_OF_GRAALVM",
    "classify",
    "BRAND_MARKERS",
    "IMPLEMENTOR_TABLE",
    "FALLBACK_MARKERS",
    "DistributionRegistry",
    "Scanner",
    "scan_distributions",
    "inspect_runtime",
    # Updates
    "CatalogClient",
    "CatalogError",
    "NetworkError",
    "ParseError",
    "Pkg",
    "get_available_updates",
    "has_newer_package",
    "SdkUpdate",
    "find_javafx_sdks",
    "get_available_openjfx_versions",
    "check_for_javafx_update",
    "check_for_javafx_updates",
    # Foundation
    "SysInfo",
    "detect_sys_info",
    "detect_operating_system",
    "detect_architecture",
    "get_java_home",
    "Config",
    "Preferences",
    "load_config",
    "load_config_file",
    "validate_config",
    "default_search_paths",
    "build_entries",
    "load_snapshot",
    "write_snapshot",
    "get_snapshot_path",
    "render_table",
    "render_javafx",
    "print_summary",
    # Logging
    "setup_logging",
    "get_logger",
]
