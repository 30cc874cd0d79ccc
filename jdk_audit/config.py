"""
Configuration files for jdk-audit.

A configuration document is YAML (PyYAML) or JSON::

    version: 1
    preferences:
      search_paths: [/usr/lib/jvm, /opt/java]
      javafx_search_paths: [/opt/javafx]
      show_unknown_builds: false
      features: loom,panama
      timeout_seconds: 5

Documents found at several locations are layered (--config file first, then
project, user and system files) and JDK_AUDIT_* environment variables are
applied on top.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any

import yaml

from .catalog import DEFAULT_CATALOG_URL
from .common import SDKMAN_FOLDER, vlog
from .distribution import DEFAULT_FEATURES, FEATURES
from .environment import ALPINE_LINUX, LINUX, MACOS, WINDOWS

logger = logging.getLogger(__name__)


# Highest priority first
CONFIG_LOCATIONS = [
    ".jdk-audit.yml",
    ".jdk-audit.yaml",
    os.path.expanduser("~/.config/jdk-audit/config.yml"),
    os.path.expanduser("~/.config/jdk-audit/config.yaml"),
    "/etc/jdk-audit/config.yml",
]

PLATFORM_SEARCH_PATHS = {
    LINUX: ["/usr/lib/jvm"],
    ALPINE_LINUX: ["/usr/lib/jvm"],
    MACOS: ["/System/Volumes/Data/Library/Java/JavaVirtualMachines/"],
    WINDOWS: ["C:\\Program Files\\Java\\"],
}

# Environment variable -> (preference, type)
ENV_OVERRIDES = {
    "JDK_AUDIT_TIMEOUT_SECONDS": ("timeout_seconds", int),
    "JDK_AUDIT_MAX_WORKERS": ("max_workers", int),
    "JDK_AUDIT_CATALOG_URL": ("catalog_url", str),
}

# Preference -> (minimum, maximum)
LIMITS = {
    "timeout_seconds": (1, 60),
    "scan_timeout_seconds": (1, 600),
    "max_workers": (1, 32),
    "cache_ttl_seconds": (60, 86400),
}


def default_search_paths(operating_system: str) -> list[str]:
    """
    Default JDK folders of a platform.

    The sdkman candidates folder is added when it exists.
    """
    paths = list(PLATFORM_SEARCH_PATHS.get(operating_system, []))
    if os.path.isdir(SDKMAN_FOLDER):
        paths.append(SDKMAN_FOLDER)
    return paths


def _as_paths(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _as_features(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


@dataclass(frozen=True)
class Preferences:
    """
    Scan and update-check preferences.

    Attributes:
        search_paths: Folders searched for JDKs (empty: platform defaults)
        javafx_search_paths: Folders containing JavaFX SDKs
        show_unknown_builds: Resolve unknown builds as Oracle OpenJDK
        features: Comma-separated preview feature allow-list
        timeout_seconds: Timeout of one 'java -version' call or HTTP request
        scan_timeout_seconds: Overall wait for one scan cycle
        max_workers: Thread pool size for scanning and catalog queries
        cache_ttl_seconds: How long catalog answers are reused
        catalog_url: Base URL of the package catalog
    """
    search_paths: tuple[str, ...] = ()
    javafx_search_paths: tuple[str, ...] = ()
    show_unknown_builds: bool = False
    features: str = DEFAULT_FEATURES
    timeout_seconds: int = 5
    scan_timeout_seconds: int = 30
    max_workers: int = 8
    cache_ttl_seconds: int = 600
    catalog_url: str = DEFAULT_CATALOG_URL

    def __post_init__(self):
        for name, (low, high) in LIMITS.items():
            value = getattr(self, name)
            if not low <= value <= high:
                raise ValueError(f"Invalid {name}: {value}. Must be between {low} and {high}")

        if not self.catalog_url.startswith(("http://", "https://")):
            raise ValueError(f"Invalid catalog_url: {self.catalog_url}. Must be an http(s) URL")

    @property
    def feature_list(self) -> list[str]:
        return [f.strip().lower() for f in self.features.split(",") if f.strip()]

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Preferences:
        """Build preferences from the 'preferences' mapping of a document."""
        defaults = Preferences()
        values: dict[str, Any] = {
            "search_paths": _as_paths(data.get("search_paths")),
            "javafx_search_paths": _as_paths(data.get("javafx_search_paths")),
            "show_unknown_builds": bool(data.get("show_unknown_builds", False)),
            "features": _as_features(data.get("features", defaults.features)),
            "catalog_url": str(data.get("catalog_url", defaults.catalog_url)),
        }
        for name in LIMITS:
            values[name] = int(data.get(name, getattr(defaults, name)))
        return Preferences(**values)


@dataclass(frozen=True)
class Config:
    """
    A loaded configuration.

    Attributes:
        version: Document schema version, only 1 is known
        preferences: Scan and update-check preferences
        source: File the configuration came from, '' for defaults
    """
    version: int = 1
    preferences: Preferences = field(default_factory=Preferences)
    source: str = ""

    def __post_init__(self):
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}. Expected version 1")

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        return Config(
            version=data.get("version", 1),
            preferences=Preferences.from_dict(data.get("preferences") or {}),
            source=source,
        )

    def merge_with(self, other: Config) -> Config:
        """
        Layer this config over a lower-priority one.

        A preference set here wins unless it still has its default value;
        show_unknown_builds is enabled if either side enables it.
        """
        defaults = Preferences()
        merged = {}
        for f in fields(Preferences):
            mine = getattr(self.preferences, f.name)
            merged[f.name] = getattr(other.preferences, f.name) if mine == getattr(defaults, f.name) else mine
        merged["show_unknown_builds"] = self.preferences.show_unknown_builds or other.preferences.show_unknown_builds

        return Config(
            version=self.version,
            preferences=Preferences(**merged),
            source=self.source or other.source,
        )


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """Parse a YAML document; None if unreadable, {} if not a mapping."""
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.debug(f"Cannot load YAML {file_path}: {e}")
        return None
    return document if isinstance(document, dict) else {}


def _load_json(file_path: str) -> dict[str, Any] | None:
    """Parse a JSON document; None if unreadable, {} if not an object."""
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug(f"Cannot load JSON {file_path}: {e}")
        return None
    return document if isinstance(document, dict) else {}


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Read one configuration file (.json as JSON, anything else as YAML).

    Returns:
        Config, or None if the file is missing, unparseable or invalid
    """
    if not os.path.exists(file_path):
        return None

    loader = _load_json if file_path.lower().endswith(".json") else _load_yaml
    document = loader(file_path)
    if document is None:
        vlog(f"Skipping unreadable config: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(document, source=file_path)
    except (ValueError, TypeError) as e:
        logger.warning(f"Config validation failed for {file_path}: {e}")
        return None
    vlog(f"Config loaded: {file_path}", verbose)
    return config


def apply_env_overrides(config: Config, environ: dict[str, str] | None = None) -> Config:
    """
    Override preferences from JDK_AUDIT_* environment variables.

    Invalid values are logged and ignored.
    """
    if environ is None:
        environ = dict(os.environ)

    preferences = config.preferences
    for env_name, (attribute, convert) in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if not raw:
            continue
        try:
            preferences = replace(preferences, **{attribute: convert(raw)})
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring {env_name}={raw!r}: {e}")

    if preferences is config.preferences:
        return config
    return replace(config, preferences=preferences)


def load_config(custom_path: str | None = None, verbose: bool = False) -> Config:
    """
    Load the effective configuration.

    Precedence, highest first: environment variables, custom_path,
    CONFIG_LOCATIONS in order, built-in defaults.

    Raises:
        ValueError: If custom_path is given but cannot be loaded
    """
    layers: list[Config] = []
    if custom_path:
        custom = load_config_file(custom_path, verbose)
        if custom is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        layers.append(custom)

    layers.extend(c for c in (load_config_file(p, verbose) for p in CONFIG_LOCATIONS) if c is not None)

    merged = Config()
    for layer in reversed(layers):
        merged = layer.merge_with(merged)
    vlog(f"Using {len(layers)} config file(s)", verbose)

    return apply_env_overrides(merged)


def validate_config(config: Config) -> list[str]:
    """Return human-readable warnings about questionable settings."""
    problems = []
    prefs = config.preferences

    for label, paths in (("search_paths", prefs.search_paths), ("javafx_search_paths", prefs.javafx_search_paths)):
        if len(paths) != len(set(paths)):
            problems.append(f"Duplicate entries in {label}")
        problems.extend(f"{label}: folder does not exist: {p}" for p in paths if not os.path.isdir(p))

    problems.extend(
        f"Unknown feature '{feature}' (known: {', '.join(FEATURES)})"
        for feature in prefs.feature_list
        if feature not in FEATURES
    )
    return problems
