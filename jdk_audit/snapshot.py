"""
Audit entries and snapshot files.

An entry is the JSON form of one distribution together with the outcome of
its update check. Snapshots store the entries of a run atomically.
"""

import datetime
import json
import logging
import os
from pathlib import Path
from typing import Any, Iterable, Mapping

from .catalog import Pkg
from .distribution import Distribution
from .resolver import has_newer_package

logger = logging.getLogger(__name__)

# Relative paths are resolved against the working directory
DEFAULT_SNAPSHOT_FILE = "jdk_snapshot.json"

# Entry states
UP_TO_DATE = "UP-TO-DATE"
OUTDATED = "OUTDATED"
ALTERNATIVE = "ALTERNATIVE"
UNKNOWN = "UNKNOWN"
NOT_CHECKED = ""


def get_snapshot_path() -> Path:
    """Get snapshot file path from env or default."""
    snapshot_file = os.environ.get("JDK_AUDIT_SNAPSHOT_FILE", DEFAULT_SNAPSHOT_FILE)
    if os.path.isabs(snapshot_file):
        return Path(snapshot_file)
    return Path.cwd() / snapshot_file


def _empty_document() -> dict[str, Any]:
    return {"__meta__": {}, "distributions": []}


def entry_status(
    distribution: Distribution,
    pkgs: list[Pkg] | None,
    installed: Iterable[Distribution] = (),
) -> str:
    """
    Classify the update state of a distribution.

    Args:
        distribution: Installed distribution
        pkgs: Offered packages, None if not checked
        installed: All installed distributions

    Returns:
        One of the entry states
    """
    if pkgs is None:
        return UNKNOWN if distribution.unknown_build else NOT_CHECKED
    if not pkgs:
        return UP_TO_DATE
    if pkgs[0].distribution == distribution.api_string:
        return OUTDATED
    if has_newer_package(distribution, pkgs, installed):
        return ALTERNATIVE
    return UP_TO_DATE


def build_entries(
    distributions: Iterable[Distribution],
    updates: Mapping[Distribution, list[Pkg]] | None = None,
) -> list[dict[str, Any]]:
    """
    Build audit entries ordered by distribution name.

    Args:
        distributions: Detected distributions
        updates: Resolver result, None when updates were not checked

    Returns:
        List of entry dictionaries
    """
    installed = list(distributions)
    entries = []
    for d in sorted(installed, key=lambda d: (d.name, d.install_path)):
        pkgs = None if updates is None else updates.get(d)
        entry = d.to_dict()
        entry["status"] = entry_status(d, pkgs, installed)
        entry["updates"] = [pkg.to_dict() for pkg in pkgs or []]
        if pkgs:
            entry["latest"] = str(pkgs[0].java_version)
            entry["latest_distribution"] = pkgs[0].distribution
            entry["latest_url"] = pkgs[0].download_uri
        entries.append(entry)
    return entries


def load_snapshot(path: Path | None = None) -> dict[str, Any]:
    """
    Read a snapshot document.

    Returns:
        The document, or an empty one if the file is missing or unreadable
    """
    source = Path(path) if path is not None else get_snapshot_path()
    try:
        document = json.loads(source.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return _empty_document()
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable snapshot {source}: {e}")
        return _empty_document()
    return document if isinstance(document, dict) else _empty_document()


def _utc_timestamp() -> str:
    now = datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)
    return now.isoformat().replace("+00:00", "Z")


def write_snapshot(
    distributions: Iterable[Distribution],
    updates: Mapping[Distribution, list[Pkg]] | None = None,
    path: Path | str | None = None,
    extra_meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Store the entries of a run as a JSON snapshot.

    The document is written next to its target and renamed over it, so
    readers never see a partial file.

    Args:
        distributions: Detected distributions
        updates: Resolver result, None when updates were not checked
        path: Target file (default: get_snapshot_path())
        extra_meta: Additional __meta__ fields

    Returns:
        The __meta__ dictionary that was written

    Raises:
        OSError: If the snapshot cannot be written
    """
    target = Path(path) if path is not None else get_snapshot_path()

    entries = build_entries(distributions, updates)
    meta = {
        "schema_version": 1,
        "created_at": _utc_timestamp(),
        "count": len(entries),
        "updates_checked": updates is not None,
        "outdated": sum(1 for e in entries if e["status"] == OUTDATED),
        **(extra_meta or {}),
    }

    staging = target.with_suffix(".tmp")
    try:
        staging.write_text(
            json.dumps({"__meta__": meta, "distributions": entries}, indent=2, ensure_ascii=False, sort_keys=True),
            encoding="utf-8",
        )
        staging.replace(target)
    except OSError as e:
        raise OSError(f"Failed to write snapshot: {e}") from e

    return meta
