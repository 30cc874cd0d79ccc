"""
Update resolution for detected distributions.

For every distribution the catalog is asked for newer packages of the same
vendor on the host platform. Packages for the wrong C library or CPU are
dropped. When the vendor offers nothing newer, one vendor-agnostic query
looks for an alternative distribution, except for the GraalVM families
(graal*, mandrel, liberica_native) which have no drop-in replacement.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, Sequence

from .catalog import LIBC_MUSL, CatalogClient, Pkg
from .common import vlog
from .distribution import Distribution
from .environment import ALPINE_LINUX, LINUX, SysInfo
from .versioning import VersionNumber

logger = logging.getLogger(__name__)

# Vendor families without a vendor-agnostic alternative
STANDALONE_PREFIXES = ("graal",)
STANDALONE_API_STRINGS = frozenset({"mandrel", "liberica_native"})

DEFAULT_MAX_WORKERS = 8


def is_standalone(api_string: str) -> bool:
    return api_string.startswith(STANDALONE_PREFIXES) or api_string in STANDALONE_API_STRINGS


def filter_libc(pkgs: Iterable[Pkg], operating_system: str) -> list[Pkg]:
    """Keep musl packages on Alpine, drop them on other Linux hosts."""
    if operating_system == ALPINE_LINUX:
        return [pkg for pkg in pkgs if pkg.lib_c_type == LIBC_MUSL]
    if operating_system == LINUX:
        return [pkg for pkg in pkgs if pkg.lib_c_type != LIBC_MUSL]
    return list(pkgs)


def filter_architecture(pkgs: Iterable[Pkg], sys_info: SysInfo) -> list[Pkg]:
    """Keep packages built for the host CPU when it has known synonyms."""
    synonyms = sys_info.architecture_synonyms
    if not synonyms:
        return list(pkgs)
    accepted = {sys_info.architecture, *synonyms}
    return [pkg for pkg in pkgs if pkg.architecture in accepted]


def base_version(distribution: Distribution) -> VersionNumber:
    """Installed version reduced to major.minor.patch, build dropped."""
    return VersionNumber.from_text(distribution.version).semver()


def find_updates(distribution: Distribution, client: CatalogClient, sys_info: SysInfo) -> list[Pkg]:
    """
    Resolve newer packages for one distribution.

    Returns:
        Offered packages, [] if there are none or the catalog failed
    """
    version = base_version(distribution)
    pkgs = client.update_available_for(
        distribution.api_string,
        version,
        operating_system=sys_info.operating_system,
        architecture=distribution.architecture,
        fx_bundled=distribution.fx_bundled,
        feature=distribution.feature_api_string or None,
    ) or []

    pkgs = filter_libc(pkgs, sys_info.operating_system)
    pkgs = filter_architecture(pkgs, sys_info)

    if pkgs or is_standalone(distribution.api_string):
        return pkgs

    # Alternative from any vendor
    return client.update_available_for(
        None,
        version,
        architecture=distribution.architecture,
        fx_bundled=distribution.fx_bundled,
    ) or []


def get_available_updates(
    distributions: Iterable[Distribution | None],
    client: CatalogClient,
    sys_info: SysInfo,
    show_unknown_builds: bool = False,
    max_workers: int = DEFAULT_MAX_WORKERS,
    verbose: bool = False,
) -> dict[Distribution, list[Pkg]]:
    """
    Resolve updates for all distributions.

    Args:
        distributions: Detected distributions (None entries are skipped)
        client: Catalog client
        sys_info: Host information
        show_unknown_builds: Also resolve unknown builds
        max_workers: Concurrent catalog queries
        verbose: Enable verbose logging

    Returns:
        Mapping distribution -> offered packages, ordered by distribution name
    """
    candidates = [
        d for d in distributions
        if d is not None and (show_unknown_builds or not d.unknown_build)
    ]
    updates: dict[Distribution, list[Pkg]] = {}
    if not candidates:
        return updates

    with ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="jdk-update") as executor:
        future_to_distribution = {
            executor.submit(find_updates, d, client, sys_info): d
            for d in candidates
        }
        for future in as_completed(future_to_distribution):
            distribution = future_to_distribution[future]
            try:
                updates[distribution] = future.result()
            except Exception as e:
                logger.warning(f"Update check failed for {distribution.name} {distribution.version}: {e}")
                updates[distribution] = []
            vlog(f"{distribution.name} {distribution.version}: {len(updates[distribution])} update(s)", verbose)

    return {d: updates[d] for d in sorted(updates, key=lambda d: (d.name, d.install_path))}


def has_newer_package(distribution: Distribution, pkgs: Sequence[Pkg], installed: Iterable[Distribution]) -> bool:
    """
    Check whether the first offered package is not installed yet.

    A package counts as installed when a distribution with the same vendor,
    version (build ignored) and JavaFX flag exists.
    """
    if not pkgs:
        return False
    offer = pkgs[0]
    offered_version = offer.java_version.without_build()
    for d in (distribution, *installed):
        if d.api_string != offer.distribution or d.fx_bundled != offer.javafx_bundled:
            continue
        version = VersionNumber.try_parse(d.version)
        if version is not None and version.without_build() == offered_version:
            return False
    return True
