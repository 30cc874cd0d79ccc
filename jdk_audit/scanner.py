"""
Scan-cycle orchestration.

One cycle locates launchers below the search paths, introspects and
classifies each candidate on a bounded thread pool and collects the results
in a fresh DistributionRegistry. Candidates that fail or do not finish in
time are left out; the cycle itself never raises for a single candidate.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Iterable, Sequence

from .classifier import classify
from .common import VERSION_MANAGER_FOLDERS, is_handled_by_version_manager, vlog
from .detection import TIMEOUT_SECONDS, find_runtimes, install_root_of, launcher_name, run_version_query
from .distribution import DEFAULT_FEATURES, Distribution
from .environment import SysInfo, detect_sys_info, get_java_home
from .metadata import load_install_metadata
from .registry import DistributionRegistry

logger = logging.getLogger(__name__)

SCAN_TIMEOUT_SECONDS = 30.0


def default_max_workers() -> int:
    return min(16, (os.cpu_count() or 4) + 4)


def inspect_runtime(
    java_path: str,
    sys_info: SysInfo,
    features: str | Iterable[str] = DEFAULT_FEATURES,
    show_unknown_builds: bool = False,
    java_home: str | None = None,
    timeout: float | None = None,
    version_manager_folders: Sequence[str] = VERSION_MANAGER_FOLDERS,
) -> Distribution | None:
    """
    Introspect and classify a single launcher.

    Returns:
        Distribution, or None if the launcher could not be run
    """
    banner = run_version_query(java_path, timeout=timeout)
    if banner is None:
        return None

    install_root = install_root_of(java_path)
    metadata = load_install_metadata(install_root)
    return classify(
        banner,
        metadata,
        install_root,
        sys_info,
        features=features,
        show_unknown_builds=show_unknown_builds,
        java_home=java_home,
        handled_by_version_manager=is_handled_by_version_manager(install_root, tuple(version_manager_folders)),
    )


def scan_distributions(
    search_paths: Iterable[str],
    sys_info: SysInfo | None = None,
    features: str | Iterable[str] = DEFAULT_FEATURES,
    show_unknown_builds: bool = False,
    java_home: str | None = None,
    max_workers: int | None = None,
    timeout: float | None = None,
    scan_timeout: float = SCAN_TIMEOUT_SECONDS,
    registry: DistributionRegistry | None = None,
    verbose: bool = False,
) -> set[Distribution]:
    """
    Find and classify all Java installations below the search paths.

    Args:
        search_paths: Root folders to walk
        sys_info: Host information (detected if None)
        features: Preview feature allow-list
        show_unknown_builds: Keep unknown builds queryable as Oracle OpenJDK
        java_home: JAVA_HOME used to flag the active JDK (read from env if None)
        max_workers: Introspection pool size
        timeout: Per-process timeout in seconds
        scan_timeout: Overall wait for all candidates in seconds
        registry: Registry to fill; cleared first (a new one if None)
        verbose: Enable verbose logging

    Returns:
        Set of detected distributions
    """
    if sys_info is None:
        sys_info = detect_sys_info(verbose)
    if java_home is None:
        java_home = get_java_home()
    if max_workers is None:
        max_workers = default_max_workers()
    if registry is None:
        registry = DistributionRegistry()
    registry.clear()

    candidates = find_runtimes(search_paths, launcher_name(sys_info.operating_system))
    vlog(f"Found {len(candidates)} Java launcher(s)", verbose)
    if not candidates:
        return registry.snapshot()

    start = time.time()
    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="jdk-scan")
    try:
        future_to_path = {
            executor.submit(
                inspect_runtime,
                path,
                sys_info,
                features,
                show_unknown_builds,
                java_home,
                timeout or TIMEOUT_SECONDS,
            ): path
            for path in candidates
        }

        done, not_done = wait(future_to_path, timeout=scan_timeout)

        for future in done:
            path = future_to_path[future]
            try:
                distribution = future.result()
            except Exception as e:
                logger.warning(f"Failed to inspect {path}: {e}")
                continue
            if distribution is None:
                vlog(f"No version output from {path}", verbose)
                continue
            if registry.add(distribution):
                vlog(f"Found {distribution.display_name()} {distribution.version} at {distribution.install_path}", verbose)

        for future in not_done:
            logger.warning(f"Scan timed out for {future_to_path[future]}")
    finally:
        # Abandon stragglers; their subprocess timeout ends them
        executor.shutdown(wait=False, cancel_futures=True)

    vlog(f"Scan finished in {time.time() - start:.2f}s: {len(registry)} distribution(s)", verbose)
    return registry.snapshot()


class Scanner:
    """
    Repeatable scanner with a single-flight guard.

    Only one scan cycle runs at a time; a concurrent call to scan() returns
    None instead of starting a second cycle.
    """

    def __init__(
        self,
        search_paths: Sequence[str],
        sys_info: SysInfo | None = None,
        features: str | Iterable[str] = DEFAULT_FEATURES,
        show_unknown_builds: bool = False,
        max_workers: int | None = None,
        timeout: float | None = None,
        scan_timeout: float = SCAN_TIMEOUT_SECONDS,
        verbose: bool = False,
    ):
        self.search_paths = list(search_paths)
        self.sys_info = sys_info
        self.features = features
        self.show_unknown_builds = show_unknown_builds
        self.max_workers = max_workers
        self.timeout = timeout
        self.scan_timeout = scan_timeout
        self.verbose = verbose
        self.registry = DistributionRegistry()
        self._scan_lock = threading.Lock()

    @property
    def is_scanning(self) -> bool:
        return self._scan_lock.locked()

    @property
    def distributions(self) -> set[Distribution]:
        """Distributions of the last finished cycle."""
        return self.registry.snapshot()

    def scan(self) -> set[Distribution] | None:
        """
        Run one scan cycle.

        Returns:
            Detected distributions, or None if a cycle is already running
        """
        if not self._scan_lock.acquire(blocking=False):
            logger.debug("Scan already in progress")
            return None
        try:
            if self.sys_info is None:
                self.sys_info = detect_sys_info(self.verbose)
            registry = DistributionRegistry()
            found = scan_distributions(
                self.search_paths,
                sys_info=self.sys_info,
                features=self.features,
                show_unknown_builds=self.show_unknown_builds,
                max_workers=self.max_workers,
                timeout=self.timeout,
                scan_timeout=self.scan_timeout,
                registry=registry,
                verbose=self.verbose,
            )
            # Swapped in only once the cycle has finished
            self.registry = registry
            return found
        finally:
            self._scan_lock.release()
