"""
Thread-safe registry of distributions found during one scan cycle.
"""

from __future__ import annotations

import threading
from typing import Iterator

from .distribution import Distribution


class DistributionRegistry:
    """
    De-duplicating set of Distribution records.

    Introspection workers insert concurrently, so every access goes
    through a lock. Adding an equal record (same identity) is a no-op.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._distributions: dict[Distribution, Distribution] = {}

    def add(self, distribution: Distribution) -> bool:
        """
        Add a distribution.

        Args:
            distribution: Record to add

        Returns:
            True if the record was new, False if an equal one was present
        """
        with self._lock:
            if distribution in self._distributions:
                return False
            self._distributions[distribution] = distribution
            return True

    def clear(self) -> None:
        with self._lock:
            self._distributions.clear()

    def snapshot(self) -> set[Distribution]:
        """Return a copy of the registered records."""
        with self._lock:
            return set(self._distributions)

    def __contains__(self, distribution: object) -> bool:
        with self._lock:
            return distribution in self._distributions

    def __len__(self) -> int:
        with self._lock:
            return len(self._distributions)

    def __iter__(self) -> Iterator[Distribution]:
        return iter(self.snapshot())
