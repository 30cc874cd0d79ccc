"""
Java version number parsing and formatting.

Handles the version strings printed by ``java -version``, found in release
files and returned by the package catalog:

- modern: ``17.0.2+8``, ``21-ea+35``, ``17.0.2.8.1``
- legacy: ``1.8.0_312-b07`` (read as 8.0.312, build 7)
- GraalVM/jvmci tags: ``22.3-b08``
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

LEGACY_RE = re.compile(r"(?<![\d.])1\.([2-8])\.(\d+)(?:_(\d+))?(?:-b(\d+))?")
MODERN_RE = re.compile(
    r"(?<![\d.])(\d+(?:\.\d+){0,5})"
    r"(?:-(ea|rc|beta|alpha)(?![a-z]))?"
    r"(?:\+(\d+)|-b(\d+))?",
    re.IGNORECASE,
)
DOTTED_RE = re.compile(r"\d+(?:\.\d+)+")

COMPONENT_COUNT = 6


@total_ordering
@dataclass(frozen=True)
class VersionNumber:
    """
    A Java version number.

    Attributes:
        feature: Feature (major) release, e.g. 17
        interim: Interim release counter
        update: Update release counter
        patch: Emergency patch counter
        fifth: Vendor specific fifth component
        sixth: Vendor specific sixth component
        pre: Pre-release tag ("ea", "rc", ...) or "" for GA builds
        build: Build number, 0 when unknown
    """
    feature: int
    interim: int = 0
    update: int = 0
    patch: int = 0
    fifth: int = 0
    sixth: int = 0
    pre: str = ""
    build: int = 0

    @classmethod
    def from_text(cls, text: str) -> VersionNumber:
        """
        Parse the first version number found in text.

        Args:
            text: Text containing a version (leading/trailing noise allowed)

        Returns:
            Parsed VersionNumber

        Raises:
            ValueError: If text contains no version number
        """
        if not text:
            raise ValueError("Empty version text")

        legacy = LEGACY_RE.search(text)
        modern = MODERN_RE.search(text)
        if modern is None and legacy is None:
            raise ValueError(f"No version number in: {text!r}")

        if legacy is not None and (modern is None or legacy.start() <= modern.start()):
            return cls(
                feature=int(legacy.group(1)),
                interim=int(legacy.group(2)),
                update=int(legacy.group(3) or 0),
                build=int(legacy.group(4) or 0),
            )

        parts = [int(p) for p in modern.group(1).split(".")]
        parts += [0] * (COMPONENT_COUNT - len(parts))
        pre = (modern.group(2) or "").lower()
        build = modern.group(3) or modern.group(4) or 0
        return cls(*parts, pre=pre, build=int(build))

    @classmethod
    def try_parse(cls, text: str | None) -> VersionNumber | None:
        """Parse text, returning None instead of raising."""
        try:
            return cls.from_text(text or "")
        except ValueError:
            return None

    @property
    def components(self) -> tuple[int, ...]:
        return (self.feature, self.interim, self.update, self.patch, self.fifth, self.sixth)

    @property
    def is_ga(self) -> bool:
        return not self.pre

    def _key(self) -> tuple:
        return (self.components, self.is_ga, self.pre, self.build)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VersionNumber):
            return NotImplemented
        return self._key() < other._key()

    def without_build(self) -> VersionNumber:
        return VersionNumber(*self.components, pre=self.pre)

    def semver(self) -> VersionNumber:
        """Return the major.minor.patch part (with pre-release tag) only."""
        return VersionNumber(self.feature, self.interim, self.update, pre=self.pre)

    def is_newer_than(self, other: VersionNumber) -> bool:
        """
        Check whether this version is strictly newer than other.

        Build numbers only decide when both sides carry one, so an installed
        "17.0.2" is not considered older than a catalog "17.0.2+8".
        """
        mine, theirs = self.without_build(), other.without_build()
        if mine != theirs:
            return mine > theirs
        if self.build and other.build:
            return self.build > other.build
        return False

    def to_string(self, include_build: bool = True, reduced: bool = True) -> str:
        """
        Format the version.

        Args:
            include_build: Append "+build" when a build number is known
            reduced: Drop trailing zero components (17.0.0 -> 17)

        Returns:
            Formatted version string
        """
        parts = list(self.components)
        if reduced:
            while len(parts) > 1 and parts[-1] == 0:
                parts.pop()
        else:
            parts = parts[:3]
        text = ".".join(str(p) for p in parts)
        if self.pre:
            text += f"-{self.pre}"
        if include_build and self.build:
            text += f"+{self.build}"
        return text

    def __str__(self) -> str:
        return self.to_string()


def extract_version_number(s: str) -> str:
    """Extract the first dotted version number from a string.

    Args:
        s: String potentially containing a version

    Returns:
        Version number (e.g. "1.2.3") or empty string
    """
    if not s:
        return ""
    m = DOTTED_RE.search(s)
    return m.group(0) if m else ""

