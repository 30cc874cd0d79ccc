"""
Client for the remote JDK package catalog (foojay disco API).

Queries ``{base}/disco/v3.0/packages`` for packages of a vendor, major
version and platform, and keeps only those strictly newer than the
installed version. Also fetches plain documents (OpenJFX Maven metadata) and
checks whether download URIs answer.
"""

import json
import logging
import threading
import time
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any

from .versioning import VersionNumber

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_URL = "https://api.foojay.io"
PACKAGES_PATH = "/disco/v3.0/packages"
USER_AGENT = "jdk-audit/1.0"

DEFAULT_TIMEOUT = 10
DEFAULT_CACHE_TTL = 600

# lib_c_type values
LIBC_MUSL = "musl"
LIBC_GLIBC = "glibc"


class CatalogError(Exception):
    """Raised when a catalog query fails."""
    pass


class NetworkError(CatalogError):
    """Raised when network requests fail."""
    pass


class ParseError(CatalogError):
    """Raised when response parsing fails."""
    pass


def http_get(url: str, timeout: float = DEFAULT_TIMEOUT, headers: dict[str, str] | None = None) -> bytes:
    """Perform HTTP GET request.

    Args:
        url: URL to fetch
        timeout: Timeout in seconds
        headers: Optional HTTP headers

    Returns:
        Response body as bytes

    Raises:
        NetworkError: If request fails
    """
    request_headers = {"User-Agent": USER_AGENT}
    if headers:
        request_headers.update(headers)
    try:
        req = urllib.request.Request(url, headers=request_headers)
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return response.read()
    except Exception as e:
        raise NetworkError(f"Failed to fetch {url}: {e}") from e


def uri_exists(url: str, timeout: float = DEFAULT_TIMEOUT) -> bool:
    """Check with a HEAD request whether url answers with a 2xx/3xx status."""
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT}, method="HEAD")
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return 200 <= response.status < 400
    except urllib.error.HTTPError as e:
        logger.debug(f"HEAD {url}: HTTP {e.code}")
        return False
    except Exception as e:
        logger.debug(f"HEAD {url} failed: {e}")
        return False


@dataclass(frozen=True)
class Pkg:
    """
    One downloadable package offered by the catalog.

    Attributes:
        id: Catalog package id
        archive_type: 'tar.gz', 'zip', 'msi', ...
        filename: Archive file name
        distribution: Vendor api string
        distribution_version: Vendor specific version text
        java_version: Java version of the package
        major_version: Feature release number
        operating_system: OS token
        architecture: Architecture token
        lib_c_type: 'glibc', 'musl', 'libc', 'c_std_lib'
        package_type: 'jdk' or 'jre'
        javafx_bundled: Whether JavaFX is bundled
        release_status: 'ga' or 'ea'
        features: Preview feature tags
        download_uri: Redirecting download link
    """
    id: str
    archive_type: str
    filename: str
    distribution: str
    distribution_version: str
    java_version: VersionNumber
    major_version: int
    operating_system: str
    architecture: str
    lib_c_type: str = ""
    package_type: str = "jdk"
    javafx_bundled: bool = False
    release_status: str = "ga"
    features: tuple[str, ...] = ()
    download_uri: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Pkg":
        """
        Create from a catalog JSON entry.

        Raises:
            ValueError: If the entry has no parseable java_version
        """
        links = data.get("links") or {}
        return cls(
            id=str(data.get("id", "")),
            archive_type=data.get("archive_type", ""),
            filename=data.get("filename", ""),
            distribution=data.get("distribution", ""),
            distribution_version=data.get("distribution_version", ""),
            java_version=VersionNumber.from_text(str(data.get("java_version", ""))),
            major_version=int(data.get("major_version") or 0),
            operating_system=data.get("operating_system", ""),
            architecture=data.get("architecture", ""),
            lib_c_type=data.get("lib_c_type", ""),
            package_type=data.get("package_type", "jdk"),
            javafx_bundled=bool(data.get("javafx_bundled", False)),
            release_status=data.get("release_status", "ga"),
            features=tuple(data.get("feature") or ()),
            download_uri=links.get("pkg_download_redirect", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "archive_type": self.archive_type,
            "filename": self.filename,
            "distribution": self.distribution,
            "distribution_version": self.distribution_version,
            "java_version": str(self.java_version),
            "major_version": self.major_version,
            "operating_system": self.operating_system,
            "architecture": self.architecture,
            "lib_c_type": self.lib_c_type,
            "package_type": self.package_type,
            "javafx_bundled": self.javafx_bundled,
            "release_status": self.release_status,
            "features": list(self.features),
            "download_uri": self.download_uri,
        }


def parse_packages(body: bytes) -> list[Pkg]:
    """
    Parse a packages response body.

    Entries without a usable java_version are skipped.

    Raises:
        ParseError: If the body is not a {"result": [...]} JSON document
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise ParseError(f"Invalid JSON from catalog: {e}") from e

    result = data.get("result") if isinstance(data, dict) else None
    if not isinstance(result, list):
        raise ParseError("Catalog response has no result list")

    pkgs = []
    for entry in result:
        if not isinstance(entry, dict):
            continue
        try:
            pkgs.append(Pkg.from_dict(entry))
        except (ValueError, TypeError) as e:
            logger.debug(f"Skipping catalog entry {entry.get('id', '?')}: {e}")
    return pkgs


class CatalogClient:
    """
    Package catalog client with an in-memory TTL cache.

    Thread-safe; the update resolver calls it from several workers.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_CATALOG_URL,
        timeout: float = DEFAULT_TIMEOUT,
        cache_ttl: float = DEFAULT_CACHE_TTL,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self._cache: dict[tuple, tuple[list[Pkg], float]] = {}
        self._cache_lock = threading.Lock()

    @staticmethod
    def build_query(
        distribution: str | None,
        version: VersionNumber,
        operating_system: str | None = None,
        architecture: str | None = None,
        fx_bundled: bool | None = None,
        feature: str | None = None,
    ) -> list[tuple[str, str]]:
        """Build the query parameters of a packages request; None and '' mean 'any'."""
        params = []
        if distribution:
            params.append(("distribution", distribution))
        params.append(("jdk_version", str(version.feature)))
        if operating_system:
            params.append(("operating_system", operating_system))
        if architecture:
            params.append(("architecture", architecture))
        if fx_bundled is not None:
            params.append(("javafx_bundled", "true" if fx_bundled else "false"))
        if feature:
            params.append(("feature", feature))
        params.append(("latest", "available"))
        return params

    def packages_url(self, params: list[tuple[str, str]]) -> str:
        return f"{self.base_url}{PACKAGES_PATH}?{urllib.parse.urlencode(params)}"

    def query_packages(self, params: list[tuple[str, str]]) -> list[Pkg]:
        """
        Fetch packages matching params, served from cache within the TTL.

        Raises:
            NetworkError: If the request fails
            ParseError: If the response is malformed
        """
        key = tuple(params)
        with self._cache_lock:
            cached = self._cache.get(key)
            if cached is not None and time.time() - cached[1] < self.cache_ttl:
                return list(cached[0])

        url = self.packages_url(params)
        logger.debug(f"Querying catalog: {url}")
        pkgs = parse_packages(http_get(url, timeout=self.timeout, headers={"Accept": "application/json"}))

        with self._cache_lock:
            self._cache[key] = (pkgs, time.time())
        return list(pkgs)

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()

    def update_available_for(
        self,
        distribution: str | None,
        version: VersionNumber,
        operating_system: str | None = None,
        architecture: str | None = None,
        fx_bundled: bool | None = None,
        feature: str | None = None,
    ) -> list[Pkg]:
        """
        Find packages newer than version.

        Args:
            distribution: Vendor api string, None/'' for any vendor
            version: Installed (base) version
            operating_system: OS token, None for any
            architecture: Architecture token, None for any
            fx_bundled: JavaFX flag, None for any
            feature: Preview feature api string

        Returns:
            Packages strictly newer than version, newest first; [] on any error
        """
        params = self.build_query(distribution, version, operating_system, architecture, fx_bundled, feature)
        try:
            pkgs = self.query_packages(params)
        except CatalogError as e:
            logger.warning(f"Catalog query failed for {distribution or 'any vendor'} {version}: {e}")
            return []

        newer = [pkg for pkg in pkgs if pkg.java_version.is_newer_than(version)]
        newer.sort(key=lambda pkg: pkg.java_version, reverse=True)
        return newer

    def fetch_text(self, url: str) -> str:
        """
        Fetch a document as text.

        Raises:
            NetworkError: If the request fails
        """
        return http_get(url, timeout=self.timeout).decode("utf-8", errors="replace")

    def uri_exists(self, url: str) -> bool:
        return uri_exists(url, timeout=self.timeout)
