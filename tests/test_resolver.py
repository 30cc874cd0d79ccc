"""
Tests for update resolution (jdk_audit/resolver.py).
"""

import pytest

from jdk_audit.catalog import Pkg
from jdk_audit.distribution import Distribution
from jdk_audit.environment import SysInfo
from jdk_audit.resolver import (
    base_version,
    filter_architecture,
    filter_libc,
    find_updates,
    get_available_updates,
    has_newer_package,
    is_standalone,
)
from jdk_audit.versioning import VersionNumber


LINUX_X64 = SysInfo("linux", "amd64")
ALPINE_X64 = SysInfo("alpine_linux", "amd64")


def make_pkg(version, distribution="zulu", architecture="x64", lib_c_type="glibc", javafx_bundled=False):
    return Pkg(
        id=f"{distribution}-{version}",
        archive_type="tar.gz",
        filename=f"{distribution}-{version}.tar.gz",
        distribution=distribution,
        distribution_version=version,
        java_version=VersionNumber.from_text(version),
        major_version=VersionNumber.from_text(version).feature,
        operating_system="linux",
        architecture=architecture,
        lib_c_type=lib_c_type,
        javafx_bundled=javafx_bundled,
    )


def make_distribution(api_string="zulu", version="17.0.2+8", name="Zulu", install_path=None, **extra):
    return Distribution(
        name=name,
        api_string=api_string,
        version=version,
        major_version=VersionNumber.from_text(version).feature,
        operating_system="linux",
        architecture="amd64",
        fx_bundled=extra.pop("fx_bundled", False),
        install_path=install_path or f"/usr/lib/jvm/{api_string}-{version}",
        **extra,
    )


class FakeClient:
    """Catalog stand-in that records calls and answers per vendor."""

    def __init__(self, offers=None, fail_for=()):
        self.offers = offers or {}
        self.fail_for = set(fail_for)
        self.calls = []

    def update_available_for(self, distribution, version, operating_system=None,
                             architecture=None, fx_bundled=None, feature=None):
        self.calls.append(dict(
            distribution=distribution,
            version=version,
            operating_system=operating_system,
            architecture=architecture,
            fx_bundled=fx_bundled,
            feature=feature,
        ))
        if distribution in self.fail_for:
            raise RuntimeError(f"catalog broke for {distribution}")
        return list(self.offers.get(distribution, []))


class TestFilters:
    """Tests for libc and architecture filtering."""

    def test_alpine_keeps_musl_only(self):
        """Test musl packages on Alpine."""
        pkgs = [make_pkg("17.0.3", lib_c_type="musl"), make_pkg("17.0.3", lib_c_type="glibc")]
        assert [p.lib_c_type for p in filter_libc(pkgs, "alpine_linux")] == ["musl"]

    def test_linux_drops_musl(self):
        """Test glibc Linux drops musl packages."""
        pkgs = [make_pkg("17.0.3", lib_c_type="musl"), make_pkg("17.0.3", lib_c_type="glibc")]
        assert [p.lib_c_type for p in filter_libc(pkgs, "linux")] == ["glibc"]

    def test_other_os_unfiltered(self):
        """Test non-Linux hosts keep every package."""
        pkgs = [make_pkg("17.0.3", lib_c_type="c_std_lib")]
        assert filter_libc(pkgs, "windows") == pkgs

    def test_architecture_synonyms(self):
        """Test x64 and x86_64 count as amd64."""
        pkgs = [
            make_pkg("17.0.3", architecture="x64"),
            make_pkg("17.0.3", architecture="x86_64"),
            make_pkg("17.0.3", architecture="aarch64"),
        ]
        kept = filter_architecture(pkgs, LINUX_X64)
        assert [p.architecture for p in kept] == ["x64", "x86_64"]

    def test_architecture_without_synonyms(self):
        """Test hosts without a synonym table keep everything."""
        pkgs = [make_pkg("17.0.3", architecture="ppc64le")]
        assert filter_architecture(pkgs, SysInfo("linux", "ppc64le")) == pkgs


class TestHelpers:
    """Tests for small helpers."""

    def test_base_version(self):
        """Test build and vendor components are dropped."""
        d = make_distribution(version="17.0.2.8.1+9")
        assert base_version(d) == VersionNumber(17, 0, 2)

    def test_is_standalone(self):
        """Test GraalVM families."""
        assert is_standalone("graalvm_ce17")
        assert is_standalone("graalvm_community")
        assert is_standalone("mandrel")
        assert is_standalone("liberica_native")
        assert not is_standalone("zulu")


class TestFindUpdates:
    """Tests for find_updates."""

    def test_vendor_update(self):
        """Test same-vendor query parameters and result."""
        client = FakeClient({"zulu": [make_pkg("17.0.4")]})
        pkgs = find_updates(make_distribution(feature="loom"), client, LINUX_X64)

        assert [str(p.java_version) for p in pkgs] == ["17.0.4"]
        assert len(client.calls) == 1
        call = client.calls[0]
        assert call["distribution"] == "zulu"
        assert call["version"] == VersionNumber(17, 0, 2)
        assert call["operating_system"] == "linux"
        assert call["architecture"] == "amd64"
        assert call["fx_bundled"] is False
        assert call["feature"] == "loom"

    def test_no_feature_sent_as_none(self):
        """Test distributions without a preview feature."""
        client = FakeClient({"zulu": [make_pkg("17.0.4")]})
        find_updates(make_distribution(), client, LINUX_X64)
        assert client.calls[0]["feature"] is None

    def test_fallback_to_any_vendor(self):
        """Test exactly one vendor-agnostic query when the vendor has nothing."""
        client = FakeClient({None: [make_pkg("17.0.4", distribution="temurin")]})
        pkgs = find_updates(make_distribution(), client, LINUX_X64)

        assert [p.distribution for p in pkgs] == ["temurin"]
        assert len(client.calls) == 2
        fallback = client.calls[1]
        assert fallback["distribution"] is None
        assert fallback["operating_system"] is None
        assert fallback["architecture"] == "amd64"

    @pytest.mark.parametrize("api_string,name", [
        ("graalvm_ce17", "GraalVM CE"),
        ("mandrel", "Mandrel"),
        ("liberica_native", "Liberica Native"),
    ])
    def test_no_fallback_for_standalone_builds(self, api_string, name):
        """Test standalone native-image builds are not offered other vendors."""
        client = FakeClient({None: [make_pkg("17.0.4", distribution="temurin")]})
        pkgs = find_updates(make_distribution(api_string=api_string, name=name), client, LINUX_X64)
        assert pkgs == []
        assert len(client.calls) == 1

    def test_fallback_after_filtering(self):
        """Test the fallback also runs when filtering removed all offers."""
        client = FakeClient({
            "zulu": [make_pkg("17.0.4", lib_c_type="musl")],
            None: [make_pkg("17.0.4", distribution="temurin")],
        })
        pkgs = find_updates(make_distribution(), client, LINUX_X64)
        assert [p.distribution for p in pkgs] == ["temurin"]

    def test_alpine_vendor_update(self):
        """Test musl offers are kept on Alpine."""
        client = FakeClient({"zulu": [make_pkg("17.0.4", lib_c_type="musl")]})
        pkgs = find_updates(make_distribution(), client, ALPINE_X64)
        assert len(pkgs) == 1
        assert len(client.calls) == 1


class TestGetAvailableUpdates:
    """Tests for get_available_updates."""

    def test_sorted_by_name(self):
        """Test result order follows the distribution name."""
        client = FakeClient({"zulu": [make_pkg("17.0.4")]})
        distributions = [
            make_distribution("zulu", name="Zulu"),
            make_distribution("aoj", name="Adopt OpenJDK"),
            make_distribution("corretto", name="Corretto"),
        ]
        updates = get_available_updates(distributions, client, LINUX_X64, max_workers=2)
        assert [d.name for d in updates] == ["Adopt OpenJDK", "Corretto", "Zulu"]

    def test_unknown_builds_skipped(self):
        """Test unknown builds are not resolved unless requested."""
        unknown = make_distribution("", name="Unknown build of OpenJDK", unknown_build=True)
        client = FakeClient()
        assert get_available_updates([unknown, None], client, LINUX_X64) == {}
        assert client.calls == []

        client = FakeClient()
        shown = make_distribution("oracle_open_jdk", name="Unknown build of OpenJDK", unknown_build=True)
        updates = get_available_updates([shown], client, LINUX_X64, show_unknown_builds=True)
        assert list(updates) == [shown]

    def test_failure_counts_as_no_updates(self):
        """Test a failing lookup yields an empty list for that distribution."""
        client = FakeClient({"corretto": [make_pkg("17.0.4", distribution="corretto")]}, fail_for={"zulu"})
        zulu = make_distribution("zulu", name="Zulu")
        corretto = make_distribution("corretto", name="Corretto")
        updates = get_available_updates([zulu, corretto], client, LINUX_X64)
        assert updates[zulu] == []
        assert len(updates[corretto]) == 1

    def test_empty(self):
        """Test no distributions."""
        assert get_available_updates([], FakeClient(), LINUX_X64) == {}


class TestHasNewerPackage:
    """Tests for has_newer_package."""

    def test_not_installed(self):
        """Test offer that is not installed anywhere."""
        d = make_distribution()
        assert has_newer_package(d, [make_pkg("17.0.4")], [d])

    def test_already_installed(self):
        """Test offer installed next to the outdated one."""
        d = make_distribution()
        newer = make_distribution(version="17.0.4+8")
        assert not has_newer_package(d, [make_pkg("17.0.4+9")], [d, newer])

    def test_fx_flag_must_match(self):
        """Test JavaFX flag difference means not installed."""
        d = make_distribution()
        newer = make_distribution(version="17.0.4", fx_bundled=True)
        assert has_newer_package(d, [make_pkg("17.0.4")], [newer])

    def test_no_packages(self):
        """Test empty offer list."""
        assert not has_newer_package(make_distribution(), [], [])
