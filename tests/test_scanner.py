"""
Tests for scan-cycle orchestration (jdk_audit/scanner.py).
"""

import os
import threading
from unittest.mock import patch

from jdk_audit.environment import SysInfo
from jdk_audit.registry import DistributionRegistry
from jdk_audit.scanner import Scanner, inspect_runtime, scan_distributions


SYS_INFO = SysInfo("linux", "amd64")

TEMURIN_BANNER = (
    'openjdk version "17.0.2" 2022-01-18|'
    "OpenJDK Runtime Environment Temurin-17.0.2+8 (build 17.0.2+8)|"
    "OpenJDK 64-Bit Server VM Temurin-17.0.2+8 (build 17.0.2+8, mixed mode)"
)
ZULU_BANNER = (
    'openjdk version "11.0.14" 2022-01-18 LTS|'
    "OpenJDK Runtime Environment Zulu11.54+23-CA (build 11.0.14+9-LTS)|"
    "OpenJDK 64-Bit Server VM Zulu11.54+23-CA (build 11.0.14+9-LTS, mixed mode)"
)


def make_jdk(root, name):
    bin_dir = root / name / "bin"
    bin_dir.mkdir(parents=True)
    (bin_dir / "java").write_text("")
    return str(root / name)


def banner_for(java_path, timeout=None, args=None):
    return ZULU_BANNER if "zulu" in java_path else TEMURIN_BANNER


class TestInspectRuntime:
    """Tests for inspect_runtime."""

    @patch("jdk_audit.scanner.run_version_query", return_value=TEMURIN_BANNER)
    def test_classifies_installation(self, mock_query, tmp_path):
        """Test banner and install root feed classification."""
        root = make_jdk(tmp_path, "temurin-17")
        d = inspect_runtime(os.path.join(root, "bin", "java"), SYS_INFO)
        assert d.api_string == "temurin"
        assert d.install_path == root
        assert not d.handled_by_version_manager

    @patch("jdk_audit.scanner.run_version_query", return_value=None)
    def test_no_output(self, mock_query, tmp_path):
        """Test launcher without output is skipped."""
        root = make_jdk(tmp_path, "broken")
        assert inspect_runtime(os.path.join(root, "bin", "java"), SYS_INFO) is None

    @patch("jdk_audit.scanner.run_version_query", return_value=TEMURIN_BANNER)
    def test_version_manager_flag(self, mock_query, tmp_path):
        """Test installations below a version manager folder are flagged."""
        root = make_jdk(tmp_path / "candidates", "17.0.2-tem")
        d = inspect_runtime(
            os.path.join(root, "bin", "java"),
            SYS_INFO,
            version_manager_folders=[str(tmp_path / "candidates")],
        )
        assert d.handled_by_version_manager

    @patch("jdk_audit.scanner.run_version_query", return_value=TEMURIN_BANNER)
    def test_in_use(self, mock_query, tmp_path):
        """Test JAVA_HOME marks the active installation."""
        root = make_jdk(tmp_path, "temurin-17")
        d = inspect_runtime(os.path.join(root, "bin", "java"), SYS_INFO, java_home=root)
        assert d.in_use


class TestScanDistributions:
    """Tests for scan_distributions."""

    @patch("jdk_audit.scanner.run_version_query", side_effect=banner_for)
    def test_scan_finds_all(self, mock_query, tmp_path):
        """Test every installation is classified."""
        make_jdk(tmp_path, "temurin-17")
        make_jdk(tmp_path, "zulu-11")

        found = scan_distributions([str(tmp_path)], sys_info=SYS_INFO, java_home="")
        assert sorted(d.api_string for d in found) == ["temurin", "zulu"]

    @patch("jdk_audit.scanner.run_version_query", side_effect=banner_for)
    def test_overlapping_roots_deduplicated(self, mock_query, tmp_path):
        """Test a root listed twice yields each installation once."""
        make_jdk(tmp_path, "temurin-17")
        roots = [str(tmp_path), str(tmp_path), str(tmp_path / "temurin-17")]
        found = scan_distributions(roots, sys_info=SYS_INFO, java_home="")
        assert len(found) == 1

    @patch("jdk_audit.scanner.run_version_query", return_value=None)
    def test_failed_candidates_dropped(self, mock_query, tmp_path):
        """Test launchers without output are left out."""
        make_jdk(tmp_path, "broken")
        assert scan_distributions([str(tmp_path)], sys_info=SYS_INFO, java_home="") == set()

    def test_no_candidates(self, tmp_path):
        """Test empty search path."""
        assert scan_distributions([str(tmp_path)], sys_info=SYS_INFO, java_home="") == set()

    @patch("jdk_audit.scanner.logger")
    @patch("jdk_audit.scanner.run_version_query")
    def test_worker_exception_logged(self, mock_query, mock_logger, tmp_path):
        """Test a failing candidate does not fail the cycle."""
        make_jdk(tmp_path, "temurin-17")
        make_jdk(tmp_path, "zulu-11")

        def query(java_path, timeout=None, args=None):
            if "zulu" in java_path:
                raise RuntimeError("boom")
            return TEMURIN_BANNER

        mock_query.side_effect = query
        found = scan_distributions([str(tmp_path)], sys_info=SYS_INFO, java_home="")

        assert [d.api_string for d in found] == ["temurin"]
        message = mock_logger.warning.call_args[0][0]
        assert "boom" in message

    @patch("jdk_audit.scanner.logger")
    @patch("jdk_audit.scanner.run_version_query")
    def test_slow_candidate_times_out(self, mock_query, mock_logger, tmp_path):
        """Test a hanging candidate is left out after the scan timeout."""
        make_jdk(tmp_path, "temurin-17")
        make_jdk(tmp_path, "zulu-11")
        release = threading.Event()

        def query(java_path, timeout=None, args=None):
            if "zulu" in java_path:
                release.wait(5)
                return ZULU_BANNER
            return TEMURIN_BANNER

        mock_query.side_effect = query
        try:
            found = scan_distributions(
                [str(tmp_path)], sys_info=SYS_INFO, java_home="", scan_timeout=0.5,
            )
        finally:
            release.set()

        assert [d.api_string for d in found] == ["temurin"]
        message = mock_logger.warning.call_args[0][0]
        assert "timed out" in message
        assert "zulu-11" in message

    @patch("jdk_audit.scanner.run_version_query", side_effect=banner_for)
    def test_registry_cleared_between_cycles(self, mock_query, tmp_path):
        """Test each cycle starts from an empty registry."""
        registry = DistributionRegistry()
        make_jdk(tmp_path, "temurin-17")
        scan_distributions([str(tmp_path)], sys_info=SYS_INFO, java_home="", registry=registry)
        assert len(registry) == 1

        scan_distributions([str(tmp_path / "missing")], sys_info=SYS_INFO, java_home="", registry=registry)
        assert len(registry) == 0


class TestScanner:
    """Tests for the Scanner single-flight guard."""

    @patch("jdk_audit.scanner.run_version_query", side_effect=banner_for)
    def test_scan(self, mock_query, tmp_path):
        """Test a scan fills the distributions property."""
        make_jdk(tmp_path, "zulu-11")
        scanner = Scanner([str(tmp_path)], sys_info=SYS_INFO)
        result = scanner.scan()
        assert len(result) == 1
        assert scanner.distributions == result
        assert not scanner.is_scanning

    @patch("jdk_audit.scanner.run_version_query", side_effect=banner_for)
    def test_previous_cycle_visible_during_scan(self, mock_query, tmp_path):
        """Test distributions keeps the finished cycle while a new one runs."""
        make_jdk(tmp_path, "zulu-11")
        scanner = Scanner([str(tmp_path)], sys_info=SYS_INFO)
        first = scanner.scan()
        seen_during_scan = []

        def query(java_path, timeout=None, args=None):
            seen_during_scan.append(scanner.distributions)
            return banner_for(java_path)

        make_jdk(tmp_path, "temurin-17")
        mock_query.side_effect = query
        second = scanner.scan()

        assert seen_during_scan
        assert all(seen == first for seen in seen_during_scan)
        assert len(second) == 2
        assert scanner.distributions == second

    def test_concurrent_scan_rejected(self, tmp_path):
        """Test scan() while a cycle is running returns None."""
        scanner = Scanner([str(tmp_path)], sys_info=SYS_INFO)
        scanner._scan_lock.acquire()
        try:
            assert scanner.is_scanning
            assert scanner.scan() is None
        finally:
            scanner._scan_lock.release()
        assert scanner.scan() == set()
