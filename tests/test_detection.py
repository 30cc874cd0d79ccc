"""
Tests for launcher discovery and version queries (jdk_audit/detection.py).
"""

import os
import subprocess
from unittest.mock import patch, MagicMock

import pytest

from jdk_audit.detection import (
    LINE_DELIMITER,
    find_runtimes,
    install_root_of,
    is_secondary_runtime,
    launcher_name,
    run_version_query,
    split_banner,
)


def make_launcher(root, *parts):
    """Create an empty launcher file below root."""
    path = root.joinpath(*parts)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("")
    return str(path)


class TestLauncherName:
    """Tests for launcher_name."""

    def test_windows(self):
        """Test Windows launcher."""
        assert launcher_name("windows") == "java.exe"

    @pytest.mark.parametrize("os_name", ["linux", "macos", "alpine_linux"])
    def test_unix(self, os_name):
        """Test Unix launchers."""
        assert launcher_name(os_name) == "java"


class TestSecondaryRuntime:
    """Tests for nested JRE exclusion."""

    def test_nested_jre_segment(self):
        """Test path with a jre folder segment."""
        assert is_secondary_runtime("/opt/jdk1.8.0/jre/bin/java")

    def test_case_insensitive(self):
        """Test JRE in upper case."""
        assert is_secondary_runtime("/opt/jdk/JRE/bin/java")

    def test_windows_separators(self):
        """Test backslash separated path."""
        assert is_secondary_runtime("C:\\Java\\jdk1.8\\jre\\bin\\java.exe")

    def test_jre_prefix_is_not_a_segment(self):
        """Test folders merely starting with jre are kept."""
        assert not is_secondary_runtime("/opt/jre-17/bin/java")
        assert not is_secondary_runtime("/usr/lib/jvm/temurin-17/bin/java")


class TestFindRuntimes:
    """Tests for find_runtimes."""

    def test_finds_launchers(self, tmp_path):
        """Test launchers in several installations are found."""
        a = make_launcher(tmp_path, "zulu-17", "bin", "java")
        b = make_launcher(tmp_path, "temurin-21", "bin", "java")
        make_launcher(tmp_path, "temurin-21", "bin", "javac")

        found = find_runtimes([str(tmp_path)], launcher="java")
        assert sorted(found) == sorted([a, b])

    def test_excludes_nested_jre(self, tmp_path):
        """Test the private JRE of a JDK 8 is not reported."""
        jdk = make_launcher(tmp_path, "jdk8", "bin", "java")
        make_launcher(tmp_path, "jdk8", "jre", "bin", "java")

        assert find_runtimes([str(tmp_path)], launcher="java") == [jdk]

    def test_case_insensitive_name(self, tmp_path):
        """Test Java.exe matches java.exe."""
        path = make_launcher(tmp_path, "jdk", "bin", "Java.exe")
        assert find_runtimes([str(tmp_path)], launcher="java.exe") == [path]

    def test_missing_root(self, tmp_path):
        """Test missing roots yield an empty result."""
        assert find_runtimes([str(tmp_path / "missing")], launcher="java") == []

    def test_empty_roots(self):
        """Test empty and None roots."""
        assert find_runtimes([], launcher="java") == []
        assert find_runtimes(None, launcher="java") == []

    def test_duplicate_roots_deduplicated(self, tmp_path):
        """Test the same root given twice reports each launcher once."""
        make_launcher(tmp_path, "jdk", "bin", "java")
        assert len(find_runtimes([str(tmp_path), str(tmp_path)], launcher="java")) == 1

    def test_directory_named_java_ignored(self, tmp_path):
        """Test a folder called java is not a launcher."""
        (tmp_path / "lib" / "java").mkdir(parents=True)
        assert find_runtimes([str(tmp_path)], launcher="java") == []


class TestInstallRoot:
    """Tests for install_root_of."""

    def test_parent_of_bin(self, tmp_path):
        """Test root is the parent of the bin folder."""
        java = make_launcher(tmp_path, "jdk-17", "bin", "java")
        assert install_root_of(java) == str(tmp_path / "jdk-17")


class TestRunVersionQuery:
    """Tests for run_version_query."""

    @patch("jdk_audit.detection.subprocess.run")
    def test_joins_lines(self, mock_run):
        """Test non-empty output lines are joined with the delimiter."""
        mock_run.return_value = MagicMock(
            stdout='openjdk version "17.0.2" 2022-01-18\n\nOpenJDK Runtime Environment (build 17.0.2+8)\n',
            returncode=0,
        )

        banner = run_version_query("/opt/jdk/bin/java")
        assert banner == 'openjdk version "17.0.2" 2022-01-18|OpenJDK Runtime Environment (build 17.0.2+8)'

        args, kwargs = mock_run.call_args
        assert args[0] == ["/opt/jdk/bin/java", "-version"]
        assert kwargs["stderr"] == subprocess.STDOUT
        assert kwargs["stdin"] == subprocess.DEVNULL
        assert kwargs["timeout"] > 0

    @patch("jdk_audit.detection.subprocess.run")
    def test_timeout_returns_none(self, mock_run):
        """Test a hanging launcher is dropped."""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="java", timeout=1)
        assert run_version_query("/opt/jdk/bin/java", timeout=1) is None

    @patch("jdk_audit.detection.subprocess.run")
    def test_spawn_failure_returns_none(self, mock_run):
        """Test a launcher that cannot be executed is dropped."""
        mock_run.side_effect = PermissionError("not executable")
        assert run_version_query("/opt/jdk/bin/java") is None

    @patch("jdk_audit.detection.subprocess.run")
    def test_empty_output_returns_none(self, mock_run):
        """Test silent launcher."""
        mock_run.return_value = MagicMock(stdout="\n  \n", returncode=1)
        assert run_version_query("/opt/jdk/bin/java") is None

    @patch("jdk_audit.detection.subprocess.run")
    def test_delimiter_not_leaked(self, mock_run):
        """Test a delimiter inside a line does not create extra lines."""
        mock_run.return_value = MagicMock(stdout="a|b\nc\n", returncode=0)
        banner = run_version_query("/opt/jdk/bin/java")
        assert split_banner(banner) == ["a b", "c"]

    def test_split_banner(self):
        """Test splitting a joined banner."""
        assert split_banner(f"x{LINE_DELIMITER}y") == ["x", "y"]
        assert split_banner("") == []
