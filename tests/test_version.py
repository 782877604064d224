"""Tests for version lookup."""

from importlib import metadata
from unittest.mock import patch

import pytest

from catalogist import _version


class TestGetVersion:
    """Tests for get_version."""

    def test_installed_distribution(self) -> None:
        """Test that installed metadata wins."""
        with patch.object(_version.metadata, "version", return_value="1.2.3"):
            assert _version.get_version() == "1.2.3"

    def test_source_checkout_adds_commit(self) -> None:
        """Test that an uninstalled checkout gets a local version."""
        missing = metadata.PackageNotFoundError("catalogist")
        with (
            patch.object(_version.metadata, "version", side_effect=missing),
            patch.object(_version, "_source_version", return_value="0.4.0"),
            patch.object(_version, "_get_commit", return_value="1a2b3c4"),
        ):
            assert _version.get_version() == "0.4.0+g1a2b3c4"

    def test_source_checkout_without_git(self) -> None:
        """Test the plain pyproject version when git is unavailable."""
        missing = metadata.PackageNotFoundError("catalogist")
        with (
            patch.object(_version.metadata, "version", side_effect=missing),
            patch.object(_version, "_source_version", return_value="0.4.0"),
            patch.object(_version, "_get_commit", return_value=None),
        ):
            assert _version.get_version() == "0.4.0"

    def test_source_version_reads_pyproject(self) -> None:
        """Test reading the version field of this checkout's pyproject.toml."""
        if not _version.PYPROJECT_FILE.exists():
            pytest.skip("not running from a source checkout")
        assert _version._source_version() == "0.4.0"
