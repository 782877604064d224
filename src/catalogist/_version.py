"""Version lookup for Catalogist.

Releases are cut from the ``version`` field in pyproject.toml, and an
installed distribution reports that value through its metadata. A source
checkout that was never installed reads pyproject.toml itself and tags the
result with the current commit as a local version, e.g. ``0.4.0+g1a2b3c4``.
"""

from __future__ import annotations

import subprocess
import tomllib
from importlib import metadata
from pathlib import Path

DIST_NAME = "catalogist"
FALLBACK_VERSION = "0.0.0"

# src/catalogist/_version.py -> repository root
PYPROJECT_FILE = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _get_commit() -> str | None:
    """Get the abbreviated hash of the checked-out commit.

    Returns:
        Short commit hash, or None if git is unavailable or not in a repo.
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
            cwd=PYPROJECT_FILE.parent,
        )
        if result.returncode == 0:
            return result.stdout.strip() or None
    except (subprocess.SubprocessError, OSError):
        pass
    return None


def _source_version() -> str:
    """Read the release version from pyproject.toml next to the sources."""
    try:
        with PYPROJECT_FILE.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return FALLBACK_VERSION
    return str(data.get("project", {}).get("version", FALLBACK_VERSION))


def get_version() -> str:
    """Get the full version string.

    Returns:
        The installed release (e.g. "0.4.0"), or for a source checkout the
        pyproject version plus the commit (e.g. "0.4.0+g1a2b3c4").
    """
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        pass
    version = _source_version()
    commit = _get_commit()
    return f"{version}+g{commit}" if commit else version


__version__ = get_version()
