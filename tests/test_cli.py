"""Tests for the CLI module."""

import json
import re
from pathlib import Path

from click.testing import CliRunner

from catalogist import __version__
from catalogist.cli import main


def _create_library(root: Path) -> Path:
    season = root / "tv" / "Show (2003)" / "Season 1"
    season.mkdir(parents=True)
    (season / "Show S01E01.mkv").write_bytes(b"video")
    return root / "tv"


def _create_episode_list(path: Path) -> Path:
    path.write_text(
        json.dumps(
            {
                "provider": "tvdb",
                "episodes": [
                    {"seasonNumber": 1, "number": 1, "name": "Pilot", "aired": "2020-01-01"},
                    {"seasonNumber": 1, "number": 2, "name": "Second", "aired": "2020-01-08"},
                    {"seasonNumber": 0, "number": 1, "name": "Christmas", "aired": "2020-12-25"},
                ],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_main_help() -> None:
    """Test that --help works."""
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Catalogist" in result.output


def test_version() -> None:
    """Test that --version works."""
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    # Version format: MAJOR.MINOR.PATCH
    assert re.search(r"\d+\.\d+\.\d+", result.output)
    assert __version__ in result.output


def test_parse_command() -> None:
    """Test that parse shows the matching rule."""
    runner = CliRunner()
    result = runner.invoke(main, ["parse", "Show.S01E05.Title.mkv"])
    assert result.exit_code == 0
    assert "season_episode" in result.output
    assert "S01E05" in result.output


def test_parse_no_match() -> None:
    """Test that an unparseable name exits with an error."""
    runner = CliRunner()
    result = runner.invoke(main, ["parse", "random.mkv"])
    assert result.exit_code == 1
    assert "No match" in result.output


def test_parse_bad_season_option() -> None:
    """Test that a malformed --season value is rejected."""
    runner = CliRunner()
    result = runner.invoke(main, ["parse", "Show.301.mkv", "--season", "three"])
    assert result.exit_code != 0


def test_empty_store(tmp_path: Path) -> None:
    """Test read-only commands against an empty store."""
    runner = CliRunner()
    store = str(tmp_path / "store.json")

    result = runner.invoke(main, ["--store", store, "attention"])
    assert result.exit_code == 0
    assert "Nothing needs attention." in result.output

    result = runner.invoke(main, ["--store", store, "store", "stats"])
    assert result.exit_code == 0
    assert "Store is empty." in result.output

    result = runner.invoke(main, ["--store", store, "series", "list"])
    assert result.exit_code == 0
    assert "No series in the catalog." in result.output


def test_scan_refresh_and_status(tmp_path: Path) -> None:
    """Test a scan followed by a refresh and a completeness report."""
    runner = CliRunner()
    store = str(tmp_path / "store.json")
    library = _create_library(tmp_path)
    episode_list = _create_episode_list(tmp_path / "tvdb.json")

    result = runner.invoke(main, ["-q", "--store", store, "scan", str(library)])
    assert result.exit_code == 0
    assert "1 mapped, 0 unmapped" in result.output

    result = runner.invoke(main, ["--store", store, "series", "list"])
    assert "Show (2003)" in result.output

    result = runner.invoke(
        main, ["--store", store, "refresh", "Show", "--list", str(episode_list)]
    )
    assert result.exit_code == 0
    assert "TVDB" in result.output

    result = runner.invoke(main, ["--store", store, "status", "-f", "csv"])
    assert result.exit_code == 0
    assert "S01E01,Pilot,2020-01-01,present" in result.output
    assert "S01E02,Second,2020-01-08,missing" in result.output
    assert "S00E01" not in result.output


def test_place_special_and_order(tmp_path: Path) -> None:
    """Test placing a special into the viewing order."""
    runner = CliRunner()
    store = str(tmp_path / "store.json")
    library = _create_library(tmp_path)
    episode_list = _create_episode_list(tmp_path / "tvdb.json")
    runner.invoke(main, ["-q", "--store", store, "scan", str(library)])
    runner.invoke(main, ["--store", store, "refresh", "Show", "--list", str(episode_list)])

    result = runner.invoke(
        main, ["--store", store, "series", "place", "Show", "1", "--after", "s01e01"]
    )
    assert result.exit_code == 0
    assert "after S01E01" in result.output

    result = runner.invoke(main, ["--store", store, "order", "Show", "-f", "csv"])
    assert result.exit_code == 0
    lines = [line for line in result.output.splitlines() if line.strip()]
    assert lines[1:4] == ["1,S01E01,Pilot,", "2,S00E01,Christmas,yes", "3,S01E02,Second,"]


def test_unknown_series(tmp_path: Path) -> None:
    """Test that an unknown series exits with an error."""
    runner = CliRunner()
    result = runner.invoke(main, ["--store", str(tmp_path / "store.json"), "order", "Nope"])
    assert result.exit_code == 1
    assert "No series matches" in result.output


def test_store_clear_requires_confirmation(tmp_path: Path) -> None:
    """Test that store clear asks before deleting."""
    runner = CliRunner()
    result = runner.invoke(
        main, ["--store", str(tmp_path / "store.json"), "store", "clear"], input="n\n"
    )
    assert result.exit_code != 0


def test_config_path() -> None:
    """Test the config path command."""
    runner = CliRunner()
    result = runner.invoke(main, ["config", "path"])
    assert result.exit_code == 0
    assert ".catalogist" in result.output


def test_config_init(tmp_path: Path) -> None:
    """Test creating a default config file."""
    runner = CliRunner()
    with runner.isolated_filesystem(temp_dir=tmp_path):
        result = runner.invoke(main, ["config", "init"])
        assert result.exit_code == 0
        assert Path("catalogist.ini").exists()

        result = runner.invoke(main, ["config", "init"])
        assert result.exit_code == 1


def test_series_date_ordered(tmp_path: Path) -> None:
    """Test switching a series to air-date numbering and back."""
    runner = CliRunner()
    store = str(tmp_path / "store.json")
    library = _create_library(tmp_path)
    runner.invoke(main, ["-q", "--store", store, "scan", str(library)])

    result = runner.invoke(main, ["--store", store, "series", "date-ordered", "Show"])
    assert result.exit_code == 0
    assert "Date ordering on" in result.output

    result = runner.invoke(main, ["--store", store, "series", "date-ordered", "Show"])
    assert "already on" in result.output

    result = runner.invoke(main, ["--store", store, "series", "date-ordered", "Show", "--off"])
    assert result.exit_code == 0
    assert "Date ordering off" in result.output
