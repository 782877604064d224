"""Tests for report output formatting."""

import csv
import io
import json
from datetime import date
from pathlib import Path
from unittest.mock import patch

from rich.console import Console

from catalogist.catalog import EpisodeRef, PlacementMode, SpecialPlacementRule
from catalogist.completeness import (
    EpisodeStatus,
    EpisodeStatusRow,
    LibraryCompleteness,
    SeasonCompleteness,
    SeriesCompleteness,
)
from catalogist.output import CompletenessReportFormatter, ReportFormatter, ViewingOrderFormatter
from catalogist.specials import ViewingEntry, ViewingOrder


def _create_report() -> LibraryCompleteness:
    rows = [
        EpisodeStatusRow(
            season_number=1,
            episode_number=1,
            status=EpisodeStatus.PRESENT,
            title="Pilot",
            air_date=date(2020, 1, 1),
        ),
        EpisodeStatusRow(
            season_number=1, episode_number=2, status=EpisodeStatus.MISSING, title="Second"
        ),
        EpisodeStatusRow(season_number=1, episode_number=3, status=EpisodeStatus.FUTURE),
    ]
    show = SeriesCompleteness(
        series_id="s1",
        series_title="Show (2003)",
        computed_on=date(2024, 6, 1),
        seasons=[SeasonCompleteness(season_number=1, rows=rows, unlisted=[7])],
    )
    done = SeriesCompleteness(series_id="s2", series_title="Done", computed_on=date(2024, 6, 1))
    return LibraryCompleteness(
        library_id="tv", computed_on=date(2024, 6, 1), series=[show, done]
    )


def _create_order() -> ViewingOrder:
    return ViewingOrder(
        series_id="s1",
        entries=[
            ViewingEntry(season_number=1, episode_number=1, title="Pilot"),
            ViewingEntry(season_number=0, episode_number=1, title="Christmas"),
            ViewingEntry(season_number=1, episode_number=2),
        ],
        unplaced=[
            SpecialPlacementRule(
                series_id="s1",
                special_episode=2,
                mode=PlacementMode.AFTER,
                target=EpisodeRef.of(5, 1),
            )
        ],
    )


class TestReportFormatter:
    """Tests for shared formatter helpers."""

    def test_sanitize_filename(self) -> None:
        """Test that unsafe characters are replaced."""
        assert ReportFormatter._sanitize_filename("Show: The (2003)") == "Show__The__2003_"

    def test_score_color(self) -> None:
        """Test score color thresholds."""
        assert ReportFormatter._get_score_color(95) == "green"
        assert ReportFormatter._get_score_color(70) == "yellow"
        assert ReportFormatter._get_score_color(10) == "red"


class TestCompletenessReportFormatter:
    """Tests for CompletenessReportFormatter."""

    def test_to_json(self) -> None:
        """Test JSON output structure."""
        data = json.loads(CompletenessReportFormatter(_create_report()).to_json())

        assert data["library_id"] == "tv"
        assert data["computed_on"] == "2024-06-01"
        assert data["total_series"] == 2
        assert data["complete_series"] == 1
        assert data["total_missing"] == 1
        show = data["series"][0]
        assert show["title"] == "Show (2003)"
        assert (show["present"], show["missing"], show["future"]) == (1, 1, 1)
        assert show["completion_percent"] == 50.0
        season = show["seasons"][0]
        assert season["title"] == "Season 1"
        assert season["unlisted"] == [7]
        assert season["episodes"][0] == {
            "episode_code": "S01E01",
            "title": "Pilot",
            "air_date": "2020-01-01",
            "status": "present",
        }

    def test_to_csv(self) -> None:
        """Test CSV output with one row per episode."""
        rows = list(csv.reader(io.StringIO(CompletenessReportFormatter(_create_report()).to_csv())))

        assert rows[0] == ["Series", "Season", "Episode", "Title", "Air Date", "Status"]
        assert rows[1] == ["Show (2003)", "1", "S01E01", "Pilot", "2020-01-01", "present"]
        assert rows[3] == ["Show (2003)", "1", "S01E03", "", "", "future"]
        assert len(rows) == 4

    def test_to_text(self) -> None:
        """Test text output lists missing episodes and unlisted files."""
        output = io.StringIO()
        with patch("catalogist.output.console", Console(file=output, width=120)):
            CompletenessReportFormatter(_create_report()).to_text()

        text = output.getvalue()
        assert "Found 1 missing episodes in 1 series" in text
        assert "S01E02 - Second" in text
        assert "E07" in text

    def test_show_summary(self) -> None:
        """Test the library score line."""
        output = io.StringIO()
        with patch("catalogist.output.console", Console(file=output, width=120)):
            CompletenessReportFormatter(_create_report()).show_summary()

        assert "50.0%" in output.getvalue()

    def test_save_csv(self, tmp_path: Path) -> None:
        """Test saving the CSV into a directory."""
        formatter = CompletenessReportFormatter(_create_report())

        path = formatter.save_csv(tmp_path)

        assert path.parent == tmp_path
        assert path.name.startswith("tv_completeness_")
        assert path.read_text(encoding="utf-8").startswith("Series,Season")


class TestViewingOrderFormatter:
    """Tests for ViewingOrderFormatter."""

    def test_to_json(self) -> None:
        """Test JSON output with positions and unplaced rules."""
        data = json.loads(ViewingOrderFormatter(_create_order(), "Show").to_json())

        assert data["title"] == "Show"
        assert [e["episode_code"] for e in data["entries"]] == ["S01E01", "S00E01", "S01E02"]
        assert data["entries"][1]["is_special"] is True
        assert data["entries"][2]["position"] == 3
        assert data["unplaced"] == [{"special": 2, "mode": "after", "target": "S05E01"}]

    def test_to_csv(self) -> None:
        """Test CSV output marks specials."""
        rows = list(csv.reader(io.StringIO(ViewingOrderFormatter(_create_order()).to_csv())))

        assert rows[0] == ["Position", "Episode", "Title", "Special"]
        assert rows[2] == ["2", "S00E01", "Christmas", "yes"]

    def test_default_filename(self) -> None:
        """Test that the series id is used without a title."""
        formatter = ViewingOrderFormatter(_create_order())

        assert formatter.default_filename() == "s1_viewing_order.csv"
