"""Tests for scan statistics."""

import threading
from datetime import date, timedelta
from io import StringIO

from rich.console import Console

from catalogist.completeness import (
    EpisodeStatus,
    EpisodeStatusRow,
    SeasonCompleteness,
    SeriesCompleteness,
)
from catalogist.statistics import PhaseStats, ScanStatistics, calculate_completion_score


class TestPhaseStats:
    """Tests for PhaseStats."""

    def test_duration(self) -> None:
        """Test duration of a finished phase."""
        phase = PhaseStats(name="Identifying files", started_at=100.0, ended_at=102.5)

        assert phase.duration_seconds == 2.5


class TestScanStatistics:
    """Tests for ScanStatistics counters and output."""

    def test_counters(self) -> None:
        """Test recording outcomes."""
        stats = ScanStatistics()
        for _ in range(4):
            stats.record_file()
        stats.record_mapped()
        stats.record_mapped(changed=False)
        stats.record_unmapped("no_match")
        stats.record_unmapped("no_match")
        stats.record_refresh(fetches=2)

        assert stats.files_seen == 4
        assert stats.files_mapped == 2
        assert stats.files_unchanged == 1
        assert stats.unmapped == {"no_match": 2}
        assert stats.total_unmapped == 2
        assert stats.mapped_rate == 50.0
        assert stats.series_refreshed == 1
        assert stats.provider_fetches == 2

    def test_mapped_rate_empty(self) -> None:
        """Test mapped rate before any file was seen."""
        assert ScanStatistics().mapped_rate == 0.0

    def test_thread_safe_counters(self) -> None:
        """Test that counters survive concurrent updates."""
        stats = ScanStatistics()

        def work() -> None:
            for _ in range(100):
                stats.record_file()
                stats.record_failure()

        threads = [threading.Thread(target=work) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert stats.files_seen == 400
        assert stats.units_failed == 400

    def test_phases(self) -> None:
        """Test that starting a phase ends the previous one."""
        stats = ScanStatistics()
        stats.start()
        stats.start_phase("Identifying files")
        stats.start_phase("Refreshing series")
        stats.end_phase(item_count=3)
        stats.stop()

        assert [p.name for p in stats.phases] == ["Identifying files", "Refreshing series"]
        assert stats.phases[1].item_count == 3
        assert ScanStatistics.get_current() is stats
        ScanStatistics.reset_current()
        assert ScanStatistics.get_current() is None

    def test_format_duration(self) -> None:
        """Test duration formatting."""
        stats = ScanStatistics()

        assert stats._format_duration(timedelta(seconds=12.34)) == "12.3s"
        assert stats._format_duration(timedelta(seconds=65)) == "1m 5.0s"

    def test_print_summary(self) -> None:
        """Test the printed summary."""
        output = StringIO()
        console = Console(file=output, width=120, force_terminal=False)
        stats = ScanStatistics()
        stats.record_file()
        stats.record_unmapped("ambiguous_identity")
        stats.record_series_created()
        stats.record_failure()

        stats.print_summary(console)

        text = output.getvalue()
        assert "Scan Summary" in text
        assert "1 seen, 0 mapped" in text
        assert "Unmapped (ambiguous_identity): 1" in text
        assert "New entries: 1" in text
        assert "Failed units: 1" in text


class TestCompletionScore:
    """Tests for calculate_completion_score."""

    def _create_series(self, *statuses: EpisodeStatus) -> SeriesCompleteness:
        rows = [
            EpisodeStatusRow(season_number=1, episode_number=n, status=status)
            for n, status in enumerate(statuses, start=1)
        ]
        return SeriesCompleteness(
            series_id="s1",
            computed_on=date(2024, 6, 1),
            seasons=[SeasonCompleteness(season_number=1, rows=rows)],
        )

    def test_score(self) -> None:
        """Test that future episodes are left out of the score."""
        series = [
            self._create_series(EpisodeStatus.PRESENT, EpisodeStatus.MISSING),
            self._create_series(EpisodeStatus.PRESENT, EpisodeStatus.FUTURE),
        ]

        score = calculate_completion_score(series)

        assert abs(score - 66.67) < 0.01

    def test_nothing_aired(self) -> None:
        """Test that a library with nothing aired is complete."""
        assert calculate_completion_score([]) == 100.0
        assert calculate_completion_score([self._create_series(EpisodeStatus.FUTURE)]) == 100.0
