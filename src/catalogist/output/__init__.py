"""Output formatting for completeness reports and viewing orders.

Provides text (rich), JSON and CSV renderings.
"""

from __future__ import annotations

import csv
import io
import json
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.table import Table

from catalogist.completeness.models import EpisodeStatus

if TYPE_CHECKING:
    from catalogist.completeness.models import LibraryCompleteness, SeriesCompleteness
    from catalogist.specials.resolver import ViewingOrder
    from catalogist.statistics import ScanStatistics


console = Console()

STATUS_STYLES = {
    EpisodeStatus.PRESENT: "green",
    EpisodeStatus.MISSING: "red",
    EpisodeStatus.FUTURE: "cyan",
}


class ReportFormatter(ABC):
    """Abstract base class for report formatting."""

    @abstractmethod
    def to_json(self) -> str:
        """Convert report to JSON string."""
        pass

    @abstractmethod
    def to_csv(self) -> str:
        """Convert report to CSV string."""
        pass

    @abstractmethod
    def to_text(self, verbose: bool = False) -> None:
        """Output report as formatted text to console."""
        pass

    @abstractmethod
    def default_filename(self) -> str:
        """File name used by save_csv."""
        pass

    def save_csv(self, directory: Path | None = None) -> Path:
        """Save report as CSV file and return path."""
        filepath = (directory or Path.cwd()) / self.default_filename()
        with open(filepath, "w", newline="", encoding="utf-8") as f:
            f.write(self.to_csv())
        return filepath

    @staticmethod
    def _sanitize_filename(name: str) -> str:
        """Sanitize a string for use in a filename."""
        safe = "".join(c if c.isalnum() or c in " -_" else "_" for c in name)
        return safe.replace(" ", "_")

    @staticmethod
    def _get_score_color(score: float) -> str:
        """Get color for score display."""
        if score >= 90:
            return "green"
        elif score >= 70:
            return "yellow"
        return "red"


class CompletenessReportFormatter(ReportFormatter):
    """Formatter for library completeness reports."""

    def __init__(self, report: LibraryCompleteness) -> None:
        self.report = report

    def _series_dict(self, series: SeriesCompleteness) -> dict[str, Any]:
        return {
            "series_id": series.series_id,
            "title": series.series_title,
            "present": series.present_count,
            "missing": series.missing_count,
            "future": series.future_count,
            "expected": series.expected_count,
            "completion_percent": round(series.completion_percent, 1),
            "seasons": [
                {
                    "season": season.season_number,
                    "title": season.title,
                    "episodes": [
                        {
                            "episode_code": row.episode_code,
                            "title": row.title,
                            "air_date": row.air_date.isoformat() if row.air_date else None,
                            "status": row.status.value,
                        }
                        for row in season.rows
                    ],
                    "unlisted": season.unlisted,
                }
                for season in series.seasons
            ],
        }

    def to_json(self) -> str:
        """Convert completeness report to JSON string."""
        output = {
            "library_id": self.report.library_id,
            "computed_on": self.report.computed_on.isoformat(),
            "total_series": len(self.report.series),
            "complete_series": self.report.complete_series,
            "total_missing": self.report.total_missing,
            "series": [self._series_dict(s) for s in self.report.series],
        }
        return json.dumps(output, indent=2)

    def to_csv(self) -> str:
        """Convert completeness report to CSV string, one row per episode."""
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(["Series", "Season", "Episode", "Title", "Air Date", "Status"])

        for series in self.report.series:
            for season in series.seasons:
                for row in season.rows:
                    writer.writerow(
                        [
                            series.series_title,
                            season.season_number,
                            row.episode_code,
                            row.title or "",
                            row.air_date.isoformat() if row.air_date else "",
                            row.status.value,
                        ]
                    )

        return output.getvalue()

    def to_text(self, verbose: bool = False) -> None:
        """Output completeness report as formatted text."""
        console.print()
        console.print(f"[bold blue]Episode Completeness - {self.report.library_id}[/bold blue]")
        console.print()

        console.print(f"[dim]Series:[/dim] {len(self.report.series)}")
        console.print(f"[dim]Complete:[/dim] {self.report.complete_series}")
        console.print()

        gaps = self.report.series_with_gaps
        if not gaps and not verbose:
            console.print("[green]All series are complete![/green]")
            return

        if gaps:
            console.print(
                f"[yellow]Found {self.report.total_missing} missing episodes in "
                f"{len(gaps)} series[/yellow]"
            )
            console.print()

        for series in self.report.series if verbose else gaps:
            self._series_text(series, verbose)

    def _series_text(self, series: SeriesCompleteness, verbose: bool) -> None:
        aired = series.present_count + series.missing_count
        console.print(
            f"[bold]{series.series_title or series.series_id}[/bold] "
            f"({series.present_count}/{aired} - {series.completion_percent:.0f}%)"
        )

        for season in series.seasons:
            if verbose:
                console.print(f"  [dim]{season.title}:[/dim]")
                table = Table(show_header=True, header_style="dim", box=None, padding=(0, 2))
                table.add_column("Episode")
                table.add_column("Title", style="white")
                table.add_column("Aired", style="dim")
                table.add_column("Status")
                for row in season.rows:
                    style = STATUS_STYLES[row.status]
                    table.add_row(
                        row.episode_code,
                        row.title or "",
                        row.aired_str,
                        f"[{style}]{row.status.value}[/{style}]",
                    )
                console.print(table)
            elif season.missing_episodes:
                console.print(f"  [dim]{season.title}:[/dim]")
                max_display = 5
                for row in season.missing_episodes[:max_display]:
                    title_part = f" - {row.title}" if row.title else ""
                    console.print(f"    {row.episode_code}{title_part}")
                remaining = len(season.missing_episodes) - max_display
                if remaining > 0:
                    console.print(f"    [dim]... and {remaining} more[/dim]")

            if season.unlisted:
                codes = ", ".join(f"E{n:02d}" for n in season.unlisted)
                console.print(f"    [magenta]Files for unlisted episodes:[/magenta] {codes}")

        console.print()

    def default_filename(self) -> str:
        safe_name = self._sanitize_filename(self.report.library_id)
        return f"{safe_name}_completeness_{date.today().isoformat()}.csv"

    def show_summary(self, stats: ScanStatistics | None = None) -> None:
        """Display a one-screen summary with the library score."""
        from catalogist.statistics import calculate_completion_score

        score = calculate_completion_score(self.report.series)
        score_color = self._get_score_color(score)
        console.print()
        console.print(
            f"[bold]Library Score:[/bold] [{score_color}]{score:.1f}%[/{score_color}] complete"
        )
        console.print(f"[dim]Series with gaps:[/dim] {len(self.report.series_with_gaps)}")
        console.print(f"[dim]Missing episodes:[/dim] {self.report.total_missing}")
        if stats is not None:
            console.print(f"[dim]Time taken:[/dim] {stats._format_duration(stats.total_duration)}")
        console.print()


class ViewingOrderFormatter(ReportFormatter):
    """Formatter for a series' main viewing order."""

    def __init__(self, order: ViewingOrder, series_title: str = "") -> None:
        self.order = order
        self.series_title = series_title or order.series_id

    def to_json(self) -> str:
        output = {
            "series_id": self.order.series_id,
            "title": self.series_title,
            "entries": [
                {
                    "position": i,
                    "episode_code": entry.episode_code,
                    "title": entry.title,
                    "is_special": entry.is_special,
                }
                for i, entry in enumerate(self.order.entries, start=1)
            ],
            "unplaced": [
                {
                    "special": rule.special_episode,
                    "mode": rule.mode.value,
                    "target": rule.target.episode_code if rule.target else None,
                }
                for rule in self.order.unplaced
            ],
        }
        return json.dumps(output, indent=2)

    def to_csv(self) -> str:
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(["Position", "Episode", "Title", "Special"])
        for i, entry in enumerate(self.order.entries, start=1):
            writer.writerow(
                [i, entry.episode_code, entry.title or "", "yes" if entry.is_special else ""]
            )
        return output.getvalue()

    def to_text(self, verbose: bool = False) -> None:
        console.print()
        console.print(f"[bold blue]Viewing Order - {self.series_title}[/bold blue]")
        console.print()

        table = Table(show_header=True, header_style="dim", box=None, padding=(0, 2))
        table.add_column("#", justify="right", style="dim")
        table.add_column("Episode")
        table.add_column("Title", style="white")
        for i, entry in enumerate(self.order.entries, start=1):
            code = f"[magenta]{entry.episode_code}[/magenta]" if entry.is_special else (
                entry.episode_code
            )
            table.add_row(str(i), code, entry.title or "")
        console.print(table)

        if self.order.unplaced:
            console.print()
            console.print("[yellow]Specials whose target episode is not listed:[/yellow]")
            for rule in self.order.unplaced:
                target = rule.target.episode_code if rule.target else "?"
                console.print(f"  S00E{rule.special_episode:02d} {rule.mode.value} {target}")

    def default_filename(self) -> str:
        safe_name = self._sanitize_filename(self.series_title)
        return f"{safe_name}_viewing_order.csv"
