"""Statistics tracking for identification runs.

Tracks files identified, mapping outcomes, provider fetches and timing
information to provide useful summaries after a scan.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rich.console import Console

    from catalogist.completeness.models import SeriesCompleteness


@dataclass
class PhaseStats:
    """Statistics for a single scan phase."""

    name: str
    started_at: float = 0.0
    ended_at: float = 0.0
    item_count: int = 0

    @property
    def duration(self) -> timedelta:
        """Get the duration of this phase."""
        if self.ended_at == 0:
            return timedelta(seconds=time.time() - self.started_at)
        return timedelta(seconds=self.ended_at - self.started_at)

    @property
    def duration_seconds(self) -> float:
        """Get the duration in seconds."""
        return self.duration.total_seconds()


@dataclass
class ScanStatistics:
    """Statistics for a full identification run.

    Counters may be updated from worker threads.

        stats = ScanStatistics()
        stats.start()
        stats.start_phase("Identifying files")
        stats.record_mapped()
        stats.end_phase(item_count=100)
        stats.print_summary(console)
    """

    files_seen: int = 0
    files_mapped: int = 0
    files_unchanged: int = 0
    unmapped: dict[str, int] = field(default_factory=dict)
    series_created: int = 0
    series_refreshed: int = 0
    provider_fetches: int = 0
    units_failed: int = 0

    # Phase tracking
    phases: list[PhaseStats] = field(default_factory=list)
    _current_phase: PhaseStats | None = field(default=None, repr=False)

    # Overall timing
    _started_at: float = field(default=0.0, repr=False)
    _ended_at: float = field(default=0.0, repr=False)

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    # Global instance for easy access
    _instance: ScanStatistics | None = field(default=None, repr=False)

    def start(self) -> None:
        """Start tracking the scan."""
        self._started_at = time.time()
        ScanStatistics._instance = self

    def stop(self) -> None:
        """Stop tracking the scan."""
        self._ended_at = time.time()
        if self._current_phase:
            self.end_phase()

    @classmethod
    def get_current(cls) -> ScanStatistics | None:
        """Get the current active statistics instance."""
        return cls._instance

    @classmethod
    def reset_current(cls) -> None:
        """Reset the current statistics instance."""
        cls._instance = None

    @property
    def total_duration(self) -> timedelta:
        """Get the total duration of the scan."""
        if self._started_at == 0:
            return timedelta(0)
        end = self._ended_at if self._ended_at > 0 else time.time()
        return timedelta(seconds=end - self._started_at)

    @property
    def total_unmapped(self) -> int:
        """Files left unmapped, any reason."""
        return sum(self.unmapped.values())

    @property
    def mapped_rate(self) -> float:
        """Percentage of seen files that got a mapping."""
        if self.files_seen == 0:
            return 0.0
        return (self.files_mapped / self.files_seen) * 100

    def start_phase(self, name: str) -> None:
        """Start a new phase.

        Args:
            name: Name of the phase (e.g., "Identifying files").
        """
        if self._current_phase:
            self.end_phase()
        self._current_phase = PhaseStats(name=name, started_at=time.time())

    def end_phase(self, item_count: int = 0) -> None:
        """End the current phase.

        Args:
            item_count: Number of items processed in this phase.
        """
        if self._current_phase:
            self._current_phase.ended_at = time.time()
            self._current_phase.item_count = item_count
            self.phases.append(self._current_phase)
            self._current_phase = None

    def record_file(self) -> None:
        """Record that a file was observed."""
        with self._lock:
            self.files_seen += 1

    def record_mapped(self, changed: bool = True) -> None:
        """Record a file that got a mapping."""
        with self._lock:
            self.files_mapped += 1
            if not changed:
                self.files_unchanged += 1

    def record_unmapped(self, reason: str) -> None:
        """Record a file left unmapped.

        Args:
            reason: Unmapped reason value (e.g. "no_match").
        """
        with self._lock:
            self.unmapped[reason] = self.unmapped.get(reason, 0) + 1

    def record_retry(self, reason: str) -> None:
        """Take back an unmapped outcome before its file is identified again."""
        with self._lock:
            self.files_seen -= 1
            remaining = self.unmapped.get(reason, 0) - 1
            if remaining > 0:
                self.unmapped[reason] = remaining
            else:
                self.unmapped.pop(reason, None)

    def record_series_created(self) -> None:
        """Record a newly registered series or movie."""
        with self._lock:
            self.series_created += 1

    def record_refresh(self, fetches: int = 0) -> None:
        """Record a series refresh and its provider fetches."""
        with self._lock:
            self.series_refreshed += 1
            self.provider_fetches += fetches

    def record_failure(self) -> None:
        """Record a unit of work aborted by a fatal error."""
        with self._lock:
            self.units_failed += 1

    def _format_duration(self, td: timedelta) -> str:
        """Format a timedelta for display."""
        total_seconds = td.total_seconds()
        if total_seconds < 60:
            return f"{total_seconds:.1f}s"
        minutes = int(total_seconds // 60)
        seconds = total_seconds % 60
        return f"{minutes}m {seconds:.1f}s"

    def print_summary(self, console: Console) -> None:
        """Print a summary of statistics to the console.

        Args:
            console: Rich console for output.
        """
        console.print()
        console.print("[bold]Scan Summary[/bold]")
        console.print()

        if self.phases:
            console.print("[dim]Phases:[/dim]")
            for phase in self.phases:
                duration_str = self._format_duration(phase.duration)
                if phase.item_count > 0:
                    console.print(f"  {phase.name}: {phase.item_count} items ({duration_str})")
                else:
                    console.print(f"  {phase.name}: {duration_str}")

        console.print()
        console.print(f"[bold]Total time:[/bold] {self._format_duration(self.total_duration)}")

        console.print(
            f"[bold]Files:[/bold] {self.files_seen} seen, {self.files_mapped} mapped "
            f"({self.mapped_rate:.0f}%)"
        )
        if self.files_unchanged:
            console.print(f"  Unchanged: {self.files_unchanged}")
        for reason, count in sorted(self.unmapped.items()):
            console.print(f"  Unmapped ({reason}): {count}")

        if self.series_created:
            console.print(f"[bold]New entries:[/bold] {self.series_created}")
        if self.series_refreshed:
            console.print(
                f"[bold]Refreshed:[/bold] {self.series_refreshed} series "
                f"({self.provider_fetches} provider fetches)"
            )
        if self.units_failed:
            console.print(f"[red]Failed units:[/red] {self.units_failed} (see error log)")


def calculate_completion_score(series: Sequence[SeriesCompleteness]) -> float:
    """Calculate overall completion across series.

    Args:
        series: Completeness results.

    Returns:
        Percentage (0-100) of aired expected episodes that are present.
    """
    present = 0
    aired = 0
    for result in series:
        present += result.present_count
        aired += result.present_count + result.missing_count

    if aired == 0:
        return 100.0
    return (present / aired) * 100
