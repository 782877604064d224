"""Data models for completeness results."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date
from enum import Enum

from pydantic import BaseModel, Field

from catalogist.catalog.models import SPECIALS_SEASON
from catalogist.models.mixins import EpisodeCodeMixin


class EpisodeStatus(str, Enum):
    """Derived presence status of an expected episode."""

    PRESENT = "present"
    MISSING = "missing"
    FUTURE = "future"


class EpisodeStatusRow(EpisodeCodeMixin, BaseModel):
    """One expected episode and its status."""

    season_number: int
    episode_number: int
    status: EpisodeStatus
    title: str | None = None
    air_date: date | None = None

    @property
    def display_title(self) -> str:
        """Get the episode code with title for display."""
        if self.title:
            return f"{self.episode_code} - {self.title}"
        return self.episode_code

    @property
    def aired_str(self) -> str:
        """Get the air date formatted for display."""
        if self.air_date:
            return self.air_date.strftime("%b %d, %Y")
        return "TBA"


class SeasonCompleteness(BaseModel):
    """Status rows of one season, ordered by episode number."""

    season_number: int
    rows: list[EpisodeStatusRow] = Field(default_factory=list)
    # Episode numbers with a file mapping but no expected row
    unlisted: list[int] = Field(default_factory=list)

    @property
    def title(self) -> str:
        """Season title for display."""
        if self.season_number == SPECIALS_SEASON:
            return "Specials"
        return f"Season {self.season_number}"

    @property
    def is_specials(self) -> bool:
        """Check if this is the specials season (Season 0)."""
        return self.season_number == SPECIALS_SEASON

    def _count(self, status: EpisodeStatus) -> int:
        return sum(1 for row in self.rows if row.status is status)

    @property
    def present_count(self) -> int:
        """Number of expected episodes with a file."""
        return self._count(EpisodeStatus.PRESENT)

    @property
    def missing_count(self) -> int:
        """Number of aired episodes without a file."""
        return self._count(EpisodeStatus.MISSING)

    @property
    def future_count(self) -> int:
        """Number of not-yet-aired episodes without a file."""
        return self._count(EpisodeStatus.FUTURE)

    @property
    def has_files(self) -> bool:
        """Check if any episode of the season is present."""
        return self.present_count > 0 or bool(self.unlisted)

    @property
    def missing_episodes(self) -> list[EpisodeStatusRow]:
        """Rows with Missing status."""
        return [row for row in self.rows if row.status is EpisodeStatus.MISSING]


class SeriesCompleteness(BaseModel):
    """Completeness of one series as of a reference date."""

    series_id: str
    series_title: str = ""
    computed_on: date
    seasons: list[SeasonCompleteness] = Field(default_factory=list)

    @property
    def present_count(self) -> int:
        """Total present episodes."""
        return sum(s.present_count for s in self.seasons)

    @property
    def missing_count(self) -> int:
        """Total missing episodes."""
        return sum(s.missing_count for s in self.seasons)

    @property
    def future_count(self) -> int:
        """Total future episodes."""
        return sum(s.future_count for s in self.seasons)

    @property
    def expected_count(self) -> int:
        """Total expected episodes across reported seasons."""
        return sum(len(s.rows) for s in self.seasons)

    @property
    def unlisted_count(self) -> int:
        """Mapped episodes the canonical list does not know about."""
        return sum(len(s.unlisted) for s in self.seasons)

    @property
    def completion_percent(self) -> float:
        """Percentage of aired episodes present."""
        aired = self.present_count + self.missing_count
        if aired == 0:
            return 100.0
        return (self.present_count / aired) * 100

    @property
    def needs_attention(self) -> bool:
        """Check if anything is missing or mapped outside the list."""
        return self.missing_count > 0 or self.unlisted_count > 0

    def season(self, season_number: int) -> SeasonCompleteness | None:
        """Get a season by number."""
        for season in self.seasons:
            if season.season_number == season_number:
                return season
        return None

    def iter_rows(self) -> Iterator[EpisodeStatusRow]:
        """Iterate over all rows in season order."""
        for season in self.seasons:
            yield from season.rows


class LibraryCompleteness(BaseModel):
    """Completeness of every series in a library."""

    library_id: str
    computed_on: date
    series: list[SeriesCompleteness] = Field(default_factory=list)

    @property
    def total_missing(self) -> int:
        """Total number of missing episodes across all series."""
        return sum(s.missing_count for s in self.series)

    @property
    def complete_series(self) -> int:
        """Number of series with nothing missing."""
        return sum(1 for s in self.series if s.missing_count == 0)

    @property
    def series_with_gaps(self) -> list[SeriesCompleteness]:
        """Series with missing episodes, most missing first."""
        gaps = [s for s in self.series if s.missing_count > 0]
        gaps.sort(key=lambda s: s.missing_count, reverse=True)
        return gaps
