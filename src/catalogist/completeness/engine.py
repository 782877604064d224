"""Present / Missing / Future computation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from catalogist.catalog.models import ExpectedEpisode, FileMapping, mapping_pairs
from catalogist.completeness.models import (
    EpisodeStatus,
    EpisodeStatusRow,
    SeasonCompleteness,
    SeriesCompleteness,
)

if TYPE_CHECKING:
    from catalogist.config import DisplayConfig


def present_pairs(mappings: Sequence[FileMapping]) -> set[tuple[int, int]]:
    """Build the set of (season, episode) pairs referenced by mappings.

    Every mapping shape counts: a multi-episode file makes each of its
    episodes present, a multi-part mapping makes its one episode present.
    """
    present: set[tuple[int, int]] = set()
    for mapping in mappings:
        present.update(mapping_pairs(mapping))
    return present


class CompletenessEngine:
    """Compute per-season episode status for a series.

    Pure read-side computation: the same expected rows, mappings and date
    always give the same result.
    """

    def compute(
        self,
        series_id: str,
        expected: Sequence[ExpectedEpisode],
        mappings: Sequence[FileMapping],
        today: date | None = None,
        series_title: str = "",
    ) -> SeriesCompleteness:
        """Compute completeness.

        Args:
            series_id: Series being reported.
            expected: The series' expected episodes.
            mappings: File mappings owned by the series.
            today: Reference date, defaults to date.today().
            series_title: Title carried into the report.

        Returns:
            SeriesCompleteness with one entry per season that has expected
            rows or mapping references.
        """
        today = today or date.today()
        present = present_pairs(mappings)

        seasons: dict[int, SeasonCompleteness] = {}
        expected_pairs: set[tuple[int, int]] = set()

        for ep in sorted(expected, key=lambda e: e.pair):
            if ep.pair in expected_pairs:
                continue
            expected_pairs.add(ep.pair)
            season = seasons.setdefault(
                ep.season_number, SeasonCompleteness(season_number=ep.season_number)
            )
            season.rows.append(
                EpisodeStatusRow(
                    season_number=ep.season_number,
                    episode_number=ep.episode_number,
                    status=self._status(ep, present, today),
                    title=ep.title,
                    air_date=ep.air_date,
                )
            )

        for season_number, episode_number in sorted(present - expected_pairs):
            season = seasons.setdefault(
                season_number, SeasonCompleteness(season_number=season_number)
            )
            season.unlisted.append(episode_number)

        return SeriesCompleteness(
            series_id=series_id,
            series_title=series_title,
            computed_on=today,
            seasons=[seasons[n] for n in sorted(seasons)],
        )

    def _status(
        self, ep: ExpectedEpisode, present: set[tuple[int, int]], today: date
    ) -> EpisodeStatus:
        if ep.pair in present:
            return EpisodeStatus.PRESENT
        if ep.is_future(today):
            return EpisodeStatus.FUTURE
        return EpisodeStatus.MISSING


@dataclass(frozen=True)
class DisplayFilter:
    """Display toggles applied to a computed result.

    Attributes:
        hide_missing: Drop Missing rows.
        hide_future: Drop Future rows.
        hide_empty_seasons: Drop seasons with no file at all.
        include_specials: Keep Season 0.
    """

    hide_missing: bool = False
    hide_future: bool = False
    hide_empty_seasons: bool = False
    include_specials: bool = False

    def apply(self, result: SeriesCompleteness) -> SeriesCompleteness:
        """Return a filtered copy; the input is not modified."""
        hidden: set[EpisodeStatus] = set()
        if self.hide_missing:
            hidden.add(EpisodeStatus.MISSING)
        if self.hide_future:
            hidden.add(EpisodeStatus.FUTURE)

        seasons: list[SeasonCompleteness] = []
        for season in result.seasons:
            if season.is_specials and not self.include_specials:
                continue
            if self.hide_empty_seasons and not season.has_files:
                continue
            rows = [row for row in season.rows if row.status not in hidden]
            seasons.append(season.model_copy(update={"rows": rows}))
        return result.model_copy(update={"seasons": seasons})

    @classmethod
    def from_config(cls, display: DisplayConfig) -> DisplayFilter:
        """Build a filter from the [display] config section."""
        return cls(
            hide_missing=display.hide_missing,
            hide_future=display.hide_future,
            hide_empty_seasons=display.hide_empty_seasons,
            include_specials=display.include_specials,
        )
