"""Interleave specials into the main viewing order."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, Field

from catalogist.catalog.models import (
    SPECIALS_SEASON,
    ExpectedEpisode,
    PlacementMode,
    SpecialPlacementRule,
)
from catalogist.models.mixins import EpisodeCodeMixin


class ViewingEntry(EpisodeCodeMixin, BaseModel):
    """One position in the main viewing order."""

    season_number: int
    episode_number: int
    title: str | None = None

    @property
    def display_title(self) -> str:
        """Get the episode code with title for display."""
        if self.title:
            return f"{self.episode_code} - {self.title}"
        return self.episode_code


class ViewingOrder(BaseModel):
    """Main viewing order of a series.

    Attributes:
        entries: Regular episodes in (season, episode) order with placed
            specials interleaved.
        unplaced: Placement rules whose target episode is not in the
            canonical list; their specials are left out of the order.
    """

    series_id: str
    entries: list[ViewingEntry] = Field(default_factory=list)
    unplaced: list[SpecialPlacementRule] = Field(default_factory=list)

    @property
    def placed_specials(self) -> list[ViewingEntry]:
        """Specials that made it into the main order."""
        return [entry for entry in self.entries if entry.is_special]


class SpecialsPlacementResolver:
    """Apply stored placement rules to a series' expected episodes."""

    def main_order(
        self,
        series_id: str,
        expected: Sequence[ExpectedEpisode],
        rules: Sequence[SpecialPlacementRule],
    ) -> ViewingOrder:
        """Build the main viewing order.

        Specials without a rule, or with ``specials_only``, stay out of the
        main order. Several specials at the same position are ordered by
        their own episode number.

        Args:
            series_id: Series to order.
            expected: The series' expected episodes.
            rules: The series' placement rules.

        Returns:
            ViewingOrder with entries and unplaced rules.
        """
        regular = sorted(
            (ep for ep in expected if ep.season_number != SPECIALS_SEASON),
            key=lambda ep: ep.pair,
        )
        specials = {ep.episode_number: ep for ep in expected if ep.season_number == SPECIALS_SEASON}
        regular_pairs = {ep.pair for ep in regular}

        before: dict[tuple[int, int], list[ExpectedEpisode]] = {}
        after: dict[tuple[int, int], list[ExpectedEpisode]] = {}
        unplaced: list[SpecialPlacementRule] = []

        for rule in sorted(rules, key=lambda r: r.special_episode):
            special = specials.get(rule.special_episode)
            if special is None or rule.mode is PlacementMode.SPECIALS_ONLY:
                continue
            if rule.target is None or rule.target.pair not in regular_pairs:
                unplaced.append(rule)
                continue
            slots = before if rule.mode is PlacementMode.BEFORE else after
            slots.setdefault(rule.target.pair, []).append(special)

        entries: list[ViewingEntry] = []
        for ep in regular:
            entries.extend(self._entry(sp) for sp in before.get(ep.pair, []))
            entries.append(self._entry(ep))
            entries.extend(self._entry(sp) for sp in after.get(ep.pair, []))

        return ViewingOrder(series_id=series_id, entries=entries, unplaced=unplaced)

    def _entry(self, ep: ExpectedEpisode) -> ViewingEntry:
        return ViewingEntry(
            season_number=ep.season_number,
            episode_number=ep.episode_number,
            title=ep.title,
        )
