"""Data types produced and consumed by the filename parser."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class ParseContext:
    """What the caller already knows about the series a file belongs to.

    Attributes:
        episode_counts: Known episode count per season number. A count of 0
            means the season is known but its size is not.
        season_count: Number of regular seasons, when only that is known.
        date_ordered: Series is numbered by air date (daily shows).
    """

    episode_counts: Mapping[int, int] = field(default_factory=dict)
    season_count: int | None = None
    date_ordered: bool = False

    @property
    def has_season_knowledge(self) -> bool:
        """Check if any season range is known."""
        return bool(self.episode_counts) or bool(self.season_count)

    def allows(self, season: int, episode: int) -> bool:
        """Check if (season, episode) fits the known season range.

        Args:
            season: Candidate season number.
            episode: Candidate episode number.

        Returns:
            True only when the season is known to exist and, where the
            season's size is known, the episode fits inside it.
        """
        if episode < 1 or season < 1:
            return False
        if self.episode_counts:
            if season not in self.episode_counts:
                return False
            count = self.episode_counts[season]
            return count <= 0 or episode <= count
        if self.season_count:
            return season <= self.season_count
        return False


@dataclass(frozen=True)
class RuleMatch:
    """Raw output of one rule before the cascade assembles a result."""

    season: int | None = None
    episodes: tuple[int, ...] = ()
    air_date: date | None = None
    start: int = 0
    end: int = 0
    external_ids: Mapping[str, str] = field(default_factory=dict)
    # Token runs into another season (S01E24-S02E01)
    spans_seasons: bool = False


@dataclass(frozen=True)
class ParseResult:
    """A successful parse of a media file name."""

    rule_name: str
    confidence: float
    season: int | None = None
    episodes: tuple[int, ...] = ()
    air_date: date | None = None
    series_title: str = ""
    episode_title: str | None = None
    external_ids: Mapping[str, str] = field(default_factory=dict)
    part: int | None = None
    year: int | None = None
    spans_seasons: bool = False

    @property
    def episode(self) -> int | None:
        """First (or only) episode number."""
        return self.episodes[0] if self.episodes else None

    @property
    def is_multi_episode(self) -> bool:
        """Check if the name covers more than one episode."""
        return len(self.episodes) > 1

    @property
    def has_episode(self) -> bool:
        """Check if a season/episode address was found."""
        return self.season is not None and bool(self.episodes)

    @property
    def is_date_based(self) -> bool:
        """Check if the name was identified by air date."""
        return self.air_date is not None

    @property
    def pinned(self) -> bool:
        """Check if a provider tag pins the series identity."""
        return bool(self.external_ids)

    @property
    def pairs(self) -> list[tuple[int, int]]:
        """(season, episode) pairs named by this parse."""
        if self.season is None:
            return []
        return [(self.season, ep) for ep in self.episodes]
