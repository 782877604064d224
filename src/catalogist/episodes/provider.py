"""Provider-side episode lists as handed over by the metadata fetcher."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, Field, field_validator, model_validator

from catalogist.catalog.models import OrderingMode
from catalogist.models.mixins import EpisodeCodeMixin
from catalogist.parser.tokens import normalize_provider


def parse_date(date_str: str | None) -> date | None:
    """Parse an ISO-format date string.

    Args:
        date_str: Date string in ISO format (YYYY-MM-DD) or None.

    Returns:
        Parsed date object, or None if the string is empty/invalid.
    """
    if not date_str:
        return None
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        return None


class ProviderEpisode(EpisodeCodeMixin, BaseModel):
    """An episode row from one provider.

    Aired numbering is always present; DVD and absolute numbering only when
    the provider supplies them.
    """

    id: str | None = None
    season_number: int = Field(alias="seasonNumber")
    episode_number: int = Field(alias="number")
    name: str | None = None
    aired: date | None = None
    overview: str | None = None
    dvd_season: int | None = Field(default=None, alias="dvdSeason")
    dvd_episode: int | None = Field(default=None, alias="dvdNumber")
    absolute_number: int | None = Field(default=None, alias="absoluteNumber")

    model_config = {"populate_by_name": True}

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value: Any) -> Any:
        return str(value) if value is not None else None

    @field_validator("aired", mode="before")
    @classmethod
    def _lenient_date(cls, value: Any) -> Any:
        # Providers send "" or malformed dates for unannounced episodes
        if isinstance(value, str):
            return parse_date(value)
        return value

    def address(self, ordering: OrderingMode) -> tuple[int, int]:
        """Get the (season, episode) address under an ordering.

        Rows without the requested numbering fall back to aired numbers.
        Specials keep their season 0 address in absolute ordering.
        """
        if ordering is OrderingMode.DVD:
            if self.dvd_season is not None and self.dvd_episode is not None:
                return (self.dvd_season, self.dvd_episode)
        elif ordering is OrderingMode.ABSOLUTE:
            if not self.is_special and self.absolute_number:
                return (1, self.absolute_number)
        return self.pair


class ProviderEpisodeList(BaseModel):
    """One provider's full episode list for a series."""

    provider: str
    episodes: list[ProviderEpisode] = Field(default_factory=list)
    # Artwork base URLs, passed through to presentation untouched
    image_base_paths: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _normalize_provider(self) -> ProviderEpisodeList:
        self.provider = normalize_provider(self.provider)
        return self

    @property
    def is_empty(self) -> bool:
        """Check if the provider returned no episodes."""
        return not self.episodes

    @property
    def regular_episodes(self) -> list[ProviderEpisode]:
        """Get non-special episodes (excluding Season 0)."""
        return [ep for ep in self.episodes if not ep.is_special]

    def episodes_by_season(self) -> dict[int, list[ProviderEpisode]]:
        """Get episodes grouped by aired season number."""
        result: dict[int, list[ProviderEpisode]] = {}
        for ep in self.episodes:
            result.setdefault(ep.season_number, []).append(ep)
        return result


class EpisodeListProvider(Protocol):
    """Metadata collaborator that fetches a provider's episode list."""

    name: str

    def fetch_episodes(self, series_id: str, external_ids: dict[str, str]) -> ProviderEpisodeList:
        """Fetch the episode list for a series.

        Args:
            series_id: Catalog series identifier.
            external_ids: The series' provider identifiers.

        Returns:
            The provider's episode list (empty when the provider has no
            identifier for the series).
        """
        ...


class StaticEpisodeProvider:
    """Provider that serves episode lists loaded ahead of time.

    Lists are keyed by catalog series id. Used when the metadata fetcher
    runs separately and drops its results as JSON files.
    """

    def __init__(self, name: str, lists: dict[str, ProviderEpisodeList] | None = None) -> None:
        self.name = normalize_provider(name)
        self._lists = dict(lists or {})

    @classmethod
    def from_file(cls, series_id: str, path: Path) -> StaticEpisodeProvider:
        """Load one ProviderEpisodeList JSON file for a series.

        Raises:
            OSError: If the file cannot be read.
            pydantic.ValidationError: If the content is not an episode list.
        """
        episode_list = ProviderEpisodeList.model_validate_json(path.read_text(encoding="utf-8"))
        return cls(episode_list.provider, {series_id: episode_list})

    def add(self, series_id: str, episode_list: ProviderEpisodeList) -> None:
        self._lists[series_id] = episode_list

    def fetch_episodes(self, series_id: str, external_ids: dict[str, str]) -> ProviderEpisodeList:
        return self._lists.get(series_id) or ProviderEpisodeList(provider=self.name)
