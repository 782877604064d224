"""Mixin classes for Pydantic models.

Provides reusable properties for common model patterns.
"""

from __future__ import annotations

from datetime import date


def format_episode_code(season_number: int, episode_number: int) -> str:
    """Format a season/episode pair as ``S01E05``."""
    return f"S{season_number:02d}E{episode_number:02d}"


class EpisodeCodeMixin:
    """Mixin providing episode_code and pair properties.

    Requires the model to have season_number and episode_number fields.

    Example:
        ```python
        class Episode(EpisodeCodeMixin, BaseModel):
            season_number: int
            episode_number: int

        ep = Episode(season_number=1, episode_number=5)
        print(ep.episode_code)  # "S01E05"
        ```
    """

    season_number: int
    episode_number: int

    @property
    def episode_code(self) -> str:
        """Get the episode code in S01E05 format."""
        return format_episode_code(self.season_number, self.episode_number)

    @property
    def pair(self) -> tuple[int, int]:
        """Get the (season_number, episode_number) address."""
        return (self.season_number, self.episode_number)

    @property
    def is_special(self) -> bool:
        """Check if this is a special (Season 0)."""
        return self.season_number == 0


class AirDateMixin:
    """Mixin for models with an optional air_date.

    An unknown air date counts as already aired: the provider asserts the
    episode exists and nothing says it is still to come.

    Example:
        ```python
        class Episode(AirDateMixin, BaseModel):
            air_date: date | None = None

        ep = Episode(air_date=date(2030, 1, 1))
        ep.is_future(date(2026, 1, 1))  # True
        ```
    """

    air_date: date | None

    def is_future(self, today: date | None = None) -> bool:
        """Check if the air date is strictly after the reference date.

        Args:
            today: Reference date, defaults to date.today().

        Returns:
            True if the air date is set and later than the reference date.
        """
        if self.air_date is None:
            return False
        return self.air_date > (today or date.today())

    def has_aired(self, today: date | None = None) -> bool:
        """Check if the episode is unset or aired on or before the reference date."""
        return not self.is_future(today)
