"""Shared model utilities and mixins."""

from catalogist.models.mixins import AirDateMixin, EpisodeCodeMixin

__all__ = [
    "EpisodeCodeMixin",
    "AirDateMixin",
]
