"""Specials placement in the main viewing order."""

from catalogist.specials.resolver import SpecialsPlacementResolver, ViewingEntry, ViewingOrder

__all__ = [
    "SpecialsPlacementResolver",
    "ViewingEntry",
    "ViewingOrder",
]
