"""File-to-catalog mapping decisions."""

from catalogist.mapping.model import (
    DEFAULT_MIN_CONFIDENCE,
    FileMappingModel,
    MappingDecision,
    filename_variants,
)

__all__ = [
    "FileMappingModel",
    "MappingDecision",
    "DEFAULT_MIN_CONFIDENCE",
    "filename_variants",
]
