"""Episode completeness tracking."""

from catalogist.completeness.engine import CompletenessEngine, DisplayFilter, present_pairs
from catalogist.completeness.models import (
    EpisodeStatus,
    EpisodeStatusRow,
    LibraryCompleteness,
    SeasonCompleteness,
    SeriesCompleteness,
)
from catalogist.completeness.report import library_report, series_report

__all__ = [
    "CompletenessEngine",
    "DisplayFilter",
    "present_pairs",
    "library_report",
    "series_report",
    "EpisodeStatus",
    "EpisodeStatusRow",
    "SeasonCompleteness",
    "SeriesCompleteness",
    "LibraryCompleteness",
]
