"""Concurrent identification of files and refresh of series."""

from catalogist.pipeline.events import (
    EventSink,
    FileIdentified,
    PipelineEvent,
    SeriesRefreshed,
)
from catalogist.pipeline.locks import SeriesLocks
from catalogist.pipeline.observed import ObservedFile, observe_file, quick_hash, walk_library
from catalogist.pipeline.pipeline import (
    IdentificationPipeline,
    ScanResult,
    ambiguity_key,
    entity_directory,
)

__all__ = [
    "IdentificationPipeline",
    "ScanResult",
    "entity_directory",
    "ambiguity_key",
    "SeriesLocks",
    "ObservedFile",
    "observe_file",
    "quick_hash",
    "walk_library",
    "EventSink",
    "PipelineEvent",
    "FileIdentified",
    "SeriesRefreshed",
]
