"""Events emitted once per completed unit of work."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from catalogist.catalog.models import UnmappedReason


@dataclass(frozen=True)
class FileIdentified:
    """A file was identified (mapped or recorded as unmapped).

    Attributes:
        file_id: Identifier of the file.
        path: Path of the file.
        owner_id: Series or movie the file belongs to, if resolved.
        mapping_id: Mapping the file is part of, if mapped.
        unmapped_reason: Why the file stayed unmapped, if it did.
        changed: Whether the store changed.
    """

    file_id: str
    path: str
    owner_id: str | None = None
    mapping_id: str | None = None
    unmapped_reason: UnmappedReason | None = None
    changed: bool = False

    @property
    def is_mapped(self) -> bool:
        return self.mapping_id is not None


@dataclass(frozen=True)
class SeriesRefreshed:
    """A series' expected episodes were refreshed from its providers."""

    series_id: str
    canonical_provider: str | None
    upserted: int = 0
    removed: int = 0
    attention_raised: int = 0
    attention_cleared: int = 0

    @property
    def changed(self) -> bool:
        return bool(
            self.upserted or self.removed or self.attention_raised or self.attention_cleared
        )


PipelineEvent = FileIdentified | SeriesRefreshed
EventSink = Callable[[PipelineEvent], None]
