"""Completeness reports read from the catalog repository."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import TYPE_CHECKING

from catalogist.catalog.models import DEFAULT_LIBRARY_ID, EntityKind
from catalogist.completeness.engine import CompletenessEngine, DisplayFilter
from catalogist.completeness.models import LibraryCompleteness, SeriesCompleteness

if TYPE_CHECKING:
    from catalogist.catalog.repository import CatalogRepository


def series_report(
    repository: CatalogRepository,
    series_id: str,
    today: date | None = None,
    display: DisplayFilter | None = None,
    engine: CompletenessEngine | None = None,
) -> SeriesCompleteness:
    """Compute (and optionally filter) completeness for one series.

    Raises:
        RecordNotFoundError: If the series does not exist.
    """
    engine = engine or CompletenessEngine()
    entity = repository.require_entity(series_id)
    result = engine.compute(
        series_id,
        repository.expected_episodes(series_id),
        repository.mappings_for_owner(series_id),
        today=today,
        series_title=entity.display_title,
    )
    return display.apply(result) if display else result


def library_report(
    repository: CatalogRepository,
    library_id: str = DEFAULT_LIBRARY_ID,
    today: date | None = None,
    display: DisplayFilter | None = None,
    series_ids: Sequence[str] | None = None,
) -> LibraryCompleteness:
    """Compute completeness for every series in a library.

    Args:
        repository: Catalog repository.
        library_id: Library to report.
        today: Reference date, defaults to date.today().
        display: Display toggles applied to each series.
        series_ids: Restrict the report to these series.

    Returns:
        LibraryCompleteness with series ordered by title.
    """
    today = today or date.today()
    engine = CompletenessEngine()
    if series_ids is None:
        entities = repository.list_entities(EntityKind.SERIES, library_id)
        series_ids = [e.id for e in sorted(entities, key=lambda e: e.normalized_title)]
    return LibraryCompleteness(
        library_id=library_id,
        computed_on=today,
        series=[series_report(repository, sid, today, display, engine) for sid in series_ids],
    )
