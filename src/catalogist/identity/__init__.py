"""Identity resolution for series and movies."""

from catalogist.identity.resolver import (
    REASON_CONFLICTING_IDS,
    REASON_DUPLICATE_TITLE_YEAR,
    REASON_NO_TITLE,
    REASON_TITLE_WITHOUT_YEAR,
    Ambiguous,
    CatalogSnapshot,
    IdentityResolver,
    Resolution,
    ResolvedExisting,
    ResolvedNew,
    collect_path_tags,
)

__all__ = [
    "IdentityResolver",
    "CatalogSnapshot",
    "Resolution",
    "ResolvedExisting",
    "ResolvedNew",
    "Ambiguous",
    "collect_path_tags",
    "REASON_CONFLICTING_IDS",
    "REASON_DUPLICATE_TITLE_YEAR",
    "REASON_NO_TITLE",
    "REASON_TITLE_WITHOUT_YEAR",
]
