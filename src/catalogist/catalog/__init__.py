"""Canonical catalog records.

The repository lives in ``catalogist.catalog.repository``; it is not
imported here because it depends on the resolver and merge modules, which
themselves import these models.
"""

from catalogist.catalog.models import (
    DEFAULT_LIBRARY_ID,
    SPECIALS_SEASON,
    AttentionItem,
    AttentionKind,
    CanonicalEntity,
    EntityKind,
    EpisodeRef,
    ExpectedEpisode,
    ExternalIdentifierSet,
    FieldLock,
    FileMapping,
    LibraryKind,
    MappedPart,
    MappingEnvelope,
    MediaFile,
    MultiEpisodeMapping,
    MultiPartMapping,
    OrderingMode,
    OrphanedMapping,
    PlacementMode,
    ProviderMismatch,
    SeriesPolicy,
    SingleMapping,
    SpecialPlacementRule,
    UnmappedFile,
    UnmappedReason,
    episode_key,
    mapping_file_ids,
    mapping_id,
    mapping_pairs,
    new_entity_id,
)

__all__ = [
    "DEFAULT_LIBRARY_ID",
    "SPECIALS_SEASON",
    # Entities
    "CanonicalEntity",
    "EntityKind",
    "LibraryKind",
    "ExternalIdentifierSet",
    "FieldLock",
    "SeriesPolicy",
    "OrderingMode",
    "ExpectedEpisode",
    "EpisodeRef",
    "new_entity_id",
    "episode_key",
    # Files and mappings
    "MediaFile",
    "FileMapping",
    "SingleMapping",
    "MultiPartMapping",
    "MultiEpisodeMapping",
    "MappedPart",
    "MappingEnvelope",
    "UnmappedFile",
    "UnmappedReason",
    "mapping_id",
    "mapping_file_ids",
    "mapping_pairs",
    # Specials and attention
    "SpecialPlacementRule",
    "PlacementMode",
    "ProviderMismatch",
    "OrphanedMapping",
    "AttentionItem",
    "AttentionKind",
]
