"""Canonical episode lists merged from metadata providers."""

from catalogist.episodes.merge import (
    LOCKABLE_EPISODE_FIELDS,
    EpisodeListManager,
    MergeResult,
    orphan_key,
)
from catalogist.episodes.provider import (
    EpisodeListProvider,
    ProviderEpisode,
    ProviderEpisodeList,
    StaticEpisodeProvider,
    parse_date,
)

__all__ = [
    "EpisodeListManager",
    "MergeResult",
    "LOCKABLE_EPISODE_FIELDS",
    "orphan_key",
    "EpisodeListProvider",
    "ProviderEpisode",
    "ProviderEpisodeList",
    "StaticEpisodeProvider",
    "parse_date",
]
