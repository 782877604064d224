"""Canonical episode list selection and merging.

One provider per series is canonical: it alone decides which episodes
exist and supplies their numbering, titles and air dates. The other
providers are only compared against it so disagreements become visible.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass, field

from catalogist.catalog.models import (
    EpisodeRef,
    ExpectedEpisode,
    FileMapping,
    OrderingMode,
    OrphanedMapping,
    ProviderMismatch,
    SeriesPolicy,
    episode_key,
    mapping_file_ids,
    mapping_id,
    mapping_pairs,
)
from catalogist.episodes.provider import ProviderEpisode, ProviderEpisodeList

# ExpectedEpisode fields a user may lock against provider refreshes
LOCKABLE_EPISODE_FIELDS = ("title", "air_date", "overview")


@dataclass
class MergeResult:
    """Outcome of merging provider lists into a series' expected episodes.

    Attributes:
        series_id: Series the result belongs to.
        canonical_provider: Provider that supplied the list, or None when no
            provider returned episodes (the existing rows are then kept).
        episodes: The complete new expected-episode set, ordered.
        removed: Previously expected episodes no longer in the set.
        retained: Rows kept only because a field on them is locked.
        mismatches: Fallback providers that disagree with the canonical one.
        orphans: Mappings whose episode was expected before (or was already
            flagged) and is not in the new set.
        image_base_paths: Artwork base paths from the canonical provider.
    """

    series_id: str
    canonical_provider: str | None
    episodes: list[ExpectedEpisode] = field(default_factory=list)
    removed: list[EpisodeRef] = field(default_factory=list)
    retained: list[EpisodeRef] = field(default_factory=list)
    mismatches: list[ProviderMismatch] = field(default_factory=list)
    orphans: list[OrphanedMapping] = field(default_factory=list)
    image_base_paths: dict[str, str] = field(default_factory=dict)

    @property
    def has_canonical(self) -> bool:
        """Check if any provider supplied a list."""
        return self.canonical_provider is not None

    def season_counts(self) -> dict[int, int]:
        """Episode count per season in the merged set."""
        counts: dict[int, int] = {}
        for ep in self.episodes:
            counts[ep.season_number] = counts.get(ep.season_number, 0) + 1
        return counts


class EpisodeListManager:
    """Merge provider episode lists under a series' precedence policy.

    The merge is a pure function of its inputs: nothing is read from or
    written to the store here. The repository applies the result.

    Example:
        ```python
        manager = EpisodeListManager()
        result = manager.merge(series_id, [tvdb_list, tmdb_list], policy, existing)
        repository.refresh_series(result)
        ```
    """

    def select_canonical(
        self, provider_lists: Sequence[ProviderEpisodeList], policy: SeriesPolicy
    ) -> ProviderEpisodeList | None:
        """Pick the first provider in precedence order with a non-empty list."""
        by_provider: dict[str, ProviderEpisodeList] = {}
        for plist in provider_lists:
            if not plist.is_empty:
                by_provider.setdefault(plist.provider, plist)
        for provider in policy.provider_precedence:
            if provider in by_provider:
                return by_provider[provider]
        return None

    def merge(
        self,
        series_id: str,
        provider_lists: Sequence[ProviderEpisodeList],
        policy: SeriesPolicy,
        existing: Sequence[ExpectedEpisode] = (),
        locks: Mapping[str, set[str]] | None = None,
        mappings: Sequence[FileMapping] = (),
        flagged: Collection[str] = (),
    ) -> MergeResult:
        """Compute the new expected-episode set for a series.

        Args:
            series_id: Series being refreshed.
            provider_lists: Fetched lists, one per provider, in any order.
            policy: The series' provider precedence and ordering mode.
            existing: Currently stored expected episodes.
            locks: Locked field names per episode key.
            mappings: Current file mappings owned by the series.
            flagged: Keys (see orphan_key) of mappings already flagged as
                orphaned; they stay flagged while their pair is still gone.

        Returns:
            MergeResult describing the new set and everything that needs
            attention.
        """
        locks = locks or {}
        existing_by_pair = {ep.pair: ep for ep in existing}

        canonical = self.select_canonical(provider_lists, policy)
        if canonical is None:
            return MergeResult(
                series_id=series_id,
                canonical_provider=None,
                episodes=sorted(existing, key=lambda ep: ep.pair),
            )

        merged: dict[tuple[int, int], ExpectedEpisode] = {}
        for row in self._ordered_rows(canonical.episodes, policy.ordering):
            pair = row.address(policy.ordering)
            if pair in merged:
                continue
            fresh = self._expected_from_row(series_id, pair, row, canonical.provider)
            merged[pair] = self._apply_locks(fresh, existing_by_pair.get(pair), locks)

        retained: list[EpisodeRef] = []
        for pair, old in existing_by_pair.items():
            if pair not in merged and locks.get(old.key):
                merged[pair] = old
                retained.append(EpisodeRef.of(*pair))

        removed = [EpisodeRef.of(*pair) for pair in sorted(existing_by_pair) if pair not in merged]

        return MergeResult(
            series_id=series_id,
            canonical_provider=canonical.provider,
            episodes=[merged[pair] for pair in sorted(merged)],
            removed=removed,
            retained=sorted(retained, key=lambda ref: ref.pair),
            mismatches=self._find_mismatches(series_id, canonical, provider_lists, policy),
            orphans=self._find_orphans(series_id, existing_by_pair, merged, mappings, flagged),
            image_base_paths=dict(canonical.image_base_paths),
        )

    def _ordered_rows(
        self, rows: Sequence[ProviderEpisode], ordering: OrderingMode
    ) -> list[ProviderEpisode]:
        # Stable order so duplicate addresses always resolve the same way
        return sorted(rows, key=lambda row: (row.address(ordering), row.pair))

    def _expected_from_row(
        self,
        series_id: str,
        pair: tuple[int, int],
        row: ProviderEpisode,
        provider: str,
    ) -> ExpectedEpisode:
        return ExpectedEpisode(
            series_id=series_id,
            season_number=pair[0],
            episode_number=pair[1],
            title=row.name,
            air_date=row.aired,
            overview=row.overview or "",
            source_provider=provider,
            provider_episode_id=row.id,
        )

    def _apply_locks(
        self,
        fresh: ExpectedEpisode,
        old: ExpectedEpisode | None,
        locks: Mapping[str, set[str]],
    ) -> ExpectedEpisode:
        locked = locks.get(fresh.key)
        if old is None or not locked:
            return fresh
        update = {name: getattr(old, name) for name in LOCKABLE_EPISODE_FIELDS if name in locked}
        return fresh.model_copy(update=update) if update else fresh

    def _pairs(self, plist: ProviderEpisodeList, ordering: OrderingMode) -> set[tuple[int, int]]:
        return {row.address(ordering) for row in plist.episodes}

    def _find_mismatches(
        self,
        series_id: str,
        canonical: ProviderEpisodeList,
        provider_lists: Sequence[ProviderEpisodeList],
        policy: SeriesPolicy,
    ) -> list[ProviderMismatch]:
        canonical_pairs = self._pairs(canonical, policy.ordering)
        mismatches: list[ProviderMismatch] = []
        seen = {canonical.provider}
        for plist in provider_lists:
            if plist.is_empty or plist.provider in seen:
                continue
            seen.add(plist.provider)
            other_pairs = self._pairs(plist, policy.ordering)
            if other_pairs == canonical_pairs and len(plist.episodes) == len(canonical.episodes):
                continue
            mismatches.append(
                ProviderMismatch(
                    series_id=series_id,
                    canonical_provider=canonical.provider,
                    other_provider=plist.provider,
                    canonical_count=len(canonical.episodes),
                    other_count=len(plist.episodes),
                    only_in_canonical=[
                        EpisodeRef.of(*p) for p in sorted(canonical_pairs - other_pairs)
                    ],
                    only_in_other=[
                        EpisodeRef.of(*p) for p in sorted(other_pairs - canonical_pairs)
                    ],
                )
            )
        return mismatches

    def _find_orphans(
        self,
        series_id: str,
        existing_by_pair: Mapping[tuple[int, int], ExpectedEpisode],
        merged: Mapping[tuple[int, int], ExpectedEpisode],
        mappings: Sequence[FileMapping],
        flagged: Collection[str],
    ) -> list[OrphanedMapping]:
        orphans: list[OrphanedMapping] = []
        for mapping in mappings:
            for pair in mapping_pairs(mapping):
                if pair in merged:
                    continue
                orphan = OrphanedMapping(
                    series_id=series_id,
                    episode=EpisodeRef.of(*pair),
                    mapping_id=mapping_id(mapping),
                    file_ids=mapping_file_ids(mapping),
                )
                if pair in existing_by_pair or orphan_key(orphan) in flagged:
                    orphans.append(orphan)
        orphans.sort(key=lambda o: (o.episode.pair, o.mapping_id))
        return orphans


def orphan_key(orphan: OrphanedMapping) -> str:
    """Attention-queue key for an orphaned mapping."""
    return f"{episode_key(orphan.series_id, *orphan.episode.pair)}@{orphan.mapping_id}"
