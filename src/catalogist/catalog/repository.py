"""Typed catalog access on top of a key-value store.

Every upsert is idempotent and reports whether anything changed. Writes
that must land together go through one store transaction.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel

from catalogist.catalog.models import (
    SPECIALS_SEASON,
    AttentionItem,
    AttentionKind,
    CanonicalEntity,
    EntityKind,
    ExpectedEpisode,
    ExternalIdentifierSet,
    FieldLock,
    FileMapping,
    MappingEnvelope,
    MediaFile,
    MultiPartMapping,
    SeriesPolicy,
    SpecialPlacementRule,
    UnmappedFile,
    UnmappedReason,
    episode_key,
    mapping_file_ids,
    mapping_id,
    mapping_pairs,
)
from catalogist.episodes.merge import LOCKABLE_EPISODE_FIELDS, MergeResult, orphan_key
from catalogist.errors import RecordNotFoundError
from catalogist.identity.resolver import CatalogSnapshot
from catalogist.parser.models import ParseContext
from catalogist.parser.tokens import normalize_provider
from catalogist.store.base import KeyValueStore

M = TypeVar("M", bound=BaseModel)

NS_ENTITIES = "entities"
NS_EXTERNAL_IDS = "external_ids"
NS_LOCKS = "locks"
NS_EXPECTED = "expected"
NS_FILES = "files"
NS_FILE_PATHS = "file_paths"
NS_MAPPINGS = "mappings"
NS_FILE_INDEX = "file_index"
NS_UNMAPPED = "unmapped"
NS_PLACEMENTS = "placements"
NS_POLICIES = "policies"
NS_ATTENTION = "attention"
NS_ARTWORK = "artwork"

# Lock field name prefix for provider identifiers on an entity
EXTERNAL_ID_FIELD = "external_ids."


@dataclass
class RefreshSummary:
    """What refresh_series changed."""

    series_id: str
    upserted: int = 0
    removed: int = 0
    attention_raised: int = 0
    attention_cleared: int = 0

    @property
    def changed(self) -> bool:
        """Check if the refresh changed anything."""
        return bool(
            self.upserted or self.removed or self.attention_raised or self.attention_cleared
        )


class CatalogRepository:
    """Read and write catalog records.

    Example:
        ```python
        repo = CatalogRepository(MemoryStore())
        series, created = repo.register_entity(candidate, {"tvdb": "81189"})
        repo.replace_file_mapping(file.id, mapping)
        ```
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # =========================================================================
    # Helpers
    # =========================================================================

    def _put_model(self, namespace: str, key: str, model: BaseModel) -> bool:
        return self.store.put(namespace, key, model.model_dump(mode="json"))

    def _get_model(self, namespace: str, key: str, model_cls: type[M]) -> M | None:
        data = self.store.get(namespace, key)
        if data is None:
            return None
        return model_cls.model_validate(data)

    def _scan_models(self, namespace: str, model_cls: type[M], prefix: str = "") -> list[M]:
        return [model_cls.model_validate(data) for _, data in self.store.scan(namespace, prefix)]

    # =========================================================================
    # Entities
    # =========================================================================

    def get_entity(self, entity_id: str) -> CanonicalEntity | None:
        """Get an entity by id."""
        return self._get_model(NS_ENTITIES, entity_id, CanonicalEntity)

    def require_entity(self, entity_id: str) -> CanonicalEntity:
        """Get an entity by id.

        Raises:
            RecordNotFoundError: If the entity does not exist.
        """
        entity = self.get_entity(entity_id)
        if entity is None:
            raise RecordNotFoundError(NS_ENTITIES, entity_id)
        return entity

    def list_entities(
        self, kind: EntityKind | None = None, library_id: str | None = None
    ) -> list[CanonicalEntity]:
        """List entities, optionally filtered, ordered by title and year."""
        entities = [
            e
            for e in self._scan_models(NS_ENTITIES, CanonicalEntity)
            if (kind is None or e.kind is kind)
            and (library_id is None or e.library_id == library_id)
        ]
        entities.sort(key=lambda e: (e.normalized_title, e.year or 0, e.id))
        return entities

    def save_entity(self, entity: CanonicalEntity) -> bool:
        """Upsert an entity."""
        return self._put_model(NS_ENTITIES, entity.id, entity)

    def set_date_ordered(self, series_id: str, date_ordered: bool = True) -> bool:
        """Mark a series as numbered by air date (or clear the mark).

        Files of a date-ordered series are matched to expected episodes by
        the air date in their name.

        Returns:
            True if the flag changed.

        Raises:
            RecordNotFoundError: If the series does not exist.
            ValueError: If the entity is not a series.
        """
        with self.store.transaction():
            entity = self.require_entity(series_id)
            if entity.kind is not EntityKind.SERIES:
                raise ValueError(f"{entity.display_title} is not a series")
            if entity.date_ordered == date_ordered:
                return False
            return self.save_entity(entity.model_copy(update={"date_ordered": date_ordered}))

    def find_entities(self, title: str) -> list[CanonicalEntity]:
        """Find entities by id, id prefix or case-insensitive title."""
        exact = self.get_entity(title)
        if exact is not None:
            return [exact]
        lowered = title.casefold()
        return [
            e
            for e in self.list_entities()
            if e.id.startswith(title) or e.title.casefold() == lowered
        ]

    def register_entity(
        self,
        candidate: CanonicalEntity,
        external_ids: dict[str, str] | None = None,
        policy_factory: Callable[[str], SeriesPolicy] | None = None,
    ) -> tuple[CanonicalEntity, bool]:
        """Create an entity unless an equivalent one appeared meanwhile.

        The collision check runs inside the store transaction, so two
        workers that both resolved the same new series end up with one
        record.

        Args:
            candidate: Entity to create.
            external_ids: Provider identifiers to attach.
            policy_factory: Builds the initial SeriesPolicy for a new series.

        Returns:
            Tuple of (entity, created). When an equivalent entity already
            exists it is returned with created=False.
        """
        external_ids = external_ids or {}
        with self.store.transaction():
            snapshot = self.snapshot(kind=candidate.kind, library_id=candidate.library_id)
            if external_ids:
                matches = snapshot.by_external_ids(
                    external_ids, candidate.kind, candidate.library_id
                )
                if matches:
                    return snapshot.entities[matches[0]], False
            else:
                for existing in snapshot.by_title(
                    candidate.normalized_title, candidate.kind, candidate.library_id
                ):
                    if existing.year == candidate.year:
                        return existing, False

            self.save_entity(candidate)
            if external_ids:
                self._put_model(
                    NS_EXTERNAL_IDS,
                    candidate.id,
                    ExternalIdentifierSet(entity_id=candidate.id, ids=external_ids),
                )
            if policy_factory is not None and candidate.kind is EntityKind.SERIES:
                self.save_policy(policy_factory(candidate.id))
            return candidate, True

    def snapshot(
        self, kind: EntityKind | None = None, library_id: str | None = None
    ) -> CatalogSnapshot:
        """Build a read view of identities for the resolver."""
        entities = self.list_entities(kind, library_id)
        ids = {e.id: self.get_external_ids(e.id).ids for e in entities}
        return CatalogSnapshot.build(entities, ids)

    # =========================================================================
    # External identifiers and field locks
    # =========================================================================

    def get_external_ids(self, entity_id: str) -> ExternalIdentifierSet:
        """Get an entity's identifier set (empty if none stored)."""
        found = self._get_model(NS_EXTERNAL_IDS, entity_id, ExternalIdentifierSet)
        return found or ExternalIdentifierSet(entity_id=entity_id)

    def merge_external_ids(self, entity_id: str, incoming: dict[str, str]) -> list[str]:
        """Apply identifiers from an automated source.

        Providers locked on the entity keep their current value.

        Returns:
            Providers whose value changed.
        """
        with self.store.transaction():
            locked = {
                name[len(EXTERNAL_ID_FIELD) :]
                for name in self.locked_fields(entity_id)
                if name.startswith(EXTERNAL_ID_FIELD)
            }
            merged, changed = self.get_external_ids(entity_id).merged(incoming, locked)
            if changed:
                self._put_model(NS_EXTERNAL_IDS, entity_id, merged)
            return changed

    def set_external_id(self, entity_id: str, provider: str, value: str) -> bool:
        """Set an identifier as a user edit and lock it."""
        provider = normalize_provider(provider)
        with self.store.transaction():
            current = self.get_external_ids(entity_id)
            ids = dict(current.ids)
            ids[provider] = value
            changed = self._put_model(
                NS_EXTERNAL_IDS, entity_id, ExternalIdentifierSet(entity_id=entity_id, ids=ids)
            )
            changed |= self.lock_field(entity_id, EXTERNAL_ID_FIELD + provider)
            return changed

    def lock_field(self, entity_key: str, field: str) -> bool:
        """Lock a field against automated overwrites.

        Args:
            entity_key: Entity id, or ``<series_id>/S01E01`` for an episode.
            field: Field name (e.g. "title", "external_ids.tvdb").

        Returns:
            True if the lock was added, False if it already existed.
        """
        key = f"{entity_key}#{field}"
        if self.store.get(NS_LOCKS, key) is not None:
            return False
        return self._put_model(NS_LOCKS, key, FieldLock(entity_key=entity_key, field=field))

    def unlock_field(self, entity_key: str, field: str) -> bool:
        """Remove a field lock. Returns True if a lock was removed."""
        return self.store.delete(NS_LOCKS, f"{entity_key}#{field}")

    def locked_fields(self, entity_key: str) -> set[str]:
        """Locked field names of one entity or episode."""
        return {lock.field for lock in self._scan_models(NS_LOCKS, FieldLock, f"{entity_key}#")}

    def episode_locks(self, series_id: str) -> dict[str, set[str]]:
        """Locked fields per episode key of a series."""
        locks: dict[str, set[str]] = {}
        for lock in self._scan_models(NS_LOCKS, FieldLock, f"{series_id}/"):
            locks.setdefault(lock.entity_key, set()).add(lock.field)
        return locks

    # =========================================================================
    # Expected episodes
    # =========================================================================

    def expected_episodes(self, series_id: str) -> list[ExpectedEpisode]:
        """Expected episodes of a series in (season, episode) order."""
        episodes = self._scan_models(NS_EXPECTED, ExpectedEpisode, f"{series_id}/")
        episodes.sort(key=lambda ep: ep.pair)
        return episodes

    def get_expected(
        self, series_id: str, season_number: int, episode_number: int
    ) -> ExpectedEpisode | None:
        """Get one expected episode."""
        key = episode_key(series_id, season_number, episode_number)
        return self._get_model(NS_EXPECTED, key, ExpectedEpisode)

    def upsert_expected(self, episode: ExpectedEpisode) -> bool:
        """Upsert an expected episode row."""
        return self._put_model(NS_EXPECTED, episode.key, episode)

    def edit_episode(
        self, series_id: str, season_number: int, episode_number: int, **changes: Any
    ) -> ExpectedEpisode:
        """Apply a user edit to an expected episode and lock the edited fields.

        Raises:
            RecordNotFoundError: If the episode is not expected.
            ValueError: If a field cannot be edited.
        """
        unknown = set(changes) - set(LOCKABLE_EPISODE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot edit episode field(s): {', '.join(sorted(unknown))}")
        key = episode_key(series_id, season_number, episode_number)
        with self.store.transaction():
            current = self._get_model(NS_EXPECTED, key, ExpectedEpisode)
            if current is None:
                raise RecordNotFoundError(NS_EXPECTED, key)
            edited = ExpectedEpisode.model_validate({**current.model_dump(), **changes})
            self.upsert_expected(edited)
            for name in changes:
                self.lock_field(key, name)
            return edited

    def refresh_series(self, result: MergeResult) -> RefreshSummary:
        """Apply a merge result atomically.

        Upserts the new expected rows, deletes removed ones, and raises or
        clears provider-mismatch and orphaned-mapping attention items.
        Applying the same result twice changes nothing the second time.
        A result without a canonical provider leaves the series untouched.
        """
        series_id = result.series_id
        summary = RefreshSummary(series_id=series_id)
        if not result.has_canonical:
            return summary

        with self.store.transaction():
            for ep in result.episodes:
                if self.upsert_expected(ep):
                    summary.upserted += 1
            for ref in result.removed:
                key = episode_key(series_id, ref.season_number, ref.episode_number)
                if self.store.delete(NS_EXPECTED, key):
                    summary.removed += 1

            desired: list[AttentionItem] = []
            for mismatch in result.mismatches:
                desired.append(
                    AttentionItem(
                        kind=AttentionKind.PROVIDER_MISMATCH,
                        key=f"{series_id}/{mismatch.other_provider}",
                        series_id=series_id,
                        detail=mismatch.detail,
                        payload=mismatch.model_dump(mode="json"),
                    )
                )
            for orphan in result.orphans:
                desired.append(
                    AttentionItem(
                        kind=AttentionKind.ORPHANED_MAPPING,
                        key=orphan_key(orphan),
                        series_id=series_id,
                        detail=orphan.detail,
                        payload=orphan.model_dump(mode="json"),
                    )
                )

            wanted = {item.store_key for item in desired}
            for item in desired:
                if self.raise_attention(item):
                    summary.attention_raised += 1
            for kind in (AttentionKind.PROVIDER_MISMATCH, AttentionKind.ORPHANED_MAPPING):
                for item in self.attention_items(kind=kind, series_id=series_id):
                    if item.store_key not in wanted and self.resolve_attention(item.store_key):
                        summary.attention_cleared += 1

            if result.image_base_paths:
                self.store.put(NS_ARTWORK, series_id, {"image_base_paths": result.image_base_paths})

        return summary

    def orphan_keys(self, series_id: str) -> set[str]:
        """Keys of the orphaned-mapping items raised for a series."""
        return {
            item.key
            for item in self.attention_items(AttentionKind.ORPHANED_MAPPING, series_id=series_id)
        }

    def parse_context(self, series_id: str) -> ParseContext:
        """Build parser context from what is known about a series."""
        counts: dict[int, int] = {}
        for ep in self.expected_episodes(series_id):
            if ep.season_number != SPECIALS_SEASON:
                counts[ep.season_number] = counts.get(ep.season_number, 0) + 1
        entity = self.get_entity(series_id)
        return ParseContext(
            episode_counts=counts,
            date_ordered=bool(entity and entity.date_ordered),
        )

    # =========================================================================
    # Media files
    # =========================================================================

    def get_file(self, file_id: str) -> MediaFile | None:
        """Get a media file by id."""
        return self._get_model(NS_FILES, file_id, MediaFile)

    def file_by_path(self, path: str) -> MediaFile | None:
        """Get a media file by its path."""
        index = self.store.get(NS_FILE_PATHS, path)
        if index is None:
            return None
        return self.get_file(index["file_id"])

    def upsert_file(self, media_file: MediaFile) -> tuple[MediaFile, bool]:
        """Record an observed file, keeping the id of a known path.

        Returns:
            Tuple of (stored file, changed).
        """
        with self.store.transaction():
            existing = self.file_by_path(media_file.path)
            if existing is not None and existing.id != media_file.id:
                media_file = MediaFile(id=existing.id, **media_file.model_dump(exclude={"id"}))
            changed = self._put_model(NS_FILES, media_file.id, media_file)
            changed |= self.store.put(NS_FILE_PATHS, media_file.path, {"file_id": media_file.id})
            return media_file, changed

    def list_files(self) -> list[MediaFile]:
        """All known media files, ordered by path."""
        return sorted(self._scan_models(NS_FILES, MediaFile), key=lambda f: f.path)

    def remove_file(self, file_id: str) -> bool:
        """Forget a file that disappeared from disk, with its mapping share."""
        with self.store.transaction():
            media_file = self.get_file(file_id)
            changed = self._detach(file_id)
            changed |= self.store.delete(NS_UNMAPPED, file_id)
            changed |= self.store.delete(NS_FILES, file_id)
            if media_file is not None:
                changed |= self.store.delete(NS_FILE_PATHS, media_file.path)
            return changed

    # =========================================================================
    # File mappings
    # =========================================================================

    def get_mapping(self, key: str) -> FileMapping | None:
        """Get a mapping by its mapping id."""
        envelope = self._get_model(NS_MAPPINGS, key, MappingEnvelope)
        return envelope.mapping if envelope else None

    def mapping_for_file(self, file_id: str) -> FileMapping | None:
        """Get the one mapping a file belongs to, if any."""
        index = self.store.get(NS_FILE_INDEX, file_id)
        if index is None:
            return None
        return self.get_mapping(index["mapping_id"])

    def all_mappings(self) -> list[FileMapping]:
        """Every stored mapping."""
        return [env.mapping for env in self._scan_models(NS_MAPPINGS, MappingEnvelope)]

    def mappings_for_owner(self, owner_id: str) -> list[FileMapping]:
        """Mappings owned by a series or movie."""
        return [m for m in self.all_mappings() if m.owner_id == owner_id]

    def mapped_pairs(self, series_id: str) -> set[tuple[int, int]]:
        """(season, episode) pairs with a file mapping."""
        pairs: set[tuple[int, int]] = set()
        for mapping in self.mappings_for_owner(series_id):
            pairs.update(mapping_pairs(mapping))
        return pairs

    def _detach(self, file_id: str, keep: str | None = None) -> bool:
        # Remove the file from whatever mapping holds it, unless that is `keep`
        index = self.store.get(NS_FILE_INDEX, file_id)
        if index is None or index["mapping_id"] == keep:
            return False
        old_id = index["mapping_id"]
        old = self.get_mapping(old_id)
        if isinstance(old, MultiPartMapping):
            remaining = old.without_file(file_id)
            if remaining.parts:
                self._put_model(NS_MAPPINGS, old_id, MappingEnvelope(mapping=remaining))
            else:
                self.store.delete(NS_MAPPINGS, old_id)
        elif old is not None:
            self.store.delete(NS_MAPPINGS, old_id)
        self.store.delete(NS_FILE_INDEX, file_id)
        return True

    def replace_file_mapping(self, file_id: str, mapping: FileMapping) -> bool:
        """Make `mapping` the one mapping that references the file.

        Old mapping rows for the file are removed and the new one inserted
        in a single transaction. A multi-part mapping joins the stored
        mapping for the same target, so parts arriving one by one
        accumulate. Repeating the call is a no-op.

        Args:
            file_id: File being (re-)identified.
            mapping: New mapping; must reference file_id.

        Returns:
            True if anything changed.

        Raises:
            ValueError: If the mapping does not reference the file.
        """
        if file_id not in mapping_file_ids(mapping):
            raise ValueError(f"Mapping {mapping_id(mapping)} does not reference file {file_id}")

        new_id = mapping_id(mapping)
        with self.store.transaction():
            if isinstance(mapping, MultiPartMapping):
                stored = self.get_mapping(new_id)
                if isinstance(stored, MultiPartMapping):
                    joined = stored
                    for part in mapping.parts:
                        joined = joined.with_part(part.file_id, part.part_index)
                    mapping = joined.model_copy(
                        update={"confidence": mapping.confidence, "rule_name": mapping.rule_name}
                    )

            changed = False
            for fid in mapping_file_ids(mapping):
                changed |= self._detach(fid, keep=new_id)
                changed |= self.store.put(NS_FILE_INDEX, fid, {"mapping_id": new_id})
                changed |= self.store.delete(NS_UNMAPPED, fid)
            changed |= self._put_model(NS_MAPPINGS, new_id, MappingEnvelope(mapping=mapping))
            return changed

    def mark_unmapped(self, record: UnmappedFile) -> bool:
        """Record that a file could not be mapped, dropping any old mapping."""
        with self.store.transaction():
            changed = self._detach(record.file_id)
            changed |= self._put_model(NS_UNMAPPED, record.file_id, record)
            return changed

    def unmapped_files(self, reason: UnmappedReason | None = None) -> list[UnmappedFile]:
        """Files recorded as unmapped, ordered by path."""
        records = [
            r
            for r in self._scan_models(NS_UNMAPPED, UnmappedFile)
            if reason is None or r.reason is reason
        ]
        records.sort(key=lambda r: r.path)
        return records

    # =========================================================================
    # Specials placement, policies
    # =========================================================================

    def set_placement(self, rule: SpecialPlacementRule) -> bool:
        """Store a special's placement rule."""
        return self._put_model(NS_PLACEMENTS, rule.key, rule)

    def remove_placement(self, series_id: str, special_episode: int) -> bool:
        """Delete a special's placement rule."""
        return self.store.delete(
            NS_PLACEMENTS, episode_key(series_id, SPECIALS_SEASON, special_episode)
        )

    def placement_rules(self, series_id: str) -> list[SpecialPlacementRule]:
        """Placement rules of a series."""
        return self._scan_models(NS_PLACEMENTS, SpecialPlacementRule, f"{series_id}/")

    def get_policy(self, series_id: str) -> SeriesPolicy | None:
        """Get a series' provider policy."""
        return self._get_model(NS_POLICIES, series_id, SeriesPolicy)

    def save_policy(self, policy: SeriesPolicy) -> bool:
        """Upsert a series' provider policy."""
        return self._put_model(NS_POLICIES, policy.series_id, policy)

    def ensure_policy(
        self, series_id: str, factory: Callable[[str], SeriesPolicy]
    ) -> SeriesPolicy:
        """Get the stored policy, creating it from factory the first time."""
        with self.store.transaction():
            policy = self.get_policy(series_id)
            if policy is None:
                policy = factory(series_id)
                self.save_policy(policy)
            return policy

    # =========================================================================
    # Attention queue
    # =========================================================================

    def raise_attention(self, item: AttentionItem) -> bool:
        """Add or update an attention item.

        Re-raising an identical item keeps its original timestamp and
        reports no change.
        """
        with self.store.transaction():
            existing = self._get_model(NS_ATTENTION, item.store_key, AttentionItem)
            if existing is not None:
                item = item.model_copy(update={"raised_at": existing.raised_at})
            return self._put_model(NS_ATTENTION, item.store_key, item)

    def resolve_attention(self, store_key: str) -> bool:
        """Remove an attention item. Returns True if it existed."""
        return self.store.delete(NS_ATTENTION, store_key)

    def attention_items(
        self, kind: AttentionKind | None = None, series_id: str | None = None
    ) -> list[AttentionItem]:
        """List attention items, oldest first."""
        prefix = f"{kind.value}/" if kind else ""
        items = [
            item
            for item in self._scan_models(NS_ATTENTION, AttentionItem, prefix)
            if series_id is None or item.series_id == series_id
        ]
        items.sort(key=lambda item: (item.raised_at, item.store_key))
        return items
