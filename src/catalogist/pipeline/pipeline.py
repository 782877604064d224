"""Identification pipeline.

Runs "identify one file" and "refresh one series" units across a thread
pool. Each unit ends in a single atomic store write followed by exactly one
event. Units for the same series are serialized through SeriesLocks, but
provider fetches happen outside those locks.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import TypeVar

from catalogist.catalog.models import (
    DEFAULT_LIBRARY_ID,
    AttentionItem,
    AttentionKind,
    CanonicalEntity,
    LibraryKind,
    MediaFile,
    SeriesPolicy,
    UnmappedFile,
    UnmappedReason,
    mapping_id,
)
from catalogist.catalog.repository import CatalogRepository
from catalogist.config import AppConfig, get_config, seed_policy
from catalogist.episodes.merge import EpisodeListManager
from catalogist.episodes.provider import EpisodeListProvider, ProviderEpisodeList
from catalogist.errors import StoreError, log_error
from catalogist.identity.resolver import (
    Ambiguous,
    CatalogSnapshot,
    IdentityResolver,
    ResolvedExisting,
    ResolvedNew,
)
from catalogist.mapping.model import FileMappingModel
from catalogist.parser.tokens import strip_extension
from catalogist.pipeline.events import EventSink, FileIdentified, PipelineEvent, SeriesRefreshed
from catalogist.pipeline.locks import SeriesLocks
from catalogist.pipeline.observed import ObservedFile
from catalogist.statistics import ScanStatistics

T = TypeVar("T")
R = TypeVar("R")

# Folder names that sit between a series directory and its files
RE_SEASON_FOLDER = re.compile(
    r"^(?:season[\s._-]*\d{1,4}|series[\s._-]*\d{1,3}|s\d{1,4}|specials?|extras?)$",
    re.IGNORECASE,
)


def entity_directory(
    path: str,
    library_root: str | None = None,
    library_kind: LibraryKind = LibraryKind.TV_SHOWS,
) -> str:
    """Find the series (or movie) directory a file belongs to.

    Under a library root the first path component below the root is the
    entity directory. Without a root, the file's parent is used, skipping a
    season folder such as ``Season 01`` or ``Specials``.

    A TV file lying directly in the library root has no entity directory
    (an empty string); a movie file there stands for itself.
    """
    pure = PurePath(path.replace("\\", "/"))
    if library_root:
        root = PurePath(library_root.replace("\\", "/"))
        try:
            relative = pure.relative_to(root)
        except ValueError:
            relative = None
        if relative is not None:
            if len(relative.parts) > 1:
                return str(root / relative.parts[0])
            if library_kind is LibraryKind.MOVIES:
                return str(root / strip_extension(pure.name))
            return ""

    parent = pure.parent
    if RE_SEASON_FOLDER.match(parent.name) and parent.parent.name:
        return str(parent.parent)
    return str(parent)


# Unmapped outcomes that can change once a series has expected episodes
RETRY_REASONS = frozenset(
    {
        UnmappedReason.NO_MATCH,
        UnmappedReason.UNKNOWN_AIR_DATE,
        UnmappedReason.AMBIGUOUS_AIR_DATE,
    }
)


def ambiguity_key(file_id: str) -> str:
    """Attention-queue store key for a file with an ambiguous identity."""
    return f"{AttentionKind.AMBIGUOUS.value}/{file_id}"


@dataclass
class ScanResult:
    """Outcome of a library-wide run."""

    identified: list[FileIdentified] = field(default_factory=list)
    refreshed: list[SeriesRefreshed] = field(default_factory=list)
    pruned: int = 0
    failed: int = 0
    cancelled: bool = False

    @property
    def mapped_count(self) -> int:
        return sum(1 for event in self.identified if event.is_mapped)

    @property
    def unmapped_count(self) -> int:
        return len(self.identified) - self.mapped_count


class IdentificationPipeline:
    """Identify files and refresh series concurrently.

    Example:
        ```python
        pipeline = IdentificationPipeline(repository, providers=[tvdb_source])
        result = pipeline.scan(walk_library(Path("/media/tv")))
        ```
    """

    def __init__(
        self,
        repository: CatalogRepository,
        providers: Sequence[EpisodeListProvider] = (),
        mapping_model: FileMappingModel | None = None,
        resolver: IdentityResolver | None = None,
        merger: EpisodeListManager | None = None,
        config: AppConfig | None = None,
        sink: EventSink | None = None,
        library_id: str = DEFAULT_LIBRARY_ID,
        library_kind: LibraryKind = LibraryKind.TV_SHOWS,
        library_root: str | None = None,
        workers: int | None = None,
        stats: ScanStatistics | None = None,
        progress_callback: Callable[[str, int, int], None] | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            repository: Catalog repository over the store.
            providers: Episode list providers, in no particular order.
            mapping_model: File mapping model (built from config if None).
            resolver: Identity resolver.
            merger: Episode list manager.
            config: Application config (global config if None).
            sink: Receives one event per completed unit.
            library_id: Library the files belong to.
            library_kind: TV or movie library.
            library_root: Root directory of the library, if known.
            workers: Thread pool size (config scan.workers if None).
            stats: Statistics collector.
            progress_callback: Optional callback for progress updates.
                Signature: (stage: str, current: int, total: int)
        """
        self.config = config or get_config()
        self.repository = repository
        self.providers = list(providers)
        self.mapping_model = mapping_model or FileMappingModel(
            min_confidence=self.config.parser.min_confidence
        )
        self.resolver = resolver or IdentityResolver()
        self.merger = merger or EpisodeListManager()
        self.library_id = library_id
        self.library_kind = library_kind
        self.library_root = library_root
        self.workers = workers or self.config.scan.workers
        self.stats = stats or ScanStatistics()
        self.locks = SeriesLocks()
        self.cancel_event = threading.Event()
        # Identity view shared by the units of one scan
        self._snapshot: CatalogSnapshot | None = None
        self._snapshot_lock = threading.Lock()
        self._sink = sink or (lambda event: None)
        self._progress = progress_callback or (lambda *args: None)

    def cancel(self) -> None:
        """Stop a running scan between units. In-flight units finish."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def _policy(self, series_id: str) -> SeriesPolicy:
        return seed_policy(series_id, self.config)

    def _emit(self, event: PipelineEvent) -> None:
        try:
            self._sink(event)
        except Exception as e:
            log_error(e, f"Event sink failed for {type(event).__name__}")

    # =========================================================================
    # Identify one file
    # =========================================================================

    def identify_file(self, observed: ObservedFile) -> FileIdentified | None:
        """Identify one file and record the outcome.

        Returns:
            The emitted event, or None if the pipeline was cancelled before
            the unit started or the unit failed (the error is logged).
        """
        if self.cancelled:
            return None
        try:
            event = self._identify_file(observed)
        except StoreError as e:
            log_error(e, f"Store error identifying: {observed.path}")
            self.stats.record_failure()
            return None
        except Exception as e:
            log_error(e, f"Unexpected error identifying: {observed.path}")
            self.stats.record_failure()
            return None
        self._emit(event)
        return event

    def _identity_snapshot(self) -> CatalogSnapshot:
        with self._snapshot_lock:
            if self._snapshot is not None:
                return self._snapshot
        return self.repository.snapshot(
            kind=self.library_kind.entity_kind, library_id=self.library_id
        )

    def _remember_entity(self, entity: CanonicalEntity, external_ids: dict[str, str]) -> None:
        with self._snapshot_lock:
            if self._snapshot is not None:
                self._snapshot = self._snapshot.with_entity(entity, external_ids)

    def _identify_file(self, observed: ObservedFile) -> FileIdentified:
        repo = self.repository
        self.stats.record_file()
        media_file, _ = repo.upsert_file(observed.to_media_file())

        kind = self.library_kind.entity_kind
        directory = entity_directory(media_file.path, self.library_root, self.library_kind)
        first_parse = self.mapping_model.parse(media_file.path)
        resolution = self.resolver.resolve(
            directory,
            first_parse,
            self._identity_snapshot(),
            kind=kind,
            library_id=self.library_id,
        )

        if isinstance(resolution, Ambiguous):
            return self._record_ambiguous(media_file, resolution)

        if isinstance(resolution, ResolvedNew):
            entity, created = repo.register_entity(
                resolution.candidate,
                resolution.external_ids,
                policy_factory=self._policy,
            )
            if created:
                self.stats.record_series_created()
                self._remember_entity(entity, resolution.external_ids)
            owner_id = entity.id
        else:
            owner_id = resolution.entity_id

        with self.locks.hold(owner_id):
            decision = self.mapping_model.identify(
                media_file,
                ResolvedExisting(owner_id),
                repo.parse_context(owner_id),
                repo.expected_episodes(owner_id),
                self.library_kind,
            )
            outcome = decision.outcome
            with repo.store.transaction():
                if isinstance(outcome, UnmappedFile):
                    changed = repo.mark_unmapped(outcome)
                else:
                    changed = repo.replace_file_mapping(media_file.id, outcome)
                changed |= repo.resolve_attention(ambiguity_key(media_file.id))

        if isinstance(outcome, UnmappedFile):
            self.stats.record_unmapped(outcome.reason.value)
            return FileIdentified(
                file_id=media_file.id,
                path=media_file.path,
                owner_id=owner_id,
                unmapped_reason=outcome.reason,
                changed=changed,
            )

        self.stats.record_mapped(changed)
        return FileIdentified(
            file_id=media_file.id,
            path=media_file.path,
            owner_id=owner_id,
            mapping_id=mapping_id(outcome),
            changed=changed,
        )

    def _record_ambiguous(self, media_file: MediaFile, resolution: Ambiguous) -> FileIdentified:
        repo = self.repository
        unmapped = self.mapping_model.identify(media_file, resolution).outcome
        if not isinstance(unmapped, UnmappedFile):
            raise ValueError(f"Ambiguous file {media_file.path} was mapped")
        item = AttentionItem(
            kind=AttentionKind.AMBIGUOUS,
            key=media_file.id,
            detail=f"{media_file.path}: {resolution.detail}",
            payload={
                "path": media_file.path,
                "title": resolution.title,
                "reason": resolution.reason,
                "candidates": list(resolution.candidates),
            },
        )
        with repo.store.transaction():
            changed = repo.mark_unmapped(unmapped)
            changed |= repo.raise_attention(item)

        self.stats.record_unmapped(UnmappedReason.AMBIGUOUS_IDENTITY.value)
        return FileIdentified(
            file_id=media_file.id,
            path=media_file.path,
            unmapped_reason=UnmappedReason.AMBIGUOUS_IDENTITY,
            changed=changed,
        )

    # =========================================================================
    # Refresh one series
    # =========================================================================

    def refresh_series(self, series_id: str) -> SeriesRefreshed | None:
        """Fetch provider lists for a series and apply the merge.

        Returns:
            The emitted event, or None if cancelled or failed.
        """
        if self.cancelled:
            return None
        try:
            event = self._refresh_series(series_id)
        except StoreError as e:
            log_error(e, f"Store error refreshing series: {series_id}")
            self.stats.record_failure()
            return None
        except Exception as e:
            log_error(e, f"Unexpected error refreshing series: {series_id}")
            self.stats.record_failure()
            return None
        self._emit(event)
        return event

    def _fetch_lists(
        self, series_id: str, external_ids: dict[str, str]
    ) -> list[ProviderEpisodeList]:
        lists: list[ProviderEpisodeList] = []
        for provider in self.providers:
            try:
                lists.append(provider.fetch_episodes(series_id, external_ids))
            except Exception as e:
                # A failing provider is treated as having nothing for the series
                log_error(e, f"Provider {provider.name} failed for series: {series_id}")
        return lists

    def _refresh_series(self, series_id: str) -> SeriesRefreshed:
        repo = self.repository
        repo.require_entity(series_id)
        policy = repo.ensure_policy(series_id, self._policy)
        provider_lists = self._fetch_lists(series_id, repo.get_external_ids(series_id).ids)

        with self.locks.hold(series_id):
            result = self.merger.merge(
                series_id,
                provider_lists,
                policy,
                existing=repo.expected_episodes(series_id),
                locks=repo.episode_locks(series_id),
                mappings=repo.mappings_for_owner(series_id),
                flagged=repo.orphan_keys(series_id),
            )
            summary = repo.refresh_series(result)

        self.stats.record_refresh(fetches=len(provider_lists))
        return SeriesRefreshed(
            series_id=series_id,
            canonical_provider=result.canonical_provider,
            upserted=summary.upserted,
            removed=summary.removed,
            attention_raised=summary.attention_raised,
            attention_cleared=summary.attention_cleared,
        )

    # =========================================================================
    # Library-wide runs
    # =========================================================================

    def _run(self, stage: str, func: Callable[[T], R | None], items: Sequence[T]) -> list[R]:
        results: list[R] = []
        total = len(items)
        done = 0
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = [executor.submit(func, item) for item in items]
            for future in as_completed(futures):
                done += 1
                self._progress(stage, done, total)
                result = future.result()
                if result is not None:
                    results.append(result)
        return results

    def scan(self, files: Iterable[ObservedFile], refresh: bool = True) -> ScanResult:
        """Identify every file, then refresh the series they landed in.

        Files left unmapped for want of season sizes or air dates are
        identified once more after their series has been refreshed.

        Args:
            files: Observed files of the library.
            refresh: Refresh touched series from the providers afterwards.

        Returns:
            ScanResult with the events of all completed units.
        """
        items = list(files)
        failed_before = self.stats.units_failed
        result = ScanResult()

        with self._snapshot_lock:
            self._snapshot = self.repository.snapshot(
                kind=self.library_kind.entity_kind, library_id=self.library_id
            )
        try:
            self.stats.start_phase("Identifying files")
            identified = self._run("Identifying files", self.identify_file, items)
            self.stats.end_phase(item_count=len(identified))

            if refresh and self.providers and not self.cancelled:
                owners = sorted({e.owner_id for e in identified if e.owner_id})
                if self.library_kind is LibraryKind.TV_SHOWS and owners:
                    result.refreshed = self.refresh_all(owners)
                    identified = self._retry_unmapped(items, identified, result.refreshed)
        finally:
            with self._snapshot_lock:
                self._snapshot = None

        result.identified = sorted(identified, key=lambda e: e.path)
        result.failed = self.stats.units_failed - failed_before
        result.cancelled = self.cancelled
        return result

    def _retry_unmapped(
        self,
        items: Sequence[ObservedFile],
        identified: list[FileIdentified],
        refreshed: Sequence[SeriesRefreshed],
    ) -> list[FileIdentified]:
        changed_series = {e.series_id for e in refreshed if e.upserted or e.removed}
        retry = {
            e.path: e
            for e in identified
            if e.owner_id in changed_series and e.unmapped_reason in RETRY_REASONS
        }
        if not retry or self.cancelled:
            return identified

        def again(observed: ObservedFile) -> FileIdentified | None:
            if self.cancelled:
                return None
            reason = retry[observed.path].unmapped_reason
            if reason is not None:
                self.stats.record_retry(reason.value)
            return self.identify_file(observed)

        self.stats.start_phase("Re-identifying files")
        redone = self._run("Re-identifying files", again, [f for f in items if f.path in retry])
        self.stats.end_phase(item_count=len(redone))

        by_path = {e.path: e for e in redone}
        return [by_path.get(e.path, e) for e in identified]

    def refresh_all(self, series_ids: Sequence[str] | None = None) -> list[SeriesRefreshed]:
        """Refresh several series (every series in the library if None)."""
        if series_ids is None:
            series_ids = [
                e.id
                for e in self.repository.list_entities(
                    self.library_kind.entity_kind, self.library_id
                )
            ]
        self.stats.start_phase("Refreshing series")
        refreshed = self._run("Refreshing series", self.refresh_series, list(series_ids))
        self.stats.end_phase(item_count=len(refreshed))
        return sorted(refreshed, key=lambda e: e.series_id)

    def prune_missing(self, observed: Iterable[ObservedFile]) -> int:
        """Forget stored files under the library root that were not observed.

        Only files below ``library_root`` are considered, so other
        libraries sharing the store are left alone.

        Returns:
            Number of files removed.
        """
        if not self.library_root:
            return 0
        seen = {f.path for f in observed}
        root = PurePath(self.library_root.replace("\\", "/"))
        removed = 0
        for media_file in self.repository.list_files():
            path = PurePath(media_file.path.replace("\\", "/"))
            if media_file.path in seen or not path.is_relative_to(root):
                continue
            if self.repository.remove_file(media_file.id):
                self.repository.resolve_attention(ambiguity_key(media_file.id))
                removed += 1
        return removed
