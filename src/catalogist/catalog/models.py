"""Data models for the canonical catalog."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from enum import Enum
from typing import Annotated, Any, Literal, assert_never

from pydantic import BaseModel, ConfigDict, Field, model_validator

from catalogist.models.mixins import AirDateMixin, EpisodeCodeMixin, format_episode_code
from catalogist.parser.tokens import normalize_provider, normalize_title

DEFAULT_LIBRARY_ID = "default"
SPECIALS_SEASON = 0


def new_entity_id() -> str:
    """Generate a new opaque entity identifier."""
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


def episode_key(series_id: str, season_number: int, episode_number: int) -> str:
    """Build the store key for an episode-addressed record."""
    return f"{series_id}/{format_episode_code(season_number, episode_number)}"


class EntityKind(str, Enum):
    """Kind of canonical catalog entity."""

    MOVIE = "movie"
    SERIES = "series"
    SEASON = "season"
    EPISODE = "episode"


class LibraryKind(str, Enum):
    """Library content type."""

    MOVIES = "movies"
    TV_SHOWS = "tv_shows"

    @property
    def entity_kind(self) -> EntityKind:
        """Top-level entity kind that files in this library resolve to."""
        return EntityKind.MOVIE if self is LibraryKind.MOVIES else EntityKind.SERIES


class OrderingMode(str, Enum):
    """Which provider-supplied numbering a series uses."""

    AIRED = "aired"
    DVD = "dvd"
    ABSOLUTE = "absolute"


class PlacementMode(str, Enum):
    """Where a special appears in the viewing order."""

    SPECIALS_ONLY = "specials_only"
    BEFORE = "before"
    AFTER = "after"


class UnmappedReason(str, Enum):
    """Why a file was left without a mapping."""

    NO_MATCH = "no_match"
    AMBIGUOUS_IDENTITY = "ambiguous_identity"
    LOW_CONFIDENCE = "low_confidence"
    UNKNOWN_AIR_DATE = "unknown_air_date"
    AMBIGUOUS_AIR_DATE = "ambiguous_air_date"


class AttentionKind(str, Enum):
    """Kinds of entries in the needs-attention queue."""

    AMBIGUOUS = "ambiguous"
    ORPHANED_MAPPING = "orphaned_mapping"
    PROVIDER_MISMATCH = "provider_mismatch"


# ============================================================================
# Entities
# ============================================================================


class CanonicalEntity(BaseModel):
    """A movie, series, season or episode in the catalog."""

    id: str = Field(default_factory=new_entity_id, frozen=True)
    kind: EntityKind
    title: str
    normalized_title: str = ""
    year: int | None = None
    library_id: str = DEFAULT_LIBRARY_ID
    parent_id: str | None = None
    season_number: int | None = None
    episode_number: int | None = None
    date_ordered: bool = False
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _fill_normalized_title(self) -> CanonicalEntity:
        if not self.normalized_title:
            self.normalized_title = normalize_title(self.title)
        return self

    @property
    def identity_key(self) -> tuple[str, str, int | None]:
        """(library, normalized title, year) used for title-based identity."""
        return (self.library_id, self.normalized_title, self.year)

    @property
    def display_title(self) -> str:
        """Get the title with year for display."""
        if self.year:
            return f"{self.title} ({self.year})"
        return self.title


class ExternalIdentifierSet(BaseModel):
    """Provider name to provider-side identifier for one entity."""

    entity_id: str
    ids: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _normalize_providers(self) -> ExternalIdentifierSet:
        self.ids = {normalize_provider(k): str(v) for k, v in self.ids.items() if v}
        return self

    def intersects(self, other: dict[str, str]) -> bool:
        """Check if any provider maps to the same identifier in both sets."""
        for provider, value in other.items():
            if self.ids.get(normalize_provider(provider)) == str(value):
                return True
        return False

    def merged(
        self, incoming: dict[str, str], locked_providers: set[str] | None = None
    ) -> tuple[ExternalIdentifierSet, list[str]]:
        """Merge incoming identifiers, skipping locked providers.

        Args:
            incoming: Provider to identifier mapping to apply.
            locked_providers: Providers whose current value must be kept.

        Returns:
            Tuple of (new set, providers whose value changed).
        """
        locked = {normalize_provider(p) for p in (locked_providers or set())}
        ids = dict(self.ids)
        changed: list[str] = []
        for provider, value in incoming.items():
            provider = normalize_provider(provider)
            if not value or provider in locked:
                continue
            if ids.get(provider) != str(value):
                ids[provider] = str(value)
                changed.append(provider)
        return ExternalIdentifierSet(entity_id=self.entity_id, ids=ids), changed


class FieldLock(BaseModel):
    """A user override that automated merges must not overwrite."""

    entity_key: str
    field: str
    locked_at: datetime = Field(default_factory=_utcnow)


class SeriesPolicy(BaseModel):
    """Per-series provider precedence and ordering."""

    series_id: str
    provider_precedence: list[str] = Field(default_factory=lambda: ["tvdb", "tmdb"])
    ordering: OrderingMode = OrderingMode.AIRED

    @model_validator(mode="after")
    def _normalize_precedence(self) -> SeriesPolicy:
        seen: list[str] = []
        for provider in self.provider_precedence:
            provider = normalize_provider(provider)
            if provider not in seen:
                seen.append(provider)
        self.provider_precedence = seen
        return self


class ExpectedEpisode(EpisodeCodeMixin, AirDateMixin, BaseModel):
    """A provider's assertion that an episode exists."""

    series_id: str
    season_number: int
    episode_number: int
    title: str | None = None
    air_date: date | None = None
    overview: str = ""
    source_provider: str = ""
    provider_episode_id: str | None = None

    @property
    def key(self) -> str:
        """Store key for this row."""
        return episode_key(self.series_id, self.season_number, self.episode_number)

    @property
    def display_title(self) -> str:
        """Get the episode code with title for display."""
        if self.title:
            return f"{self.episode_code} - {self.title}"
        return self.episode_code


# ============================================================================
# Files and mappings
# ============================================================================


class MediaFile(BaseModel):
    """A physical file as reported by the scanning collaborator."""

    id: str = Field(default_factory=new_entity_id, frozen=True)
    path: str
    size_bytes: int = 0
    mtime_ts: int = 0
    container: str | None = None
    duration_ms: int | None = None
    streams: list[dict[str, Any]] = Field(default_factory=list)
    quick_hash: str | None = None

    def needs_revalidation(self, size_bytes: int, mtime_ts: int, quick_hash: str | None) -> bool:
        """Check whether an observation no longer matches this record."""
        if self.size_bytes != size_bytes or self.mtime_ts != mtime_ts:
            return True
        return quick_hash is not None and quick_hash != self.quick_hash


class EpisodeRef(EpisodeCodeMixin, BaseModel):
    """A (season, episode) address within a series."""

    model_config = ConfigDict(frozen=True)

    season_number: int
    episode_number: int

    @classmethod
    def of(cls, season_number: int, episode_number: int) -> EpisodeRef:
        return cls(season_number=season_number, episode_number=episode_number)


class SingleMapping(BaseModel):
    """One file holds one episode (or the whole movie)."""

    shape: Literal["single"] = "single"
    owner_id: str
    file_id: str
    episode: EpisodeRef | None = None
    confidence: float = 1.0
    rule_name: str = ""


class MappedPart(BaseModel):
    """One file of a multi-part episode."""

    file_id: str
    part_index: int


class MultiPartMapping(BaseModel):
    """Several ordered files together hold one episode (or movie)."""

    shape: Literal["multi_part"] = "multi_part"
    owner_id: str
    episode: EpisodeRef | None = None
    parts: list[MappedPart] = Field(default_factory=list)
    confidence: float = 1.0
    rule_name: str = ""

    def with_part(self, file_id: str, part_index: int) -> MultiPartMapping:
        """Return a copy with the file added (or moved) at part_index."""
        parts = [p for p in self.parts if p.file_id != file_id]
        parts.append(MappedPart(file_id=file_id, part_index=part_index))
        parts.sort(key=lambda p: (p.part_index, p.file_id))
        return self.model_copy(update={"parts": parts})

    def without_file(self, file_id: str) -> MultiPartMapping:
        """Return a copy with the file's part removed."""
        return self.model_copy(update={"parts": [p for p in self.parts if p.file_id != file_id]})


class MultiEpisodeMapping(BaseModel):
    """One file holds several consecutive episodes."""

    shape: Literal["multi_episode"] = "multi_episode"
    owner_id: str
    file_id: str
    episodes: list[EpisodeRef] = Field(default_factory=list)
    confidence: float = 1.0
    rule_name: str = ""


FileMapping = Annotated[
    SingleMapping | MultiPartMapping | MultiEpisodeMapping,
    Field(discriminator="shape"),
]


class MappingEnvelope(BaseModel):
    """Wrapper used to (de)serialize the tagged mapping variant."""

    mapping: FileMapping


def mapping_id(mapping: FileMapping) -> str:
    """Stable store key of a mapping.

    Multi-part mappings are keyed by their target so later parts join the
    existing record; the other shapes are keyed by their single file.
    """
    if isinstance(mapping, SingleMapping):
        return f"file:{mapping.file_id}"
    if isinstance(mapping, MultiEpisodeMapping):
        return f"file:{mapping.file_id}"
    if isinstance(mapping, MultiPartMapping):
        target = mapping.episode.episode_code if mapping.episode else "movie"
        return f"parts:{mapping.owner_id}:{target}"
    assert_never(mapping)


def mapping_file_ids(mapping: FileMapping) -> list[str]:
    """Files referenced by a mapping, in part order."""
    if isinstance(mapping, SingleMapping):
        return [mapping.file_id]
    if isinstance(mapping, MultiEpisodeMapping):
        return [mapping.file_id]
    if isinstance(mapping, MultiPartMapping):
        return [p.file_id for p in mapping.parts]
    assert_never(mapping)


def mapping_pairs(mapping: FileMapping) -> list[tuple[int, int]]:
    """(season, episode) pairs a mapping makes present."""
    if isinstance(mapping, SingleMapping):
        return [mapping.episode.pair] if mapping.episode else []
    if isinstance(mapping, MultiEpisodeMapping):
        return [ep.pair for ep in mapping.episodes]
    if isinstance(mapping, MultiPartMapping):
        if not mapping.parts or mapping.episode is None:
            return []
        return [mapping.episode.pair]
    assert_never(mapping)


class UnmappedFile(BaseModel):
    """A file deliberately left without a mapping."""

    file_id: str
    path: str
    reason: UnmappedReason
    detail: str = ""
    owner_id: str | None = None


# ============================================================================
# Specials, attention queue
# ============================================================================


class SpecialPlacementRule(BaseModel):
    """User choice of where a special sits in the viewing order."""

    series_id: str
    special_episode: int
    mode: PlacementMode = PlacementMode.SPECIALS_ONLY
    target: EpisodeRef | None = None

    @model_validator(mode="after")
    def _check_target(self) -> SpecialPlacementRule:
        if self.mode is not PlacementMode.SPECIALS_ONLY and self.target is None:
            raise ValueError(f"placement mode {self.mode.value!r} needs a target episode")
        if self.target is not None and self.target.season_number == SPECIALS_SEASON:
            raise ValueError("a special cannot be placed relative to another special")
        return self

    @property
    def key(self) -> str:
        """Store key for this rule."""
        return episode_key(self.series_id, SPECIALS_SEASON, self.special_episode)


class ProviderMismatch(BaseModel):
    """Canonical and fallback provider disagree on a series' episode list."""

    series_id: str
    canonical_provider: str
    other_provider: str
    canonical_count: int
    other_count: int
    only_in_canonical: list[EpisodeRef] = Field(default_factory=list)
    only_in_other: list[EpisodeRef] = Field(default_factory=list)

    @property
    def detail(self) -> str:
        """One-line description for the attention view."""
        return (
            f"{self.canonical_provider} lists {self.canonical_count} episodes, "
            f"{self.other_provider} lists {self.other_count} "
            f"({len(self.only_in_canonical)} only in {self.canonical_provider}, "
            f"{len(self.only_in_other)} only in {self.other_provider})"
        )


class OrphanedMapping(BaseModel):
    """A mapping whose episode disappeared from the canonical list."""

    series_id: str
    episode: EpisodeRef
    mapping_id: str
    file_ids: list[str] = Field(default_factory=list)

    @property
    def detail(self) -> str:
        """One-line description for the attention view."""
        return (
            f"{self.episode.episode_code} is mapped to {len(self.file_ids)} file(s) "
            "but is no longer in the canonical episode list"
        )


class AttentionItem(BaseModel):
    """An entry in the needs-attention view."""

    kind: AttentionKind
    key: str
    series_id: str | None = None
    detail: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)
    raised_at: datetime = Field(default_factory=_utcnow)

    @property
    def store_key(self) -> str:
        return f"{self.kind.value}/{self.key}"
