"""Series and movie identity resolution.

Decides whether a directory (plus whatever the file name parse found)
names an entity already in the catalog, a new one, or something that
cannot be decided without an operator.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import PurePath

from catalogist.catalog.models import DEFAULT_LIBRARY_ID, CanonicalEntity, EntityKind
from catalogist.parser.models import ParseResult
from catalogist.parser.tokens import (
    extract_provider_ids,
    normalize_provider,
    normalize_title,
    split_directory_name,
)

# Ambiguity reasons
REASON_CONFLICTING_IDS = "conflicting_ids"
REASON_TITLE_WITHOUT_YEAR = "title_without_year"
REASON_DUPLICATE_TITLE_YEAR = "duplicate_title_year"
REASON_NO_TITLE = "no_title"


@dataclass(frozen=True)
class ResolvedExisting:
    """The directory names an entity already in the catalog."""

    entity_id: str
    matched_by: str = "title"  # "external_id", "title_year" or "title"


@dataclass(frozen=True)
class ResolvedNew:
    """The directory names an entity the catalog has not seen."""

    candidate: CanonicalEntity
    external_ids: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Ambiguous:
    """Several entities fit, or nothing identifies one. Never auto-resolved."""

    candidates: tuple[str, ...]
    reason: str
    title: str = ""

    @property
    def detail(self) -> str:
        """One-line description for the attention view."""
        if self.reason == REASON_NO_TITLE:
            return "No title could be read from the path"
        if self.reason == REASON_CONFLICTING_IDS:
            return f"Provider tags on '{self.title}' match {len(self.candidates)} different entries"
        return f"'{self.title}' matches {len(self.candidates)} entries and has no year"


Resolution = ResolvedExisting | ResolvedNew | Ambiguous


@dataclass
class CatalogSnapshot:
    """Read view of existing identities.

    Built from the repository; the resolver never writes through it.
    """

    entities: dict[str, CanonicalEntity] = field(default_factory=dict)
    external_ids: dict[str, dict[str, str]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        entities: Iterable[CanonicalEntity],
        external_ids: Mapping[str, Mapping[str, str]] | None = None,
    ) -> CatalogSnapshot:
        """Create a snapshot from entities and their identifier sets."""
        ids = external_ids or {}
        return cls(
            entities={e.id: e for e in entities},
            external_ids={k: dict(v) for k, v in ids.items()},
        )

    def with_entity(
        self, entity: CanonicalEntity, external_ids: Mapping[str, str] | None = None
    ) -> CatalogSnapshot:
        """Return a copy that also holds entity; this snapshot is unchanged."""
        entities = dict(self.entities)
        entities[entity.id] = entity
        ids = dict(self.external_ids)
        if external_ids:
            ids[entity.id] = dict(external_ids)
        return CatalogSnapshot(entities=entities, external_ids=ids)

    def _scope(self, kind: EntityKind, library_id: str) -> list[CanonicalEntity]:
        return [e for e in self.entities.values() if e.kind is kind and e.library_id == library_id]

    def by_external_ids(
        self, tags: Mapping[str, str], kind: EntityKind, library_id: str
    ) -> list[str]:
        """Entity ids whose identifier set shares any (provider, id) with tags."""
        wanted = {(normalize_provider(p), str(v)) for p, v in tags.items()}
        matches = []
        for entity in self._scope(kind, library_id):
            have = set(self.external_ids.get(entity.id, {}).items())
            if have & wanted:
                matches.append(entity.id)
        return sorted(matches)

    def by_title(
        self, normalized_title: str, kind: EntityKind, library_id: str
    ) -> list[CanonicalEntity]:
        """Entities with the normalized title, any year."""
        return sorted(
            (e for e in self._scope(kind, library_id) if e.normalized_title == normalized_title),
            key=lambda e: e.id,
        )


def collect_path_tags(directory: str | PurePath) -> dict[str, str]:
    """Collect provider tags from every component of a path.

    The component nearest the file wins when two carry the same provider.
    """
    parts = PurePath(str(directory).replace("\\", "/")).parts
    tags: dict[str, str] = {}
    for part in reversed(parts):
        for provider, value in extract_provider_ids(part).items():
            tags.setdefault(provider, value)
    return tags


class IdentityResolver:
    """Resolve a directory to a catalog identity.

    Rules, in order:

    1. A provider tag anywhere in the path (or carried by the parse) is
       authoritative.
    2. Otherwise normalized title and year must both match; the same title
       with a different year is a different production.
    3. Without a year, one title match resolves to it, several are
       ambiguous.

    Existing entities are never merged here.
    """

    def resolve(
        self,
        directory: str | PurePath,
        parse: ParseResult | None,
        snapshot: CatalogSnapshot,
        kind: EntityKind = EntityKind.SERIES,
        library_id: str = DEFAULT_LIBRARY_ID,
    ) -> Resolution:
        """Resolve an identity.

        Args:
            directory: The series (or movie) directory, as a name or path.
            parse: Parse of a file inside it, or None.
            snapshot: Existing catalog identities.
            kind: Entity kind to resolve (series or movie).
            library_id: Library the entity belongs to.

        Returns:
            ResolvedExisting, ResolvedNew or Ambiguous.
        """
        name = PurePath(str(directory).replace("\\", "/")).name
        title, year, _ = split_directory_name(name) if name else ("", None, {})
        tags = collect_path_tags(directory)
        if parse is not None:
            for provider, value in parse.external_ids.items():
                tags.setdefault(normalize_provider(provider), value)
            if not title:
                title, year = parse.series_title, parse.year

        if tags:
            matches = snapshot.by_external_ids(tags, kind, library_id)
            if len(matches) > 1:
                return Ambiguous(tuple(matches), REASON_CONFLICTING_IDS, title)
            if matches:
                return ResolvedExisting(matches[0], matched_by="external_id")
            if not title:
                provider, value = next(iter(sorted(tags.items())))
                title = f"{provider}-{value}"
            return ResolvedNew(self._candidate(kind, title, year, library_id), tags)

        normalized = normalize_title(title) if title else ""
        if not normalized:
            return Ambiguous((), REASON_NO_TITLE, title)

        same_title = snapshot.by_title(normalized, kind, library_id)
        if year is not None:
            exact = [e.id for e in same_title if e.year == year]
            if len(exact) > 1:
                return Ambiguous(tuple(exact), REASON_DUPLICATE_TITLE_YEAR, title)
            if exact:
                return ResolvedExisting(exact[0], matched_by="title_year")
            return ResolvedNew(self._candidate(kind, title, year, library_id))

        if len(same_title) > 1:
            return Ambiguous(tuple(e.id for e in same_title), REASON_TITLE_WITHOUT_YEAR, title)
        if same_title:
            return ResolvedExisting(same_title[0].id, matched_by="title")
        return ResolvedNew(self._candidate(kind, title, year, library_id))

    def _candidate(
        self, kind: EntityKind, title: str, year: int | None, library_id: str
    ) -> CanonicalEntity:
        return CanonicalEntity(kind=kind, title=title, year=year, library_id=library_id)
