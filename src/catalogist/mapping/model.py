"""Decide how a media file relates to catalog entries."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import PurePath

from catalogist.catalog.models import (
    EpisodeRef,
    ExpectedEpisode,
    FileMapping,
    LibraryKind,
    MappedPart,
    MediaFile,
    MultiEpisodeMapping,
    MultiPartMapping,
    SingleMapping,
    UnmappedFile,
    UnmappedReason,
)
from catalogist.identity.resolver import Ambiguous, Resolution, ResolvedExisting, ResolvedNew
from catalogist.parser.cascade import MediaNameParser
from catalogist.parser.models import ParseContext, ParseResult
from catalogist.parser.tokens import find_part_index

DEFAULT_MIN_CONFIDENCE = 0.5


@dataclass(frozen=True)
class MappingDecision:
    """Outcome of identifying one file: a mapping or an unmapped record."""

    file_id: str
    mapping: FileMapping | None = None
    unmapped: UnmappedFile | None = None
    parse: ParseResult | None = None

    @property
    def is_mapped(self) -> bool:
        """Check if the file got a mapping."""
        return self.mapping is not None

    @property
    def outcome(self) -> FileMapping | UnmappedFile:
        """The mapping, or the unmapped record when there is none.

        Raises:
            ValueError: If the decision carries neither.
        """
        if self.mapping is not None:
            return self.mapping
        if self.unmapped is None:
            raise ValueError(f"Decision for file {self.file_id} has no outcome")
        return self.unmapped


def filename_variants(path: str) -> list[tuple[str, tuple[str, ...]]]:
    """Candidate names to parse for a file, most specific first.

    Each entry is (name, parent directory names nearest first). The file
    name alone comes first, then parent + file name, then grandparent +
    parent + file name, for layouts like ``Show/Season 1/05.mkv``.
    """
    pure = PurePath(path.replace("\\", "/"))
    parents = tuple(p.name for p in pure.parents if p.name)
    variants = [(pure.name, parents)]
    if len(parents) >= 1:
        variants.append((f"{parents[0]} {pure.name}", parents))
    if len(parents) >= 2:
        variants.append((f"{parents[1]} {parents[0]} {pure.name}", parents))
    return variants


class FileMappingModel:
    """Turn a parse and a resolved identity into a FileMapping.

    Example:
        ```python
        model = FileMappingModel(min_confidence=0.5)
        decision = model.identify(media_file, ResolvedExisting(series_id), context)
        if decision.mapping:
            repository.replace_file_mapping(media_file.id, decision.mapping)
        ```
    """

    def __init__(
        self,
        parser: MediaNameParser | None = None,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    ) -> None:
        """Initialize the model.

        Args:
            parser: Parser to use (default rule cascade if None).
            min_confidence: Parses below this confidence stay unmapped.
        """
        self.parser = parser or MediaNameParser()
        self.min_confidence = min_confidence

    def parse(self, path: str, context: ParseContext | None = None) -> ParseResult | None:
        """Parse a file path, probing filename variants.

        The first variant naming an episode or air date wins. Failing
        that, the first variant that parsed at all (a tag-only result).
        """
        fallback: ParseResult | None = None
        for name, parents in filename_variants(path):
            result = self.parser.parse(name, parents, context)
            if result is None:
                continue
            if result.has_episode or result.is_date_based:
                return result
            fallback = fallback or result
        return fallback

    def identify(
        self,
        media_file: MediaFile,
        resolution: Resolution,
        parser_context: ParseContext | None = None,
        expected: Sequence[ExpectedEpisode] = (),
        library_kind: LibraryKind = LibraryKind.TV_SHOWS,
    ) -> MappingDecision:
        """Identify a file.

        Args:
            media_file: The file to identify.
            resolution: Identity of the series or movie the file belongs to.
            parser_context: Known facts about the series.
            expected: The series' expected episodes (for air-date lookup).
            library_kind: Movies map to the movie entity itself.

        Returns:
            MappingDecision carrying either a mapping or an UnmappedFile.
        """
        if isinstance(resolution, Ambiguous):
            return self._unmapped(
                media_file, UnmappedReason.AMBIGUOUS_IDENTITY, resolution.detail, None
            )
        owner_id = self._owner_id(resolution)

        if library_kind is LibraryKind.MOVIES:
            return self._identify_movie(media_file, owner_id)

        parse = self.parse(media_file.path, parser_context)
        if parse is None:
            return self._unmapped(media_file, UnmappedReason.NO_MATCH, "", owner_id)
        if parse.confidence < self.min_confidence:
            detail = f"{parse.rule_name} confidence {parse.confidence:.2f}"
            return self._unmapped(
                media_file, UnmappedReason.LOW_CONFIDENCE, detail, owner_id, parse
            )

        if parse.is_date_based:
            return self._identify_by_date(media_file, owner_id, parse, expected)

        if parse.season is None or not parse.episodes:
            return self._unmapped(
                media_file, UnmappedReason.NO_MATCH, "no episode number", owner_id, parse
            )
        if parse.spans_seasons:
            return self._unmapped(
                media_file,
                UnmappedReason.NO_MATCH,
                "episode range runs into another season",
                owner_id,
                parse,
            )

        mapping: FileMapping
        if parse.is_multi_episode:
            mapping = MultiEpisodeMapping(
                owner_id=owner_id,
                file_id=media_file.id,
                episodes=[EpisodeRef.of(parse.season, ep) for ep in parse.episodes],
                confidence=parse.confidence,
                rule_name=parse.rule_name,
            )
        elif parse.part is not None:
            mapping = MultiPartMapping(
                owner_id=owner_id,
                episode=EpisodeRef.of(parse.season, parse.episodes[0]),
                parts=[MappedPart(file_id=media_file.id, part_index=parse.part)],
                confidence=parse.confidence,
                rule_name=parse.rule_name,
            )
        else:
            mapping = SingleMapping(
                owner_id=owner_id,
                file_id=media_file.id,
                episode=EpisodeRef.of(parse.season, parse.episodes[0]),
                confidence=parse.confidence,
                rule_name=parse.rule_name,
            )
        return MappingDecision(file_id=media_file.id, mapping=mapping, parse=parse)

    def _owner_id(self, resolution: ResolvedExisting | ResolvedNew) -> str:
        if isinstance(resolution, ResolvedExisting):
            return resolution.entity_id
        return resolution.candidate.id

    def _identify_movie(self, media_file: MediaFile, owner_id: str) -> MappingDecision:
        name = PurePath(media_file.path.replace("\\", "/")).name
        part = find_part_index(name)
        mapping: FileMapping
        if part is not None:
            mapping = MultiPartMapping(
                owner_id=owner_id,
                parts=[MappedPart(file_id=media_file.id, part_index=part)],
                rule_name="movie",
            )
        else:
            mapping = SingleMapping(owner_id=owner_id, file_id=media_file.id, rule_name="movie")
        return MappingDecision(file_id=media_file.id, mapping=mapping)

    def _identify_by_date(
        self,
        media_file: MediaFile,
        owner_id: str,
        parse: ParseResult,
        expected: Sequence[ExpectedEpisode],
    ) -> MappingDecision:
        matches = sorted(
            (ep for ep in expected if ep.air_date == parse.air_date), key=lambda ep: ep.pair
        )
        if not matches:
            return self._unmapped(
                media_file,
                UnmappedReason.UNKNOWN_AIR_DATE,
                f"no episode aired {parse.air_date}",
                owner_id,
                parse,
            )
        if len(matches) > 1:
            codes = ", ".join(ep.episode_code for ep in matches)
            return self._unmapped(
                media_file,
                UnmappedReason.AMBIGUOUS_AIR_DATE,
                f"{parse.air_date} matches {codes}",
                owner_id,
                parse,
            )
        ep = matches[0]
        mapping = SingleMapping(
            owner_id=owner_id,
            file_id=media_file.id,
            episode=EpisodeRef.of(ep.season_number, ep.episode_number),
            confidence=parse.confidence,
            rule_name=parse.rule_name,
        )
        return MappingDecision(file_id=media_file.id, mapping=mapping, parse=parse)

    def _unmapped(
        self,
        media_file: MediaFile,
        reason: UnmappedReason,
        detail: str,
        owner_id: str | None,
        parse: ParseResult | None = None,
    ) -> MappingDecision:
        record = UnmappedFile(
            file_id=media_file.id,
            path=media_file.path,
            reason=reason,
            detail=detail,
            owner_id=owner_id,
        )
        return MappingDecision(file_id=media_file.id, unmapped=record, parse=parse)
