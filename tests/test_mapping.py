"""Tests for the file mapping model."""

from datetime import date
from typing import Any

import pytest

from catalogist.catalog import (
    CanonicalEntity,
    EntityKind,
    EpisodeRef,
    ExpectedEpisode,
    LibraryKind,
    MediaFile,
    MultiEpisodeMapping,
    MultiPartMapping,
    SingleMapping,
    UnmappedReason,
)
from catalogist.identity import Ambiguous, ResolvedExisting, ResolvedNew
from catalogist.mapping import FileMappingModel, MappingDecision, filename_variants
from catalogist.parser import ParseContext

SERIES_ID = "series-1"


class TestFilenameVariants:
    """Tests for filename_variants."""

    def test_variants(self) -> None:
        """Test that parent folder names are prepended one at a time."""
        variants = filename_variants("/tv/Show/Season 1/05.mkv")

        assert [name for name, _ in variants] == [
            "05.mkv",
            "Season 1 05.mkv",
            "Show Season 1 05.mkv",
        ]
        assert variants[0][1] == ("Season 1", "Show", "tv")

    def test_bare_file(self) -> None:
        """Test a name without directories."""
        assert filename_variants("x.mkv") == [("x.mkv", ())]


class TestFileMappingModel:
    """Tests for FileMappingModel.identify."""

    def _create_file(self, path: str) -> MediaFile:
        return MediaFile(id="file-1", path=path)

    def _identify(self, path: str, **kwargs: Any) -> MappingDecision:
        model = kwargs.pop("model", None) or FileMappingModel()
        return model.identify(self._create_file(path), ResolvedExisting(SERIES_ID), **kwargs)

    def test_single_episode(self) -> None:
        """Test a plain episode file."""
        decision = self._identify("/tv/Show/Season 1/Show S01E05.mkv")

        assert decision.is_mapped
        assert decision.mapping == SingleMapping(
            owner_id=SERIES_ID,
            file_id="file-1",
            episode=EpisodeRef.of(1, 5),
            confidence=0.95,
            rule_name="season_episode",
        )

    def test_folder_supplies_season(self) -> None:
        """Test that a season folder completes a bare episode name."""
        decision = self._identify("/tv/Show/Season 2/Episode 3.mkv")

        assert isinstance(decision.mapping, SingleMapping)
        assert decision.mapping.episode == EpisodeRef.of(2, 3)
        assert decision.mapping.rule_name == "worded"

    def test_multi_episode(self) -> None:
        """Test a file holding two episodes."""
        decision = self._identify("/tv/Show/Show S01E01E02.mkv")

        assert isinstance(decision.mapping, MultiEpisodeMapping)
        assert [ep.pair for ep in decision.mapping.episodes] == [(1, 1), (1, 2)]

    def test_multi_part(self) -> None:
        """Test a file holding one part of an episode."""
        decision = self._identify("/tv/Show/Show S01E01 Part 2.mkv")

        assert isinstance(decision.mapping, MultiPartMapping)
        assert decision.mapping.episode == EpisodeRef.of(1, 1)
        assert [(p.file_id, p.part_index) for p in decision.mapping.parts] == [("file-1", 2)]

    def test_no_match(self) -> None:
        """Test that an unparseable name is recorded as unmapped."""
        decision = self._identify("/tv/Show/random.mkv")

        assert not decision.is_mapped
        assert decision.unmapped is not None
        assert decision.unmapped.reason is UnmappedReason.NO_MATCH
        assert decision.unmapped.owner_id == SERIES_ID

    def test_range_into_next_season_is_unmapped(self) -> None:
        """Test that a file running into another season keeps a reason."""
        decision = self._identify("/tv/Show/Show S01E24-S02E01.mkv")

        assert not decision.is_mapped
        assert decision.unmapped is not None
        assert decision.unmapped.reason is UnmappedReason.NO_MATCH
        assert "another season" in decision.unmapped.detail
        assert decision.outcome == decision.unmapped

    def test_outcome_without_either(self) -> None:
        """Test that an empty decision has no outcome."""
        with pytest.raises(ValueError):
            _ = MappingDecision(file_id="file-1").outcome

    def test_tag_only_is_no_match(self) -> None:
        """Test that a tag without an episode number does not map."""
        decision = self._identify("/tv/Show [tvdb=1]/Show [tvdb=1].mkv")

        assert decision.unmapped is not None
        assert decision.unmapped.reason is UnmappedReason.NO_MATCH
        assert decision.unmapped.detail == "no episode number"

    def test_low_confidence(self) -> None:
        """Test that parses below the threshold stay unmapped."""
        decision = self._identify(
            "/tv/Show/Show.301.mkv",
            model=FileMappingModel(min_confidence=0.7),
            parser_context=ParseContext(episode_counts={3: 10}),
        )

        assert decision.unmapped is not None
        assert decision.unmapped.reason is UnmappedReason.LOW_CONFIDENCE
        assert decision.parse is not None
        assert decision.parse.rule_name == "bare_number"

    def test_bare_number_with_default_threshold(self) -> None:
        """Test that the default threshold accepts bare numbers in range."""
        decision = self._identify(
            "/tv/Show/Show.301.mkv", parser_context=ParseContext(episode_counts={3: 10})
        )

        assert isinstance(decision.mapping, SingleMapping)
        assert decision.mapping.episode == EpisodeRef.of(3, 1)

    def test_ambiguous_identity(self) -> None:
        """Test that an ambiguous identity leaves the file unmapped."""
        model = FileMappingModel()
        resolution = Ambiguous(("a", "b"), "title_without_year", "Show")

        decision = model.identify(self._create_file("/tv/Show/Show S01E01.mkv"), resolution)

        assert decision.unmapped is not None
        assert decision.unmapped.reason is UnmappedReason.AMBIGUOUS_IDENTITY
        assert decision.unmapped.owner_id is None

    def test_resolved_new_owner(self) -> None:
        """Test that a new identity owns the mapping through its candidate id."""
        candidate = CanonicalEntity(kind=EntityKind.SERIES, title="Show")

        decision = FileMappingModel().identify(
            self._create_file("/tv/Show/Show S01E01.mkv"), ResolvedNew(candidate)
        )

        assert decision.mapping is not None
        assert decision.mapping.owner_id == candidate.id


class TestDateMapping:
    """Tests for air-date based mapping."""

    def _expected(self, episode: int, aired: date) -> ExpectedEpisode:
        return ExpectedEpisode(
            series_id=SERIES_ID, season_number=2024, episode_number=episode, air_date=aired
        )

    def _identify(self, path: str, expected: list[ExpectedEpisode]) -> MappingDecision:
        return FileMappingModel().identify(
            MediaFile(id="file-1", path=path),
            ResolvedExisting(SERIES_ID),
            ParseContext(date_ordered=True),
            expected,
        )

    def test_date_maps_to_episode(self) -> None:
        """Test that an air date finds its episode."""
        expected = [self._expected(1, date(2024, 1, 15)), self._expected(2, date(2024, 1, 16))]

        decision = self._identify("/tv/Daily/Daily 2024-01-16.mkv", expected)

        assert isinstance(decision.mapping, SingleMapping)
        assert decision.mapping.episode == EpisodeRef.of(2024, 2)
        assert decision.mapping.rule_name == "air_date"

    def test_unknown_date(self) -> None:
        """Test a date no episode aired on."""
        decision = self._identify("/tv/Daily/Daily 2024-02-01.mkv", [])

        assert decision.unmapped is not None
        assert decision.unmapped.reason is UnmappedReason.UNKNOWN_AIR_DATE

    def test_two_episodes_same_day(self) -> None:
        """Test that a date shared by two episodes is ambiguous."""
        expected = [self._expected(1, date(2024, 1, 15)), self._expected(2, date(2024, 1, 15))]

        decision = self._identify("/tv/Daily/Daily 2024-01-15.mkv", expected)

        assert decision.unmapped is not None
        assert decision.unmapped.reason is UnmappedReason.AMBIGUOUS_AIR_DATE
        assert "S2024E01" in decision.unmapped.detail


class TestMovieMapping:
    """Tests for movie library mapping."""

    def test_movie_file(self) -> None:
        """Test that a movie file maps to the movie itself."""
        decision = FileMappingModel().identify(
            MediaFile(id="m1", path="/movies/Heat (1995)/Heat (1995).mkv"),
            ResolvedExisting("movie-1"),
            library_kind=LibraryKind.MOVIES,
        )

        assert decision.mapping == SingleMapping(
            owner_id="movie-1", file_id="m1", rule_name="movie"
        )

    def test_movie_part(self) -> None:
        """Test that cd markers make multi-part movie mappings."""
        decision = FileMappingModel().identify(
            MediaFile(id="m2", path="/movies/Heat (1995)/Heat (1995) cd2.mkv"),
            ResolvedExisting("movie-1"),
            library_kind=LibraryKind.MOVIES,
        )

        assert isinstance(decision.mapping, MultiPartMapping)
        assert decision.mapping.episode is None
        assert decision.mapping.parts[0].part_index == 2
