"""Tests for provider episode lists and the canonical merge."""

import json
from datetime import date
from pathlib import Path

from catalogist.catalog import (
    EpisodeRef,
    ExpectedEpisode,
    OrderingMode,
    SeriesPolicy,
    SingleMapping,
)
from catalogist.episodes import (
    EpisodeListManager,
    ProviderEpisode,
    ProviderEpisodeList,
    StaticEpisodeProvider,
    orphan_key,
    parse_date,
)

SERIES_ID = "series-1"


def _episode(season: int, number: int, name: str | None = None, **kwargs) -> ProviderEpisode:
    return ProviderEpisode(season_number=season, episode_number=number, name=name, **kwargs)


def _tvdb_list() -> ProviderEpisodeList:
    return ProviderEpisodeList(
        provider="tvdb",
        episodes=[
            _episode(1, 1, "Pilot", aired=date(2020, 1, 1), overview="The start."),
            _episode(1, 2, "Second", aired=date(2020, 1, 8)),
        ],
    )


def _tmdb_list() -> ProviderEpisodeList:
    return ProviderEpisodeList(
        provider="tmdb",
        episodes=[
            _episode(1, 1, "The Pilot", aired=date(2020, 1, 2)),
            _episode(1, 2, "Episode 2", aired=date(2020, 1, 9)),
            _episode(1, 3, "Bonus", aired=date(2020, 1, 16)),
        ],
    )


class TestProviderEpisode:
    """Tests for ProviderEpisode parsing and addressing."""

    def test_aliases(self) -> None:
        """Test that provider field names are accepted."""
        ep = ProviderEpisode.model_validate(
            {"id": 42, "seasonNumber": 2, "number": 5, "aired": "", "absoluteNumber": 17}
        )

        assert ep.id == "42"
        assert ep.pair == (2, 5)
        assert ep.aired is None
        assert ep.absolute_number == 17

    def test_dvd_address(self) -> None:
        """Test DVD numbering with aired fallback."""
        ep = _episode(1, 3, dvd_season=1, dvd_episode=1)
        plain = _episode(1, 4)

        assert ep.address(OrderingMode.DVD) == (1, 1)
        assert plain.address(OrderingMode.DVD) == (1, 4)

    def test_absolute_address(self) -> None:
        """Test absolute numbering keeps specials in season 0."""
        ep = _episode(2, 1, absolute_number=13)
        special = _episode(0, 1, absolute_number=99)

        assert ep.address(OrderingMode.ABSOLUTE) == (1, 13)
        assert special.address(OrderingMode.ABSOLUTE) == (0, 1)

    def test_parse_date(self) -> None:
        """Test lenient date parsing."""
        assert parse_date("2024-03-01") == date(2024, 3, 1)
        assert parse_date("") is None
        assert parse_date("not a date") is None
        assert parse_date(None) is None


class TestEpisodeListManager:
    """Tests for EpisodeListManager.merge."""

    def _policy(
        self, *precedence: str, ordering: OrderingMode = OrderingMode.AIRED
    ) -> SeriesPolicy:
        return SeriesPolicy(
            series_id=SERIES_ID, provider_precedence=list(precedence), ordering=ordering
        )

    def test_canonical_provider_wins(self) -> None:
        """Test that only the first provider in precedence supplies rows."""
        result = EpisodeListManager().merge(
            SERIES_ID, [_tmdb_list(), _tvdb_list()], self._policy("tvdb", "tmdb")
        )

        assert result.canonical_provider == "tvdb"
        assert [ep.title for ep in result.episodes] == ["Pilot", "Second"]
        assert all(ep.source_provider == "tvdb" for ep in result.episodes)
        assert result.season_counts() == {1: 2}

    def test_empty_canonical_falls_back(self) -> None:
        """Test that an empty list from the preferred provider is skipped."""
        empty = ProviderEpisodeList(provider="tvdb")

        result = EpisodeListManager().merge(
            SERIES_ID, [empty, _tmdb_list()], self._policy("tvdb", "tmdb")
        )

        assert result.canonical_provider == "tmdb"
        assert len(result.episodes) == 3
        assert result.mismatches == []

    def test_no_provider_keeps_existing(self) -> None:
        """Test that without any list the stored rows are left alone."""
        existing = [ExpectedEpisode(series_id=SERIES_ID, season_number=1, episode_number=1)]

        result = EpisodeListManager().merge(
            SERIES_ID, [ProviderEpisodeList(provider="tvdb")], self._policy("tvdb"), existing
        )

        assert not result.has_canonical
        assert result.episodes == existing
        assert result.removed == []

    def test_switch_provider_and_back(self) -> None:
        """Test that switching back restores the first provider's fields."""
        manager = EpisodeListManager()
        lists = [_tvdb_list(), _tmdb_list()]

        first = manager.merge(SERIES_ID, lists, self._policy("tvdb", "tmdb"))
        switched = manager.merge(SERIES_ID, lists, self._policy("tmdb", "tvdb"), first.episodes)
        back = manager.merge(SERIES_ID, lists, self._policy("tvdb", "tmdb"), switched.episodes)

        assert [ep.title for ep in switched.episodes] == ["The Pilot", "Episode 2", "Bonus"]
        assert back.episodes == first.episodes
        assert back.removed == [EpisodeRef.of(1, 3)]

    def test_locked_fields_survive_switch(self) -> None:
        """Test that user-locked fields are kept while others follow the provider."""
        manager = EpisodeListManager()
        lists = [_tvdb_list(), _tmdb_list()]
        first = manager.merge(SERIES_ID, lists, self._policy("tvdb", "tmdb"))
        edited = [
            ep.model_copy(update={"title": "My Title"}) if ep.pair == (1, 1) else ep
            for ep in first.episodes
        ]
        locks = {f"{SERIES_ID}/S01E01": {"title"}}

        switched = manager.merge(SERIES_ID, lists, self._policy("tmdb", "tvdb"), edited, locks)

        pilot = switched.episodes[0]
        assert pilot.title == "My Title"
        assert pilot.air_date == date(2020, 1, 2)
        assert pilot.source_provider == "tmdb"

    def test_locked_row_is_retained(self) -> None:
        """Test that a locked row dropped by the provider stays expected."""
        manager = EpisodeListManager()
        lists = [_tvdb_list(), _tmdb_list()]
        wide = manager.merge(SERIES_ID, lists, self._policy("tmdb", "tvdb"))
        locks = {f"{SERIES_ID}/S01E03": {"overview"}}

        narrow = manager.merge(SERIES_ID, lists, self._policy("tvdb"), wide.episodes, locks)

        assert (1, 3) in {ep.pair for ep in narrow.episodes}
        assert narrow.retained == [EpisodeRef.of(1, 3)]
        assert narrow.removed == []

    def test_mismatch_reported(self) -> None:
        """Test that a disagreeing fallback provider is reported."""
        result = EpisodeListManager().merge(
            SERIES_ID, [_tvdb_list(), _tmdb_list()], self._policy("tvdb", "tmdb")
        )

        assert len(result.mismatches) == 1
        mismatch = result.mismatches[0]
        assert mismatch.other_provider == "tmdb"
        assert mismatch.canonical_count == 2
        assert mismatch.other_count == 3
        assert mismatch.only_in_other == [EpisodeRef.of(1, 3)]
        assert mismatch.only_in_canonical == []
        assert "tvdb lists 2 episodes" in mismatch.detail

    def test_agreeing_provider_not_reported(self) -> None:
        """Test that matching lists raise no mismatch."""
        other = _tvdb_list().model_copy(update={"provider": "tmdb"})

        result = EpisodeListManager().merge(
            SERIES_ID, [_tvdb_list(), other], self._policy("tvdb", "tmdb")
        )

        assert result.mismatches == []

    def test_orphaned_mapping(self) -> None:
        """Test that a mapping on a removed episode becomes an orphan."""
        manager = EpisodeListManager()
        lists = [_tvdb_list(), _tmdb_list()]
        wide = manager.merge(SERIES_ID, lists, self._policy("tmdb"))
        mapping = SingleMapping(owner_id=SERIES_ID, file_id="f1", episode=EpisodeRef.of(1, 3))

        narrow = manager.merge(
            SERIES_ID, lists, self._policy("tvdb"), wide.episodes, mappings=[mapping]
        )

        assert len(narrow.orphans) == 1
        orphan = narrow.orphans[0]
        assert orphan.episode == EpisodeRef.of(1, 3)
        assert orphan.file_ids == ["f1"]
        assert orphan_key(orphan) == f"{SERIES_ID}/S01E03@file:f1"

    def test_mapping_never_expected_is_not_orphan(self) -> None:
        """Test that only previously expected episodes can be orphaned."""
        mapping = SingleMapping(owner_id=SERIES_ID, file_id="f1", episode=EpisodeRef.of(5, 1))

        result = EpisodeListManager().merge(
            SERIES_ID, [_tvdb_list()], self._policy("tvdb"), mappings=[mapping]
        )

        assert result.orphans == []

    def test_flagged_orphan_stays_flagged(self) -> None:
        """Test that a flagged orphan is reported again while its pair is gone."""
        manager = EpisodeListManager()
        mapping = SingleMapping(owner_id=SERIES_ID, file_id="f1", episode=EpisodeRef.of(1, 3))
        key = f"{SERIES_ID}/S01E03@file:f1"
        narrow = manager.merge(SERIES_ID, [_tvdb_list()], self._policy("tvdb"))

        again = manager.merge(
            SERIES_ID,
            [_tvdb_list()],
            self._policy("tvdb"),
            narrow.episodes,
            mappings=[mapping],
            flagged={key},
        )
        restored = manager.merge(
            SERIES_ID,
            [_tmdb_list()],
            self._policy("tmdb"),
            narrow.episodes,
            mappings=[mapping],
            flagged={key},
        )

        assert [orphan_key(o) for o in again.orphans] == [key]
        assert restored.orphans == []

    def test_dvd_ordering(self) -> None:
        """Test that DVD ordering renumbers the expected rows."""
        plist = ProviderEpisodeList(
            provider="tvdb",
            episodes=[
                _episode(1, 1, "Aired First", dvd_season=1, dvd_episode=2),
                _episode(1, 2, "Aired Second", dvd_season=1, dvd_episode=1),
            ],
        )

        result = EpisodeListManager().merge(
            SERIES_ID, [plist], self._policy("tvdb", ordering=OrderingMode.DVD)
        )

        assert [(ep.pair, ep.title) for ep in result.episodes] == [
            ((1, 1), "Aired Second"),
            ((1, 2), "Aired First"),
        ]

    def test_duplicate_address_first_wins(self) -> None:
        """Test that two rows on one address keep the lower aired pair."""
        plist = ProviderEpisodeList(
            provider="tvdb",
            episodes=[
                _episode(2, 1, "Later", absolute_number=5),
                _episode(1, 5, "Earlier", absolute_number=5),
            ],
        )

        result = EpisodeListManager().merge(
            SERIES_ID, [plist], self._policy("tvdb", ordering=OrderingMode.ABSOLUTE)
        )

        assert len(result.episodes) == 1
        assert result.episodes[0].title == "Earlier"

    def test_merge_is_repeatable(self) -> None:
        """Test that merging the same input twice gives equal results."""
        manager = EpisodeListManager()
        lists = [_tvdb_list(), _tmdb_list()]
        policy = self._policy("tvdb", "tmdb")

        first = manager.merge(SERIES_ID, lists, policy)
        second = manager.merge(SERIES_ID, lists, policy, first.episodes)

        assert second.episodes == first.episodes
        assert second.removed == []


class TestStaticEpisodeProvider:
    """Tests for StaticEpisodeProvider."""

    def test_unknown_series_returns_empty(self) -> None:
        """Test that a series without a list gets an empty one."""
        provider = StaticEpisodeProvider("TheTVDB")

        result = provider.fetch_episodes("nope", {})

        assert provider.name == "tvdb"
        assert result.is_empty
        assert result.provider == "tvdb"

    def test_from_file(self, tmp_path: Path) -> None:
        """Test loading an episode list from JSON."""
        path = tmp_path / "list.json"
        path.write_text(
            json.dumps(
                {
                    "provider": "tmdb",
                    "episodes": [{"seasonNumber": 1, "number": 1, "name": "Pilot"}],
                }
            ),
            encoding="utf-8",
        )

        provider = StaticEpisodeProvider.from_file(SERIES_ID, path)
        result = provider.fetch_episodes(SERIES_ID, {"tmdb": "1"})

        assert provider.name == "tmdb"
        assert [ep.name for ep in result.episodes] == ["Pilot"]
