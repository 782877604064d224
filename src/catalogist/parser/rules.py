"""Independent parse rules, one per naming convention.

Each rule answers a single question: does this name look like my
convention, and if so which season/episode/date does it name? Rules never
raise; a non-match is ``None``.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

from catalogist.parser.models import ParseContext, RuleMatch
from catalogist.parser.tokens import extract_provider_ids

# Largest span a dash range may cover (S01E01-E24 is fine, S01E01-720 is not)
MAX_EPISODE_RANGE = 30

_EXTRA_NUMBER = re.compile(r"(?P<dash>-)?[^0-9\-]*(?P<num>\d{1,3})")
_EXTRA_SEASON_PREFIX = re.compile(r"s(\d{1,2})\s?e", re.IGNORECASE)


def expand_episode_extras(first: int, extras: str) -> tuple[int, ...]:
    """Turn the trailing part of a multi-episode token into an episode list.

    Dash-separated numbers are ranges (``E01-E03`` is 1, 2, 3); numbers
    joined without a dash are listed individually (``E01E02``).

    Args:
        first: The first episode number.
        extras: Text following the first episode number.

    Returns:
        Episode numbers in ascending order without duplicates.
    """
    episodes = [first]
    if not extras:
        return tuple(episodes)
    extras = _EXTRA_SEASON_PREFIX.sub("e", extras)
    for match in _EXTRA_NUMBER.finditer(extras):
        num = int(match.group("num"))
        last = episodes[-1]
        if num <= last:
            continue
        if match.group("dash") and num - last <= MAX_EPISODE_RANGE:
            episodes.extend(range(last + 1, num + 1))
        elif not match.group("dash"):
            episodes.append(num)
    return tuple(episodes)


@dataclass(frozen=True)
class ParseSubject:
    """The text a rule inspects.

    Attributes:
        stem: File name without extension, provider tags removed.
        names: File name and parent directory names, nearest first.
    """

    stem: str
    names: tuple[str, ...]


class ParseRule(ABC):
    """One naming convention in the parse cascade."""

    name: str = ""
    confidence: float = 0.0
    # Scoping rules pin identity and let the cascade continue
    scoping: bool = False

    @abstractmethod
    def match(self, subject: ParseSubject, context: ParseContext) -> RuleMatch | None:
        """Attempt to parse the subject.

        Args:
            subject: Name text to inspect.
            context: Known facts about the series.

        Returns:
            A RuleMatch, or None when the convention does not apply.
        """


class ProviderTagRule(ParseRule):
    """Bracketed provider id on the file or any parent directory."""

    name = "provider_tag"
    confidence = 1.0
    scoping = True

    def match(self, subject: ParseSubject, context: ParseContext) -> RuleMatch | None:
        ids: dict[str, str] = {}
        for text in subject.names:
            for provider, value in extract_provider_ids(text).items():
                ids.setdefault(provider, value)
        if not ids:
            return None
        return RuleMatch(external_ids=ids)


class SeasonEpisodeRule(ParseRule):
    """``S03E07``, ``s3e7``, ``S03 E07``, ``S01E01-E02``, ``S01E01E02``."""

    name = "season_episode"
    confidence = 0.95

    pattern = re.compile(
        r"(?<![a-z0-9])s\s?(?P<season>\d{1,2})[\s._-]?e\s?(?P<episode>\d{1,3})(?![0-9])"
        r"(?P<more>(?:[\s._]*-[\s._]*(?:s\d{1,2}\s?)?e\s?\d{1,3}(?![0-9])"
        r"|e\d{1,3}(?![0-9])"
        r"|-\d{1,3}(?![0-9a-z]))*)",
        re.IGNORECASE,
    )

    def match(self, subject: ParseSubject, context: ParseContext) -> RuleMatch | None:
        m = self.pattern.search(subject.stem)
        if m is None:
            return None
        season = int(m.group("season"))
        more = m.group("more")
        spans = any(int(s) != season for s in _EXTRA_SEASON_PREFIX.findall(more))
        first = int(m.group("episode"))
        return RuleMatch(
            season=season,
            episodes=(first,) if spans else expand_episode_extras(first, more),
            start=m.start(),
            end=m.end(),
            spans_seasons=spans,
        )


class CrossRule(ParseRule):
    """``3x12``, ``1x01x02``, ``1x01-1x02``, ``1x01-02``."""

    name = "cross"
    confidence = 0.90

    pattern = re.compile(
        r"(?<![0-9a-z])(?P<season>\d{1,2})x(?P<episode>\d{2,3})(?![0-9])"
        r"(?P<more>(?:[\s._]*-[\s._]*(?:\d{1,2}x)?\d{2,3}(?![0-9a-z])"
        r"|x\d{2,3}(?![0-9a-z]))*)"
        r"(?![a-z])",
        re.IGNORECASE,
    )
    _extra_season = re.compile(r"\d{1,2}x(?=\d)", re.IGNORECASE)

    def match(self, subject: ParseSubject, context: ParseContext) -> RuleMatch | None:
        m = self.pattern.search(subject.stem)
        if m is None:
            return None
        season = int(m.group("season"))
        more = m.group("more")
        spans = any(int(other[:-1]) != season for other in self._extra_season.findall(more))
        if spans:
            more = ""
        more = re.sub(r"[xX]", "-x", self._extra_season.sub("", more))
        first = int(m.group("episode"))
        return RuleMatch(
            season=season,
            episodes=_cross_extras(first, more),
            start=m.start(),
            end=m.end(),
            spans_seasons=spans,
        )


def _cross_extras(first: int, more: str) -> tuple[int, ...]:
    # "x02" lists an episode, "-02" opens a range
    episodes = [first]
    for token in re.finditer(r"(?P<sep>-x|-)?[\s._]*(?P<num>\d{2,3})", more):
        num = int(token.group("num"))
        last = episodes[-1]
        if num <= last:
            continue
        if token.group("sep") == "-" and num - last <= MAX_EPISODE_RANGE:
            episodes.extend(range(last + 1, num + 1))
        elif token.group("sep") == "-x":
            episodes.append(num)
    return tuple(episodes)


class WordedRule(ParseRule):
    """``Season 2 Episode 14``, ``season 3 - ep. 7``."""

    name = "worded"
    confidence = 0.85

    pattern = re.compile(
        r"(?<![a-z])season[\s._-]*(?P<season>\d{1,3})(?![0-9])"
        r".*?(?<![a-z])(?:episode|ep)[\s._-]*(?P<episode>\d{1,4})(?![0-9])",
        re.IGNORECASE,
    )

    def match(self, subject: ParseSubject, context: ParseContext) -> RuleMatch | None:
        m = self.pattern.search(subject.stem)
        if m is None:
            return None
        return RuleMatch(
            season=int(m.group("season")),
            episodes=(int(m.group("episode")),),
            start=m.start(),
            end=m.end(),
        )


RE_DATE = re.compile(
    r"(?<![0-9])(?P<year>(?:19|20)\d{2})[-._ ](?P<month>\d{2})[-._ ](?P<day>\d{2})(?![0-9])"
)


def _blank(match: re.Match[str]) -> str:
    return " " * len(match.group())


class BareNumberRule(ParseRule):
    """``301`` as S3E1 or ``1204`` as S12E04, only with known seasons.

    Without season knowledge a three digit block is as likely to be an
    absolute number or part of the title, so the rule stays silent.
    """

    name = "bare_number"
    confidence = 0.60

    pattern = re.compile(r"(?<![0-9a-z])(?P<block>\d{3,4})(?![0-9a-z])", re.IGNORECASE)
    _noise = re.compile(r"[hx]\.?26[456]", re.IGNORECASE)

    def match(self, subject: ParseSubject, context: ParseContext) -> RuleMatch | None:
        if not context.has_season_knowledge:
            return None
        # Blank out dates and codecs without shifting match offsets
        text = RE_DATE.sub(_blank, subject.stem)
        text = self._noise.sub(_blank, text)

        found: list[tuple[int, int, int, int]] = []
        for m in self.pattern.finditer(text):
            block = m.group("block")
            if len(block) == 4 and 1900 <= int(block) <= 2099:
                continue
            split = 1 if len(block) == 3 else 2
            season, episode = int(block[:split]), int(block[split:])
            if context.allows(season, episode):
                found.append((season, episode, m.start(), m.end()))

        interpretations = {(s, e) for s, e, _, _ in found}
        if len(interpretations) != 1:
            return None
        season, episode, start, end = found[0]
        return RuleMatch(season=season, episodes=(episode,), start=start, end=end)


class AirDateRule(ParseRule):
    """``2024-01-15`` for series flagged as date-ordered."""

    name = "air_date"
    confidence = 0.90

    def match(self, subject: ParseSubject, context: ParseContext) -> RuleMatch | None:
        if not context.date_ordered:
            return None
        for m in RE_DATE.finditer(subject.stem):
            try:
                aired = date(int(m.group("year")), int(m.group("month")), int(m.group("day")))
            except ValueError:
                continue
            return RuleMatch(air_date=aired, start=m.start(), end=m.end())
        return None


DEFAULT_RULES: tuple[ParseRule, ...] = (
    ProviderTagRule(),
    SeasonEpisodeRule(),
    CrossRule(),
    WordedRule(),
    BareNumberRule(),
    AirDateRule(),
)
