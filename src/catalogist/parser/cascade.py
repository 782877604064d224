"""Ordered rule cascade turning a media file name into a ParseResult."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import PurePath

from catalogist.parser.models import ParseContext, ParseResult, RuleMatch
from catalogist.parser.rules import DEFAULT_RULES, ParseRule, ParseSubject
from catalogist.parser.tokens import (
    clean_title,
    find_part_index,
    split_directory_name,
    strip_extension,
    strip_tags,
)

_EMPTY_CONTEXT = ParseContext()


class MediaNameParser:
    """Run parse rules in order; the first non-scoping match wins.

    Scoping rules (provider tags) do not stop the cascade: they pin the
    series and the next matching rule supplies the episode address. A
    name carrying only a tag parses as a tag-only result.

    Example:
        ```python
        parser = MediaNameParser()
        result = parser.parse("Show Name S03E07.mkv")
        result.season, result.episode, result.confidence  # 3, 7, 0.95
        ```
    """

    def __init__(self, rules: Sequence[ParseRule] | None = None) -> None:
        """Initialize the parser.

        Args:
            rules: Rules in priority order. Defaults to DEFAULT_RULES.
        """
        self.rules: tuple[ParseRule, ...] = tuple(rules) if rules is not None else DEFAULT_RULES

    def parse(
        self,
        filename: str,
        parent_dirs: Sequence[str] = (),
        context: ParseContext | None = None,
    ) -> ParseResult | None:
        """Parse a file name.

        Args:
            filename: File name (a full path is reduced to its last part).
            parent_dirs: Parent directory names, nearest first.
            context: Known facts about the series; enables bare-number and
                air-date rules.

        Returns:
            ParseResult, or None when no rule matches.
        """
        if not isinstance(filename, str) or not filename.strip():
            return None
        context = context or _EMPTY_CONTEXT

        name = PurePath(filename.replace("\\", "/")).name
        stem = strip_tags(strip_extension(name))
        subject = ParseSubject(
            stem=stem,
            names=(name, *(d for d in parent_dirs if isinstance(d, str))),
        )

        pin: RuleMatch | None = None
        pin_rule: ParseRule | None = None
        for rule in self.rules:
            found = rule.match(subject, context)
            if found is None:
                continue
            if rule.scoping:
                if pin is None:
                    pin, pin_rule = found, rule
                continue
            return self._build(rule, found, pin, stem)

        if pin is not None and pin_rule is not None:
            title, year, _ = split_directory_name(stem)
            return ParseResult(
                rule_name=pin_rule.name,
                confidence=pin_rule.confidence,
                series_title=title,
                year=year,
                external_ids=dict(pin.external_ids),
                part=find_part_index(stem),
            )
        return None

    def _build(
        self,
        rule: ParseRule,
        found: RuleMatch,
        pin: RuleMatch | None,
        stem: str,
    ) -> ParseResult:
        series_title, year, _ = split_directory_name(stem[: found.start])
        tail = clean_title(stem[found.end :]) if found.end else ""
        return ParseResult(
            rule_name=rule.name,
            confidence=rule.confidence,
            season=found.season,
            episodes=found.episodes,
            air_date=found.air_date,
            series_title=series_title,
            episode_title=tail or None,
            external_ids=dict(pin.external_ids) if pin else {},
            part=find_part_index(stem),
            year=year,
            spans_seasons=found.spans_seasons,
        )


_default_parser = MediaNameParser()


def parse_media_name(
    filename: str,
    parent_dirs: Sequence[str] = (),
    context: ParseContext | None = None,
) -> ParseResult | None:
    """Parse a file name with the default rule cascade.

    See MediaNameParser.parse.
    """
    return _default_parser.parse(filename, parent_dirs, context)
