"""Filename and path parsing for media files."""

from catalogist.parser.cascade import MediaNameParser, parse_media_name
from catalogist.parser.models import ParseContext, ParseResult
from catalogist.parser.rules import (
    DEFAULT_RULES,
    AirDateRule,
    BareNumberRule,
    CrossRule,
    ParseRule,
    ProviderTagRule,
    SeasonEpisodeRule,
    WordedRule,
)
from catalogist.parser.tokens import (
    VIDEO_EXTENSIONS,
    clean_title,
    extract_provider_ids,
    find_part_index,
    is_video_file,
    normalize_provider,
    normalize_title,
    parse_movie_name,
    should_ignore,
    split_directory_name,
)

__all__ = [
    # Cascade
    "MediaNameParser",
    "parse_media_name",
    "ParseContext",
    "ParseResult",
    # Rules
    "DEFAULT_RULES",
    "ParseRule",
    "ProviderTagRule",
    "SeasonEpisodeRule",
    "CrossRule",
    "WordedRule",
    "BareNumberRule",
    "AirDateRule",
    # Tokens
    "VIDEO_EXTENSIONS",
    "clean_title",
    "extract_provider_ids",
    "find_part_index",
    "is_video_file",
    "normalize_provider",
    "normalize_title",
    "parse_movie_name",
    "should_ignore",
    "split_directory_name",
]
