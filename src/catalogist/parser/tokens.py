"""Tokenizing helpers shared by the parser rules and identity resolution.

Everything here is a pure string function. Non-Latin scripts pass through
untouched apart from Unicode normalisation and case folding.
"""

from __future__ import annotations

import re
import unicodedata
from pathlib import PurePath

VIDEO_EXTENSIONS = frozenset(
    {
        "mkv",
        "mp4",
        "avi",
        "m4v",
        "mov",
        "wmv",
        "flv",
        "webm",
        "ts",
        "mpg",
        "mpeg",
        "3gp",
        "ogv",
    }
)

# Names and suffixes the scanner never treats as media
IGNORE_NAMES = (
    ".ds_store",
    "thumbs.db",
    "@eadir",
    ".nfo",
    ".txt",
    ".jpg",
    ".jpeg",
    ".png",
    ".srt",
    ".sub",
    ".idx",
    ".ass",
    ".ssa",
)

PROVIDER_ALIASES = {
    "tmdbid": "tmdb",
    "themoviedb": "tmdb",
    "tvdbid": "tvdb",
    "thetvdb": "tvdb",
    "imdbid": "imdb",
    "anidbid": "anidb",
}

# [tmdb=123], [tvdbid-81189], {imdb-tt0133093}
RE_PROVIDER_TAG = re.compile(r"[\[{]\s*([A-Za-z]+)\s*[=-]\s*([^\]}\s]+)\s*[\]}]")

RE_ANY_BRACKETED = re.compile(r"\s*[\[{][^\]}]*[\]}]\s*")

RE_YEAR_PAREN = re.compile(r"^(?P<title>.+?)\s*\((?P<year>(?:19|20)\d{2})\)")
RE_YEAR_DOT = re.compile(r"^(?P<title>.+?)[.\s_](?P<year>(?:19|20)\d{2})(?:[.\s_]|$)")

RE_PART = re.compile(
    r"(?:^|[\s._\-\[(])(?:part|pt|cd|dis[ck])[\s._\-]?(?P<index>\d{1,2})(?![0-9])",
    re.IGNORECASE,
)

RE_SEPARATORS = re.compile(r"[._]+")
RE_NON_WORD = re.compile(r"[^\w\s]+")
RE_SPACES = re.compile(r"\s+")


def normalize_provider(name: str) -> str:
    """Lower-case a provider name and collapse known aliases."""
    key = name.strip().lower()
    return PROVIDER_ALIASES.get(key, key)


def should_ignore(filename: str) -> bool:
    """Check if a filename is never media (sidecars, OS junk)."""
    lower = filename.lower()
    return any(lower == pat or lower.endswith(pat) for pat in IGNORE_NAMES)


def is_video_file(filename: str) -> bool:
    """Check if a file has a video extension."""
    if "." not in filename:
        return False
    return filename.rsplit(".", 1)[1].lower() in VIDEO_EXTENSIONS


def strip_extension(filename: str) -> str:
    """Drop a known video extension from a file name."""
    if is_video_file(filename):
        return filename.rsplit(".", 1)[0]
    return filename


def extract_provider_ids(name: str) -> dict[str, str]:
    """Extract provider tags from a folder or file name.

    Example:
        ```python
        extract_provider_ids("Breaking Bad [tmdb=1396] [tvdb=81189]")
        # {"tmdb": "1396", "tvdb": "81189"}
        ```

    The first tag for a provider wins if one name carries two.
    """
    ids: dict[str, str] = {}
    for match in RE_PROVIDER_TAG.finditer(name):
        provider = normalize_provider(match.group(1))
        ids.setdefault(provider, match.group(2))
    return ids


def strip_tags(name: str) -> str:
    """Remove bracketed tags such as ``[tvdb=1]`` or ``{imdb-tt1}``."""
    return RE_ANY_BRACKETED.sub(" ", name).strip()


def clean_title(raw: str) -> str:
    """Replace dots/underscores with spaces and trim separators."""
    text = RE_SEPARATORS.sub(" ", raw)
    text = RE_SPACES.sub(" ", text)
    return text.strip(" -")


def normalize_title(raw: str) -> str:
    """Fold a title into the form used for identity comparison.

    NFKC normalisation, case folding, tag and punctuation removal, and
    whitespace collapsing. ``"The.Office_(US)"`` and ``"the office us"``
    normalise identically.
    """
    text = unicodedata.normalize("NFKC", raw)
    text = strip_tags(text)
    text = text.replace("&", " and ")
    text = RE_SEPARATORS.sub(" ", text)
    text = RE_NON_WORD.sub(" ", text)
    text = text.replace("_", " ")
    return RE_SPACES.sub(" ", text).strip().casefold()


def split_directory_name(name: str) -> tuple[str, int | None, dict[str, str]]:
    """Split a series/movie folder name into (title, year, provider tags).

    ``"Show (2003) [tvdb=123]"`` becomes ``("Show", 2003, {"tvdb": "123"})``.
    """
    tags = extract_provider_ids(name)
    bare = strip_tags(name)
    match = RE_YEAR_PAREN.match(bare)
    if match:
        return clean_title(match.group("title")), int(match.group("year")), tags
    match = RE_YEAR_DOT.match(bare)
    if match:
        return clean_title(match.group("title")), int(match.group("year")), tags
    return clean_title(bare), None, tags


def parse_movie_name(filename: str) -> tuple[str, int | None]:
    """Parse ``Title (Year)`` or ``Title.Year.extra`` into (title, year)."""
    title, year, _ = split_directory_name(strip_extension(PurePath(filename).name))
    return title, year


def find_part_index(name: str) -> int | None:
    """Find a multi-part marker such as ``-part-1``, ``cd2`` or ``disc 3``."""
    match = RE_PART.search(strip_extension(name))
    if match is None:
        return None
    index = int(match.group("index"))
    return index if index > 0 else None
