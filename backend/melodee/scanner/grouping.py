"""Album grouping rules.

Files belong to the same release when their normalized artist and album
names match. The release year is decided by vote across the group.
"""
import re
from collections import Counter
from typing import Iterable, Optional

# Bracketed edition markers: "(Remastered 2009)", "[2011 Remaster]",
# "{Deluxe Edition}", "(50th Anniversary Edition)", "(Remastered Version)"
_EDITION_MARKER = re.compile(
    r"[(\[{][^)\]}]*\b(?:remaster(?:ed)?|deluxe|expanded|anniversary)\b[^)\]}]*[)\]}]",
    re.IGNORECASE,
)
_WHITESPACE = re.compile(r"\s+")


def normalize_album_name(name: Optional[str]) -> str:
    """Normalize an album name for grouping.

    Lowercases, drops edition markers, strips a leading "the " and removes
    all whitespace.
    """
    value = (name or "").lower()
    value = _EDITION_MARKER.sub("", value).strip()
    if value.startswith("the "):
        value = value[4:]
    return _WHITESPACE.sub("", value)


def normalize_artist_name(name: Optional[str]) -> str:
    """Normalize an artist name for grouping (case and whitespace only)."""
    return _WHITESPACE.sub("", (name or "").lower())


def group_hash(artist: Optional[str], album: Optional[str]) -> str:
    """Stage one grouping key, ``artist::album`` in normalized form."""
    return f"{normalize_artist_name(artist)}::{normalize_album_name(album)}"


def vote_year(years: Iterable[Optional[int]]) -> int:
    """Pick the most frequent year. Ties go to the lowest year.

    Zero and missing years only win when no member carries a year.
    """
    counts = Counter(year for year in years if year)
    if not counts:
        return 0
    return min(counts, key=lambda year: (-counts[year], year))


def album_group_id(hash_value: str, year: int) -> str:
    """Stage two grouping key, the hash plus the voted year."""
    return f"{hash_value}_{year or 0}"


def pick_display_name(names: Iterable[Optional[str]]) -> str:
    """Most common spelling in a group, ties broken alphabetically."""
    counts = Counter(name for name in names if name)
    if not counts:
        return ""
    return min(counts, key=lambda name: (-counts[name], name))
