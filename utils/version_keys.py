"""
Version Keys - derive alternate-version file names

A title can exist in two release versions that share a stem and differ by a
suffix before the extension:

    movie.mkv       -> original
    movie-C.mkv     -> "C" version
    movie-UC.mkv    -> "UC" version

Usage:
    from utils.version_keys import derive_version_keys

    keys = derive_version_keys('movie.mkv')
    # VersionKeys(c='movie-C.mkv', uc='movie-UC.mkv')
"""

from typing import NamedTuple, Tuple

SUFFIX_C = 'C'
SUFFIX_UC = 'UC'


class VersionKeys(NamedTuple):
    """Catalog keys of the two alternate versions of a file"""
    c: str
    uc: str


def split_name(name: str) -> Tuple[str, str]:
    """
    Split a file name into stem and extension at the last dot.

    Args:
        name: File base name (e.g., 'movie.mkv')

    Returns:
        Tuple[str, str]: (stem, extension), extension is '' when there is no dot
    """
    stem, sep, extension = name.rpartition('.')
    if not sep:
        return name, ''
    return stem, extension


def make_version_key(stem: str, extension: str, suffix: str) -> str:
    """Build '{stem}-{suffix}.{extension}', leaving out the dot when extension is empty."""
    if extension:
        return f"{stem}-{suffix}.{extension}"
    return f"{stem}-{suffix}"


def derive_version_keys(name: str) -> VersionKeys:
    """
    Derive the C and UC alternate-version keys for a file name.

    Args:
        name: File base name including extension

    Returns:
        VersionKeys: keys for the C and UC versions
    """
    stem, extension = split_name(name)
    return VersionKeys(
        c=make_version_key(stem, extension, SUFFIX_C),
        uc=make_version_key(stem, extension, SUFFIX_UC),
    )
