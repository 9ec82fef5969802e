"""
Catalog - name to path mapping of the video files in a library

The catalog is built once per run, either by walking the library or by
loading a compressed cache written by an earlier run, and is read-only
afterwards.

Cache Format:
    gzip-compressed text, one JSON object per line:
        {"movie.mkv": "/library/Movie/movie.mkv"}
        {"movie-UC.mkv": "/library/Movie/movie-UC.mkv"}
    Each line is decoded on its own and merged into the mapping. Paths holding
    undecodable bytes are stored as those raw bytes (surrogateescape).

Usage:
    from utils.catalog import load_or_build_catalog

    catalog = load_or_build_catalog('/library', cache_file='cache/catalog.jsonl.gz')
    for entry in catalog.entries():
        print(entry.name, entry.path)
"""

import os
import gzip
import json
import mimetypes
import zlib
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, NamedTuple, Optional, Tuple

from utils.logging_config import get_logger

logger = get_logger(__name__)

# Containers missing from the stdlib mime table on some platforms
EXTRA_VIDEO_TYPES = {
    '.mkv': 'video/x-matroska',
    '.wmv': 'video/x-ms-wmv',
    '.flv': 'video/x-flv',
    '.m4v': 'video/x-m4v',
}

for _ext, _mime_type in EXTRA_VIDEO_TYPES.items():
    mimetypes.add_type(_mime_type, _ext, strict=False)


class CatalogError(RuntimeError):
    """Raised when the catalog cannot be built or loaded. Aborts the run."""


class CatalogEntry(NamedTuple):
    """A single catalogued file"""
    name: str
    path: str


class Catalog(Mapping):
    """
    Immutable mapping from file base name to absolute path.

    Names are unique; when the same name shows up twice while building,
    the later path wins.
    """

    def __init__(self, entries: Optional[Mapping[str, str]] = None):
        self._entries = MappingProxyType(dict(entries or {}))

    @classmethod
    def from_entries(cls, pairs: Iterable[Tuple[str, str]]) -> 'Catalog':
        mapping: Dict[str, str] = {}
        for name, path in pairs:
            mapping[name] = path
        return cls(mapping)

    def __getitem__(self, name: str) -> str:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Catalog({len(self)} entries)"

    def entries(self) -> Iterator[CatalogEntry]:
        for name, path in self._entries.items():
            yield CatalogEntry(name, path)


def is_video_file(path: str) -> bool:
    """Check if the guessed mime type of a file name is video/*"""
    mime_type, _ = mimetypes.guess_type(path, strict=False)
    return mime_type is not None and mime_type.startswith('video/')


def catalog_key(name: str) -> str:
    """
    Return the catalog key for a file name.

    Names carrying undecodable bytes cannot be displayed or stored in the
    cache, so they are keyed as ''.
    """
    try:
        name.encode('utf-8')
    except UnicodeEncodeError:
        logger.debug(f"Undecodable file name, cataloguing under empty key: {name!r}")
        return ''
    return name


def _log_walk_error(error: OSError) -> None:
    logger.warning(f"Skipping unreadable path {error.filename}: {error.strerror}")


def scan_directory(root: str) -> Catalog:
    """
    Walk a library tree and catalogue its video files.

    Args:
        root: Library root directory

    Returns:
        Catalog: base name -> absolute path of every video file

    Raises:
        CatalogError: If root does not exist, is not a directory or cannot be listed
    """
    root = os.path.abspath(root)
    if not os.path.isdir(root):
        raise CatalogError(f"Library root is not an accessible directory: {root}")

    # Walk errors below are skipped, the root itself must be readable
    try:
        with os.scandir(root):
            pass
    except OSError as e:
        raise CatalogError(f"Cannot list library root {root}: {e}") from e

    logger.info(f"Scanning {root} for video files...")

    pairs = []
    for dirpath, _, filenames in os.walk(root, onerror=_log_walk_error):
        for filename in filenames:
            full_path = os.path.join(dirpath, filename)
            if not os.path.isfile(full_path) or not is_video_file(full_path):
                continue
            pairs.append((catalog_key(filename), full_path))

    catalog = Catalog.from_entries(pairs)
    logger.info(f"Scan complete: {len(catalog)} video files catalogued")
    return catalog


def save_catalog_cache(catalog: Mapping[str, str], cache_file: str) -> None:
    """
    Write the catalog to a gzip-compressed JSON-lines cache.

    Args:
        catalog: Mapping to persist
        cache_file: Destination path, parent directories are created

    Raises:
        CatalogError: If the cache file cannot be written
    """
    cache_dir = os.path.dirname(cache_file)
    try:
        if cache_dir and not os.path.exists(cache_dir):
            os.makedirs(cache_dir)
        with gzip.open(cache_file, 'wt', encoding='utf-8', errors='surrogateescape') as f:
            for name, path in catalog.items():
                f.write(json.dumps({name: path}, ensure_ascii=False))
                f.write('\n')
    except OSError as e:
        raise CatalogError(f"Could not write catalog cache {cache_file}: {e}") from e

    logger.info(f"Catalog cache saved to {cache_file} ({len(catalog)} entries)")


def load_catalog_cache(cache_file: str) -> Catalog:
    """
    Load a catalog from a cache written by save_catalog_cache.

    Args:
        cache_file: Path to the compressed cache

    Returns:
        Catalog: The cached mapping

    Raises:
        CatalogError: If the file is unreadable or a line is not a JSON object
            of string names to string paths
    """
    pairs = []
    try:
        with gzip.open(cache_file, 'rt', encoding='utf-8', errors='surrogateescape') as f:
            for line_number, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                record = json.loads(line)
                if not isinstance(record, dict):
                    raise CatalogError(f"Line {line_number} of {cache_file} is not a JSON object")
                if not all(isinstance(k, str) and isinstance(v, str) for k, v in record.items()):
                    raise CatalogError(f"Line {line_number} of {cache_file} has a non-string name or path")
                pairs.extend(record.items())
    except (OSError, EOFError, zlib.error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CatalogError(f"Could not read catalog cache {cache_file}: {e}") from e

    catalog = Catalog.from_entries(pairs)
    logger.info(f"Loaded {len(catalog)} entries from catalog cache {cache_file}")
    return catalog


def load_or_build_catalog(root: str, cache_file: Optional[str] = None, refresh: bool = False) -> Catalog:
    """
    Load the catalog from cache when available, otherwise scan the library.

    Args:
        root: Library root directory
        cache_file: Optional cache path. Read if it exists, written after a scan.
        refresh: Ignore an existing cache and rescan

    Returns:
        Catalog: The catalog for this run

    Raises:
        CatalogError: If the cache is corrupt or the root cannot be scanned
    """
    if cache_file and not refresh and os.path.exists(cache_file):
        return load_catalog_cache(cache_file)

    catalog = scan_directory(root)
    if cache_file:
        save_catalog_cache(catalog, cache_file)
    return catalog
