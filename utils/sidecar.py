"""
Sidecar files stored next to a video by naming convention.

For 'movie.mkv' in '/library/Movie' the sidecars are:
    /library/Movie/movie-thumb.jpg
    /library/Movie/movie-fanart.jpg
    /library/Movie/movie-poster.jpg
    /library/Movie/movie.nfo
"""

import os
from typing import List

try:
    from config import SIDECAR_SUFFIXES
except ImportError:
    SIDECAR_SUFFIXES = ('-thumb.jpg', '-fanart.jpg', '-poster.jpg', '.nfo')


def expand_sidecars(stem: str, parent_dir: str) -> List[str]:
    """
    List the sidecar paths for a stem, whether or not the files exist.

    Args:
        stem: Video file name without extension
        parent_dir: Directory holding the video file

    Returns:
        List[str]: Sidecar paths in SIDECAR_SUFFIXES order
    """
    return [os.path.join(parent_dir, stem + suffix) for suffix in SIDECAR_SUFFIXES]
