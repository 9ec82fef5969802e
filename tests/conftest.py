"""
Pytest configuration and fixtures for Media Version Dedup tests.
"""
import os
import sys

# Add project root to path for imports
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

import pytest
import tempfile
import shutil


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield temp_path
    # Cleanup after test
    shutil.rmtree(temp_path, ignore_errors=True)


def create_files(root, relative_paths):
    """Create empty files under root and return their absolute paths."""
    created = []
    for relative_path in relative_paths:
        full_path = os.path.join(root, relative_path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, 'w', encoding='utf-8') as f:
            f.write(relative_path)
        created.append(full_path)
    return created


@pytest.fixture
def sample_library(temp_dir):
    """
    Create a small library covering every resolution outcome.

    Movie/      original + UC version (original is redundant)
    Both/       original + C + UC (original and C are redundant)
    Single/     original only (kept)
    """
    create_files(temp_dir, [
        'Movie/movie.mkv',
        'Movie/movie.nfo',
        'Movie/movie-thumb.jpg',
        'Movie/movie-poster.jpg',
        'Movie/movie-UC.mkv',
        'Movie/movie-UC.nfo',
        'Both/both.mp4',
        'Both/both.nfo',
        'Both/both-fanart.jpg',
        'Both/both-C.mp4',
        'Both/both-C.nfo',
        'Both/both-C-thumb.jpg',
        'Both/both-UC.mp4',
        'Both/both-UC.nfo',
        'Single/single.avi',
        'Single/single.nfo',
        'Single/notes.txt',
    ])
    return temp_dir
