"""
Path Helper - Utility functions for generating dated subdirectory paths

Reports are grouped in YYYY/MM subdirectories so a long-running library does
not pile every run's CSV into one folder.

Directory Structure:
    reports/
    └── VersionDedup/YYYY/MM/    # One CSV per run

Usage:
    from utils.path_helper import get_dated_report_path, ensure_dated_dir

    # Get path for today's report
    csv_path = get_dated_report_path('reports/VersionDedup', 'report.csv')
    # Returns: 'reports/VersionDedup/2026/10/report.csv'

    # Get path for a specific date
    csv_path = get_dated_report_path('reports/VersionDedup', 'report.csv', datetime(2025, 6, 15))
    # Returns: 'reports/VersionDedup/2025/06/report.csv'
"""

import os
from datetime import datetime
from typing import Optional


def get_dated_subdir(base_dir: str, date: Optional[datetime] = None) -> str:
    """
    Generate a dated subdirectory path with YYYY/MM format.

    Args:
        base_dir: Base directory (e.g., 'reports/VersionDedup')
        date: Date to use for subdirectory. Defaults to current date if None.

    Returns:
        Path with YYYY/MM subdirectory (e.g., 'reports/VersionDedup/2025/12')
    """
    if date is None:
        date = datetime.now()

    year = date.strftime('%Y')
    month = date.strftime('%m')

    return os.path.join(base_dir, year, month)


def get_dated_report_path(base_dir: str, filename: str, date: Optional[datetime] = None) -> str:
    """
    Generate full path for a report file in a dated subdirectory.

    Args:
        base_dir: Base directory (e.g., 'reports/VersionDedup')
        filename: Name of the file (e.g., 'VersionDedup_Report_20251223_101500.csv')
        date: Date to use for subdirectory. Defaults to current date if None.

    Returns:
        Full path with YYYY/MM subdirectory
    """
    subdir = get_dated_subdir(base_dir, date)
    return os.path.join(subdir, filename)


def ensure_dated_dir(base_dir: str, date: Optional[datetime] = None) -> str:
    """
    Ensure the dated subdirectory exists and return its path.

    Args:
        base_dir: Base directory (e.g., 'reports/VersionDedup')
        date: Date to use for subdirectory. Defaults to current date if None.

    Returns:
        Path to the created/existing dated subdirectory
    """
    subdir = get_dated_subdir(base_dir, date)

    if not os.path.exists(subdir):
        os.makedirs(subdir)

    return subdir
