"""
Example configuration file for Media Version Dedup
Copy this file to config.py and adjust the values
"""

# === Logging Configuration ===
LOG_LEVEL = 'INFO'  # Options: DEBUG, INFO, WARNING, ERROR, CRITICAL
VERSION_DEDUP_LOG_FILE = 'logs/version_dedup.log'

# === Directory Configuration ===
VERSION_DEDUP_REPORT_DIR = 'reports/VersionDedup'

# Catalog cache (gzip JSON lines). Set to None to always rescan the library.
VERSION_DEDUP_CACHE_FILE = None  # e.g. 'cache/catalog.jsonl.gz'

# Move redundant files here instead of deleting them. None means delete.
VERSION_DEDUP_BACKUP_DIR = None  # e.g. '/library/.dedup_backup'

# === Dedup Configuration ===
VERSION_DEDUP_WORKERS = 4  # Parallel workers for resolution

# Sidecar files removed together with a video, appended to the video's stem
SIDECAR_SUFFIXES = ('-thumb.jpg', '-fanart.jpg', '-poster.jpg', '.nfo')
