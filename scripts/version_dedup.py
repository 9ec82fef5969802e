#!/usr/bin/env python3
"""
Version Dedup Script for Media Libraries

This script scans a local media library and removes video files that are
superseded by an alternate release version of the same title, together with
their sidecar metadata files.

Naming Convention:
    {STEM}.{EXT}        original release
    {STEM}-C.{EXT}      C version
    {STEM}-UC.{EXT}     UC version

    Sidecars: {STEM}-thumb.jpg, {STEM}-fanart.jpg, {STEM}-poster.jpg, {STEM}.nfo

Deduplication Rules:
    1. If a C or UC version of a file exists, delete the original
    2. If both C and UC versions exist, also delete the C version (UC wins)

Usage:
    python3 scripts/version_dedup.py <library_path> [--dry-run] [--cache-file FILE]
                                     [--backup-dir DIR] [--workers N]

Examples:
    python3 scripts/version_dedup.py /mnt/media/Movies --dry-run
    python3 scripts/version_dedup.py /mnt/media/Movies --cache-file cache/movies.jsonl.gz
    python3 scripts/version_dedup.py /mnt/media/Movies --backup-dir /mnt/media/.dedup_backup

Output:
    - CSV report in reports/VersionDedup/YYYY/MM/
    - Summary statistics in console

Exit codes:
    0: Run completed (individual files may have failed, see report)
    1: Catalog could not be built or execution error
"""

import os
import sys
import csv
import argparse
from datetime import datetime
from typing import List

# Make project packages importable; library paths stay relative to the caller's cwd
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

# Import unified configuration
try:
    from config import LOG_LEVEL
except ImportError:
    LOG_LEVEL = 'INFO'

try:
    from config import (
        VERSION_DEDUP_LOG_FILE, VERSION_DEDUP_REPORT_DIR,
        VERSION_DEDUP_CACHE_FILE, VERSION_DEDUP_BACKUP_DIR,
        VERSION_DEDUP_WORKERS,
    )
except ImportError:
    VERSION_DEDUP_LOG_FILE = 'logs/version_dedup.log'
    VERSION_DEDUP_REPORT_DIR = 'reports/VersionDedup'
    VERSION_DEDUP_CACHE_FILE = None
    VERSION_DEDUP_BACKUP_DIR = None
    VERSION_DEDUP_WORKERS = 4

from utils.logging_config import setup_logging, get_logger
from utils.path_helper import ensure_dated_dir
from utils.catalog import CatalogError, load_or_build_catalog
from utils.resolver import ResolutionDecision, resolve_catalog
from utils.cleanup import CleanupConfig, CleanupSummary, execute_decisions

# Setup logging
setup_logging(log_level=LOG_LEVEL)
logger = get_logger(__name__)


def generate_csv_report(
    decisions: List[ResolutionDecision],
    summary: CleanupSummary,
    output_dir: str = VERSION_DEDUP_REPORT_DIR
) -> str:
    """
    Generate CSV report with one row per attempted path.

    Args:
        decisions: Decisions from the resolver
        summary: Outcomes from the cleanup executor
        output_dir: Base directory for reports

    Returns:
        str: Path to the generated CSV file
    """
    dated_dir = ensure_dated_dir(output_dir)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    filename = f"VersionDedup_Report_{timestamp}.csv"
    csv_path = os.path.join(dated_dir, filename)

    # Map each plan back to the title it was resolved from
    resolution_by_plan = {}
    for decision in decisions:
        for plan in decision.plans:
            resolution_by_plan[id(plan)] = decision

    with open(csv_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)

        writer.writerow([
            'Title',
            'Resolution',
            'Removed File',
            'Reason',
            'Path',
            'Status',
            'Message'
        ])

        for result in summary.results:
            decision = resolution_by_plan.get(id(result.plan))
            for outcome in result.outcomes:
                writer.writerow([
                    decision.name if decision else '',
                    decision.resolution.value if decision else '',
                    result.plan.primary_name,
                    result.plan.reason,
                    outcome.path,
                    outcome.status.value,
                    outcome.message
                ])

    logger.info(f"CSV report saved to: {csv_path}")
    return csv_path


def print_summary(
    csv_path: str,
    decisions: List[ResolutionDecision],
    summary: CleanupSummary,
    config: CleanupConfig
) -> None:
    """
    Print execution summary.

    Args:
        csv_path: Path to the generated CSV report, empty if disabled
        decisions: Decisions from the resolver
        summary: Outcomes from the cleanup executor
        config: Run options
    """
    logger.info("")
    logger.info("=" * 60)
    logger.info("EXECUTION SUMMARY")
    logger.info("=" * 60)

    mode = "[DRY-RUN MODE]" if config.dry_run else "[LIVE MODE]"
    logger.info(f"Mode: {mode}")
    if config.backup_dir:
        logger.info(f"Backup folder: {config.backup_dir}")
    if csv_path:
        logger.info(f"CSV Report: {csv_path}")

    logger.info(f"Titles with redundant versions: {len(decisions)}")
    logger.info(f"Removal plans: {len(summary.results)}")

    if config.dry_run:
        logger.info(f"Paths to remove: {summary.dry_run}")
    else:
        logger.info(f"Paths removed: {summary.removed}")
        logger.info(f"Paths not found: {summary.missing}")
        if summary.failed > 0:
            logger.info(f"Failed removals: {summary.failed}")

    logger.info("=" * 60)

    if config.dry_run:
        logger.info("This was a DRY RUN. No files were actually removed.")
        logger.info("Run without --dry-run flag to perform actual removal.")
    elif summary.failed > 0:
        logger.warning(f"Completed with {summary.failed} failures. Check logs for details.")
    else:
        logger.info("✓ All removals completed successfully")


def positive_int(value: str) -> int:
    """argparse type for worker counts"""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_arguments(argv=None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description='Remove superseded C/UC release versions from a media library',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s /mnt/media/Movies --dry-run
  %(prog)s /mnt/media/Movies --cache-file cache/movies.jsonl.gz
  %(prog)s /mnt/media/Movies --cache-file cache/movies.jsonl.gz --refresh-cache
  %(prog)s /mnt/media/Movies --backup-dir /mnt/media/.dedup_backup
        """
    )

    parser.add_argument(
        'path',
        help='Root directory of the media library'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Report what would be removed without touching any file'
    )

    parser.add_argument(
        '--cache-file',
        default=VERSION_DEDUP_CACHE_FILE,
        help='Compressed catalog cache. Loaded instead of scanning when it exists, written after a scan otherwise'
    )

    parser.add_argument(
        '--refresh-cache',
        action='store_true',
        help='Rescan the library even if the catalog cache exists'
    )

    parser.add_argument(
        '--backup-dir',
        default=VERSION_DEDUP_BACKUP_DIR,
        help='Move redundant files into this folder instead of deleting them'
    )

    parser.add_argument(
        '--workers',
        type=positive_int,
        default=VERSION_DEDUP_WORKERS,
        help=f'Number of parallel workers for resolution (default: {VERSION_DEDUP_WORKERS})'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=LOG_LEVEL,
        help=f'Logging level (default: {LOG_LEVEL})'
    )

    parser.add_argument(
        '--log-file',
        default=VERSION_DEDUP_LOG_FILE,
        help='Also write the log to this file'
    )

    parser.add_argument(
        '--report-dir',
        default=VERSION_DEDUP_REPORT_DIR,
        help=f'Base directory for CSV reports (default: {VERSION_DEDUP_REPORT_DIR})'
    )

    parser.add_argument(
        '--no-report',
        action='store_true',
        help='Do not write the CSV report'
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main entry point for the version dedup script.

    Returns:
        int: Exit code (0 for success, 1 for failure)
    """
    args = parse_arguments(argv)

    # Reconfigure logging with specified level
    setup_logging(log_file=args.log_file, log_level=args.log_level)

    config = CleanupConfig(dry_run=args.dry_run, backup_dir=args.backup_dir)

    logger.info("=" * 60)
    logger.info("VERSION DEDUP SCRIPT")
    logger.info(f"Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info(f"Library: {args.path}")
    logger.info(f"Mode: {'DRY-RUN' if config.dry_run else 'LIVE'}")
    logger.info(f"Disposal: {'Backup to ' + config.backup_dir if config.backup_dir else 'Delete'}")
    if args.cache_file:
        logger.info(f"Catalog cache: {args.cache_file}{' (refresh)' if args.refresh_cache else ''}")
    logger.info(f"Workers: {args.workers}")
    logger.info("=" * 60)

    try:
        # Step 1: Build catalog
        logger.info("")
        logger.info("PHASE 1: Building catalog...")
        try:
            catalog = load_or_build_catalog(args.path, args.cache_file, refresh=args.refresh_cache)
        except CatalogError as e:
            logger.error(f"Fatal error: {str(e)}")
            return 1

        if not catalog:
            logger.warning("No video files found. Nothing to deduplicate.")
            return 0

        # Step 2: Resolve versions
        logger.info("")
        logger.info("PHASE 2: Resolving versions...")
        decisions = resolve_catalog(catalog, max_workers=args.workers)

        if not decisions:
            logger.info("No redundant versions found. Nothing to remove.")
            return 0

        # Step 3: Execute removals
        logger.info("")
        logger.info("PHASE 3: Executing removals...")
        summary = execute_decisions(decisions, config, max_workers=args.workers)

        # Step 4: Generate report
        csv_path = ''
        if not args.no_report:
            logger.info("")
            logger.info("PHASE 4: Generating report...")
            csv_path = generate_csv_report(decisions, summary, args.report_dir)

        # Step 5: Print summary
        print_summary(csv_path, decisions, summary, config)

        return 0

    except Exception as e:
        logger.error(f"Fatal error: {str(e)}")
        logger.exception("Stack trace:")
        return 1


if __name__ == '__main__':
    sys.exit(main())
