"""
Cleanup - dispose of the files in removal plans

Each path is attempted exactly once and independently of the others: a
missing or locked file is reported and the rest of the plan (and of the run)
carries on. A path that was already removed earlier in the run is reported
as missing, which is not an error.

Disposal Modes:
    - delete:   os.remove the file
    - backup:   move the file into a backup folder instead of deleting it
    - dry run:  report what would be removed, touch nothing
"""

import os
import errno
import shutil
from enum import Enum
from dataclasses import dataclass, field
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, List, Optional

from utils.logging_config import get_logger
from utils.resolver import RemovalPlan, ResolutionDecision

logger = get_logger(__name__)


@dataclass(frozen=True)
class CleanupConfig:
    """Run options for the executor, built once at startup"""
    dry_run: bool = False
    backup_dir: Optional[str] = None


class RemovalStatus(Enum):
    REMOVED = 'removed'
    DRY_RUN = 'dry_run'
    MISSING = 'missing'
    FAILED = 'failed'


class PlanState(Enum):
    COMPLETED = 'completed'
    PARTIALLY_FAILED = 'partially_failed'


@dataclass
class RemovalOutcome:
    """Result of one disposal attempt"""
    path: str
    status: RemovalStatus
    message: str = ""


@dataclass
class PlanResult:
    """Outcomes for every path of a removal plan"""
    plan: RemovalPlan
    outcomes: List[RemovalOutcome] = field(default_factory=list)

    @property
    def state(self) -> PlanState:
        if any(o.status is RemovalStatus.FAILED for o in self.outcomes):
            return PlanState.PARTIALLY_FAILED
        return PlanState.COMPLETED


@dataclass
class CleanupSummary:
    """Counts across the whole run"""
    removed: int = 0
    dry_run: int = 0
    missing: int = 0
    failed: int = 0
    results: List[PlanResult] = field(default_factory=list)

    def add(self, result: PlanResult) -> None:
        self.results.append(result)
        for outcome in result.outcomes:
            if outcome.status is RemovalStatus.REMOVED:
                self.removed += 1
            elif outcome.status is RemovalStatus.DRY_RUN:
                self.dry_run += 1
            elif outcome.status is RemovalStatus.MISSING:
                self.missing += 1
            else:
                self.failed += 1


class Disposer:
    """Gets rid of a single file. Raises OSError on failure."""

    description = 'dispose'

    def dispose(self, path: str) -> None:
        raise NotImplementedError


class DeleteDisposer(Disposer):
    description = 'Removed'

    def dispose(self, path: str) -> None:
        os.remove(path)


class BackupDisposer(Disposer):
    """Moves files into a backup folder, never overwriting an earlier backup."""

    description = 'Moved to backup'

    def __init__(self, backup_dir: str):
        self.backup_dir = backup_dir

    def _target_path(self, path: str) -> str:
        name = os.path.basename(path)
        target = os.path.join(self.backup_dir, name)
        root, ext = os.path.splitext(name)
        counter = 1
        while os.path.exists(target):
            target = os.path.join(self.backup_dir, f"{root}.{counter}{ext}")
            counter += 1
        return target

    def dispose(self, path: str) -> None:
        if not os.path.lexists(path):
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
        os.makedirs(self.backup_dir, exist_ok=True)
        shutil.move(path, self._target_path(path))


def create_disposer(config: CleanupConfig) -> Disposer:
    """Pick the disposer matching the run configuration"""
    if config.backup_dir:
        return BackupDisposer(config.backup_dir)
    return DeleteDisposer()


def remove_path(path: str, disposer: Disposer, dry_run: bool = False) -> RemovalOutcome:
    """
    Dispose of one path, reporting instead of raising.

    Args:
        path: File to dispose of
        disposer: How to dispose of it
        dry_run: If True, only report

    Returns:
        RemovalOutcome: What happened to the path
    """
    if dry_run:
        message = f"[DRY-RUN] Would remove: {path}"
        logger.info(message)
        return RemovalOutcome(path, RemovalStatus.DRY_RUN, message)

    try:
        disposer.dispose(path)
    except FileNotFoundError:
        message = f"File not found, skipped: {path}"
        logger.warning(message)
        return RemovalOutcome(path, RemovalStatus.MISSING, message)
    except OSError as e:
        message = f"Error removing {path}: {e}"
        logger.error(message)
        return RemovalOutcome(path, RemovalStatus.FAILED, message)

    message = f"{disposer.description}: {path}"
    logger.info(message)
    return RemovalOutcome(path, RemovalStatus.REMOVED, message)


def execute_plan(plan: RemovalPlan, config: CleanupConfig, disposer: Optional[Disposer] = None) -> PlanResult:
    """
    Attempt every path of a removal plan.

    Args:
        plan: Primary file and sidecars to dispose of
        config: Run options
        disposer: Disposer to use, created from config when None

    Returns:
        PlanResult: One outcome per path, in plan order
    """
    if disposer is None:
        disposer = create_disposer(config)

    logger.info(f"{'[DRY-RUN] ' if config.dry_run else ''}{plan.primary_name}: {plan.reason}")

    result = PlanResult(plan)
    for path in plan.paths:
        result.outcomes.append(remove_path(path, disposer, config.dry_run))
    return result


def execute_decisions(
    decisions: Iterable[ResolutionDecision],
    config: CleanupConfig,
    max_workers: int = 4
) -> CleanupSummary:
    """
    Execute the removal plans of all decisions.

    Args:
        decisions: Decisions from the resolver
        config: Run options
        max_workers: Number of parallel workers, only used in dry run

    Returns:
        CleanupSummary: Aggregated outcomes
    """
    plans = [plan for decision in decisions for plan in decision.plans]
    summary = CleanupSummary()

    if not plans:
        logger.info("No files to remove")
        return summary

    disposer = create_disposer(config)
    logger.info(f"{'[DRY-RUN] ' if config.dry_run else ''}Processing {len(plans)} removal plans...")

    # Use a single worker for actual removal to be safe
    effective_workers = max_workers if config.dry_run else 1

    with ThreadPoolExecutor(max_workers=effective_workers) as executor:
        future_to_plan = {
            executor.submit(execute_plan, plan, config, disposer): plan
            for plan in plans
        }

        for future in as_completed(future_to_plan):
            plan = future_to_plan[future]
            try:
                summary.add(future.result())
            except Exception as e:
                summary.failed += 1
                logger.error(f"Error executing plan for {plan.primary_path}: {str(e)}")

    summary.results.sort(key=lambda r: r.plan.primary_path)
    return summary
