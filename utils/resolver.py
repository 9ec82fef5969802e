"""
Resolver - decide which version of a title is redundant

Resolution Rules:
    1. Neither 'stem-C.ext' nor 'stem-UC.ext' is catalogued: keep 'stem.ext'
    2. Exactly one of them is catalogued: the suffixed file supersedes the
       original, delete 'stem.ext' and its sidecars
    3. Both are catalogued: delete 'stem.ext' as in rule 2, and also delete
       'stem-C.ext' and its sidecars. The UC version is always kept.

Every decision is made against the same read-only catalog, so entries can be
resolved in any order and in parallel.
"""

import os
from enum import Enum
from dataclasses import dataclass, field
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Mapping, Tuple

from utils.logging_config import get_logger
from utils.sidecar import expand_sidecars
from utils.version_keys import derive_version_keys, split_name

logger = get_logger(__name__)


class Resolution(Enum):
    KEEP = 'keep'
    REMOVE_PRIMARY = 'remove_primary'
    REMOVE_CONFLICTING_VARIANT = 'remove_conflicting_variant'


@dataclass(frozen=True)
class RemovalPlan:
    """A video file and its sidecars, to be disposed of together"""
    primary_name: str
    primary_path: str
    sidecars: Tuple[str, ...]
    reason: str

    @property
    def paths(self) -> List[str]:
        """Primary path first, then sidecars"""
        return [self.primary_path, *self.sidecars]


@dataclass
class ResolutionDecision:
    """Outcome of resolving one catalog entry"""
    name: str
    path: str
    resolution: Resolution
    plans: List[RemovalPlan] = field(default_factory=list)


def build_removal_plan(name: str, path: str, reason: str) -> RemovalPlan:
    """
    Build the removal plan for a video file.

    Args:
        name: File base name, used to derive the sidecar stem
        path: Absolute path of the file
        reason: Human readable reason, carried into logs and reports

    Returns:
        RemovalPlan: The file plus its sidecars in the same directory
    """
    stem, _ = split_name(name)
    sidecars = expand_sidecars(stem, os.path.dirname(path))
    return RemovalPlan(
        primary_name=name,
        primary_path=path,
        sidecars=tuple(sidecars),
        reason=reason,
    )


def resolve_entry(name: str, path: str, catalog: Mapping[str, str]) -> ResolutionDecision:
    """
    Resolve a single catalog entry.

    Args:
        name: Catalog key of the entry
        path: Path of the entry
        catalog: The full catalog, only queried for membership

    Returns:
        ResolutionDecision: KEEP with no plans, or the plans to execute
    """
    keys = derive_version_keys(name)
    has_c = keys.c in catalog
    has_uc = keys.uc in catalog

    if not has_c and not has_uc:
        return ResolutionDecision(name, path, Resolution.KEEP)

    if has_c and has_uc:
        primary_plan = build_removal_plan(
            name, path, f"Superseded by {keys.c} and {keys.uc}"
        )
        variant_plan = build_removal_plan(
            keys.c, catalog[keys.c], f"UC version exists ({keys.uc}), delete C version"
        )
        return ResolutionDecision(
            name, path, Resolution.REMOVE_CONFLICTING_VARIANT, [primary_plan, variant_plan]
        )

    alternate = keys.c if has_c else keys.uc
    plan = build_removal_plan(name, path, f"Superseded by {alternate}")
    return ResolutionDecision(name, path, Resolution.REMOVE_PRIMARY, [plan])


def resolve_catalog(catalog: Mapping[str, str], max_workers: int = 4) -> List[ResolutionDecision]:
    """
    Resolve every catalog entry using parallel workers.

    Args:
        catalog: Read-only catalog snapshot
        max_workers: Number of parallel workers

    Returns:
        List[ResolutionDecision]: Decisions that remove something, sorted by name
    """
    logger.info(f"Resolving {len(catalog)} catalog entries with {max_workers} workers...")

    decisions: List[ResolutionDecision] = []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_name = {
            executor.submit(resolve_entry, name, path, catalog): name
            for name, path in catalog.items()
        }

        for future in as_completed(future_to_name):
            name = future_to_name[future]
            try:
                decision = future.result()
                if decision.resolution is not Resolution.KEEP:
                    decisions.append(decision)
            except Exception as e:
                logger.error(f"Error resolving {name}: {str(e)}")

    decisions.sort(key=lambda d: d.name)

    total_plans = sum(len(d.plans) for d in decisions)
    logger.info(f"Found {total_plans} redundant files across {len(decisions)} titles")

    return decisions
