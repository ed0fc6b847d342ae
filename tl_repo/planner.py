"""
Update Planner
Computes which files changed and which download strategy to use
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from config import (
    INCREMENTAL_SIZE_THRESHOLD,
    INCREMENTAL_UPDATE_LIMIT_DEFAULT,
    INCREMENTAL_UPDATE_LIMIT_RATE_LIMITED,
    RATE_LIMITED_HOST_MARKERS,
    ZIP_SIZE_WARNING_RATIO,
)
from utils.core.logging import get_logger
from utils.core.paths import is_safe_repo_path, repo_path_to_fs

from .models import RepoCache, RepoIndex, Strategy, UpdatePlan

log = get_logger()

MIB = 1024 * 1024


@dataclass(frozen=True)
class StrategyTuning:
    """Product tuning for the incremental vs. archive decision"""
    rate_limited_file_limit: int = INCREMENTAL_UPDATE_LIMIT_RATE_LIMITED
    file_limit: int = INCREMENTAL_UPDATE_LIMIT_DEFAULT
    size_threshold: int = INCREMENTAL_SIZE_THRESHOLD
    overhead_warning_ratio: float = ZIP_SIZE_WARNING_RATIO
    rate_limited_hosts: Sequence[str] = RATE_LIMITED_HOST_MARKERS


DEFAULT_TUNING = StrategyTuning()


def is_rate_limited_host(url: str, tuning: StrategyTuning = DEFAULT_TUNING) -> bool:
    """Whether `url` points at a host that throttles many small requests"""
    return any(marker in url for marker in tuning.rate_limited_hosts)


def decide_strategy(file_count: int, update_size: int, base_url: str,
                    tuning: StrategyTuning = DEFAULT_TUNING) -> Strategy:
    """Pick the archive download when there are too many files or too many bytes"""
    if is_rate_limited_host(base_url, tuning):
        file_limit = tuning.rate_limited_file_limit
        log.debug(f"Rate-limited hosting detected, using conservative limit: {file_limit}")
    else:
        file_limit = tuning.file_limit
        log.debug(f"CDN/custom hosting detected, using aggressive limit: {file_limit}")

    size_exceeds_threshold = update_size > tuning.size_threshold
    if size_exceeds_threshold:
        log.debug(f"Update size ({update_size // MIB} MB) exceeds threshold, preferring ZIP download")

    use_zip = file_count > file_limit or size_exceeds_threshold
    log.debug(
        f"Download strategy decision: files={file_count}, limit={file_limit}, "
        f"size={update_size // MIB} MB, use_zip={use_zip}"
    )
    return Strategy.ARCHIVE if use_zip else Strategy.INCREMENTAL


def is_large_overhead(total_size: int, update_size: int, strategy: Strategy,
                      tuning: StrategyTuning = DEFAULT_TUNING) -> bool:
    """Whether the archive download is much larger than the changes it carries"""
    if strategy is not Strategy.ARCHIVE:
        return False
    ratio = total_size / max(update_size, 1)
    return ratio >= tuning.overhead_warning_ratio


def plan_update(index: RepoIndex, cache: RepoCache, pedantic: bool = False,
                localized_data_dir: Optional[Path] = None,
                tuning: StrategyTuning = DEFAULT_TUNING) -> UpdatePlan:
    """Diff the remote index against the local cache

    Args:
        index: freshly fetched manifest
        cache: last persisted cache
        pedantic: also re-fetch unchanged files missing from disk
        localized_data_dir: where files live locally, used by pedantic mode
        tuning: strategy thresholds

    Returns:
        UpdatePlan; `files` is empty when nothing needs downloading
    """
    is_new_repo = index.base_url != cache.base_url
    update_files = []
    update_size = 0
    total_size = 0

    for repo_file in index.files:
        if not is_safe_repo_path(repo_file.path):
            log.warning(f"File path '{repo_file.path}' sanitized")
            continue

        if is_new_repo:
            # The directory is wiped, so every file must be fetched again
            updated = True
        else:
            cached_hash = cache.files.get(repo_file.path)
            if cached_hash is None:
                updated = True
            elif cached_hash == repo_file.hash:
                updated = pedantic and (
                    localized_data_dir is None
                    or not repo_path_to_fs(localized_data_dir, repo_file.path).is_file()
                )
            else:
                updated = True

        if updated:
            update_files.append(repo_file)
            update_size += repo_file.size
        total_size += repo_file.size

    strategy = Strategy.INCREMENTAL
    large_overhead = False
    if update_files:
        strategy = decide_strategy(len(update_files), update_size, index.base_url, tuning)
        large_overhead = is_large_overhead(total_size, update_size, strategy, tuning)

    return UpdatePlan(
        is_new_repo=is_new_repo,
        base_url=index.base_url,
        zip_url=index.zip_url,
        zip_dir=index.zip_dir,
        files=update_files,
        cached_files=dict(cache.files),
        update_size=update_size,
        total_size=total_size,
        strategy=strategy,
        large_overhead=large_overhead,
    )
