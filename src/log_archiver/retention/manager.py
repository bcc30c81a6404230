"""Prune old containers from the destination directory after archiving."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Union

from log_archiver.archive.naming import CONTAINER_EXTENSIONS
from log_archiver.archive.stats import RunStatistics
from log_archiver.utils.time_utils import datetime_to_ns, now_local

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class KeepLastN:
    """Keep the `count` newest containers directly under the destination."""

    count: int

    def describe(self) -> str:
        return f"keep_last_n={self.count}"


@dataclass(frozen=True, slots=True)
class AgeCutoff:
    """Delete any file under the destination older than `days`."""

    days: int

    def describe(self) -> str:
        return f"retention_days={self.days}"


RetentionPolicy = Union[KeepLastN, AgeCutoff]


@dataclass(slots=True)
class RetentionResult:
    """Files removed by one sweep and the errors it tolerated."""

    policy: RetentionPolicy | None
    removed: list[Path] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def select_retention_policy(keep_last_n: int, retention_days: int) -> RetentionPolicy | None:
    """Keep-last-N wins whenever it is positive; age cutoff applies only otherwise."""

    if keep_last_n > 0:
        return KeepLastN(count=keep_last_n)
    if retention_days > 0:
        return AgeCutoff(days=retention_days)
    return None


def _is_container(name: str) -> bool:
    return name.lower().endswith(CONTAINER_EXTENSIONS)


def _remove(
    path: Path,
    result: RetentionResult,
    reason: str,
    remove: Callable[[Path], None],
    logger: logging.Logger,
) -> None:
    try:
        remove(path)
    except OSError as exc:
        logger.warning("retention.remove_failed path=%s error=%s", path, exc)
        result.errors.append(f"retention remove {path}: {exc}")
        return
    result.removed.append(path)
    logger.info("retention.removed path=%s reason=%s", path, reason)


def _sweep_keep_last_n(
    dest_root: Path,
    policy: KeepLastN,
    result: RetentionResult,
    remove: Callable[[Path], None],
    logger: logging.Logger,
) -> None:
    containers: list[tuple[int, str, Path]] = []
    try:
        entries = list(os.scandir(dest_root))
    except OSError as exc:
        result.errors.append(f"retention list {dest_root}: {exc}")
        logger.error("retention.list_failed dest_root=%s error=%s", dest_root, exc)
        return

    for entry in entries:
        if not _is_container(entry.name):
            continue
        try:
            if not entry.is_file():
                continue
            mtime_ns = entry.stat().st_mtime_ns
        except OSError as exc:
            logger.warning("retention.stat_failed path=%s error=%s", entry.path, exc)
            continue
        containers.append((mtime_ns, entry.name, Path(entry.path)))

    containers.sort(key=lambda item: (item[0], item[1]), reverse=True)
    for _mtime_ns, _name, path in containers[policy.count :]:
        _remove(path, result, policy.describe(), remove, logger)


def _sweep_age_cutoff(
    dest_root: Path,
    policy: AgeCutoff,
    now: datetime,
    result: RetentionResult,
    remove: Callable[[Path], None],
    logger: logging.Logger,
) -> None:
    cutoff_ns = datetime_to_ns(now - timedelta(days=policy.days))

    def _on_walk_error(exc: OSError) -> None:
        result.errors.append(f"retention walk {getattr(exc, 'filename', dest_root)}: {exc}")
        logger.warning("retention.walk_failed error=%s", exc)

    for dir_path, _dir_names, file_names in os.walk(dest_root, onerror=_on_walk_error):
        for file_name in sorted(file_names):
            path = Path(dir_path) / file_name
            try:
                mtime_ns = path.stat().st_mtime_ns
            except OSError as exc:
                logger.warning("retention.stat_failed path=%s error=%s", path, exc)
                continue
            if mtime_ns < cutoff_ns:
                _remove(path, result, policy.describe(), remove, logger)


def apply_retention(
    dest_root: Path,
    policy: RetentionPolicy | None,
    *,
    now: datetime | None = None,
    stats: RunStatistics | None = None,
    remove: Callable[[Path], None] = os.remove,
    logger: logging.Logger | None = None,
) -> RetentionResult:
    """Run one retention sweep over the current contents of `dest_root`.

    Errors are collected and the sweep keeps going; they are copied into `stats` when given.
    """

    effective_logger = logger or LOGGER
    result = RetentionResult(policy=policy)
    if policy is None:
        effective_logger.info("retention.disabled dest_root=%s", dest_root)
        return result
    if not dest_root.is_dir():
        effective_logger.info("retention.dest_missing dest_root=%s", dest_root)
        return result

    effective_logger.info("retention.start dest_root=%s policy=%s", dest_root, policy.describe())
    if isinstance(policy, KeepLastN):
        _sweep_keep_last_n(dest_root, policy, result, remove, effective_logger)
    else:
        _sweep_age_cutoff(dest_root, policy, now or now_local(), result, remove, effective_logger)

    if stats is not None:
        stats.record_retention_removals(len(result.removed))
        stats.record_errors(result.errors)
    effective_logger.info(
        "retention.complete removed=%s errors=%s",
        len(result.removed),
        len(result.errors),
    )
    return result
