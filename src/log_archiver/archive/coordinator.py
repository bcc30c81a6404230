"""Fan out one build, verify and delete task per group onto a bounded thread pool."""

from __future__ import annotations

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Sequence

from log_archiver.archive.builder import ArchiveRecord, build_group_archive, build_single_file_archive
from log_archiver.archive.deletion import delete_verified_sources
from log_archiver.archive.stats import GroupOutcome, RunStatistics
from log_archiver.archive.verify import verify_archive
from log_archiver.errors import ArchiverError
from log_archiver.ingest.discover import CandidateFile
from log_archiver.ingest.grouping import FileGroup

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TaskOptions:
    """Per-task settings shared by every group in a run."""

    dest_root: Path
    name_pattern: str
    compression: str = "zip"
    delete_after_verify: bool = False
    delete_attempts: int = 3
    delete_delay_sec: float = 0.5


def resolve_worker_count(configured: int | None, cpu_count: int | None = None) -> int:
    """Use `configured` when it is within 1..cpu_count, otherwise every available CPU."""

    available = cpu_count or os.cpu_count() or 1
    if configured is not None and 0 < configured <= available:
        return configured
    return available


def _finish_record(
    label: str,
    record: ArchiveRecord,
    options: TaskOptions,
    errors: list[str],
    logger: logging.Logger,
) -> GroupOutcome:
    verification = verify_archive(record, errors=errors, logger=logger)
    archive_size = record.archive_size_bytes
    deletion = delete_verified_sources(
        verification,
        enabled=options.delete_after_verify,
        attempts=options.delete_attempts,
        delay_sec=options.delete_delay_sec,
        logger=logger,
    )
    return GroupOutcome(
        period_key=label,
        archive_path=str(record.archive_path),
        files_total=record.attempted,
        files_added=len(record.added_paths),
        files_verified=sum(1 for ok in verification.values() if ok),
        files_deleted=len(deletion.deleted),
        bytes_before=record.added_bytes,
        bytes_after=archive_size,
        success=True,
    )


def _failed_outcome(label: str, files_total: int, message: str) -> GroupOutcome:
    return GroupOutcome(
        period_key=label,
        archive_path=None,
        files_total=files_total,
        files_added=0,
        files_verified=0,
        files_deleted=0,
        bytes_before=0,
        bytes_after=0,
        success=False,
        error_message=message,
    )


def process_group(
    group: FileGroup,
    options: TaskOptions,
    stats: RunStatistics,
    *,
    logger: logging.Logger | None = None,
) -> GroupOutcome:
    """Build, verify and optionally prune one group, then merge its tally into `stats`."""

    effective_logger = logger or LOGGER
    errors: list[str] = []
    try:
        record = build_group_archive(
            group,
            dest_root=options.dest_root,
            name_pattern=options.name_pattern,
            compression=options.compression,
            errors=errors,
            logger=effective_logger,
        )
        outcome = _finish_record(group.period_key, record, options, errors, effective_logger)
    except (ArchiverError, OSError) as exc:
        message = f"Error archiving group {group.period_key}: {exc}"
        effective_logger.error("archive_run.group_failed period_key=%s error=%s", group.period_key, exc)
        errors.append(message)
        outcome = _failed_outcome(group.period_key, len(group.files), message)
    stats.merge_outcome(outcome, errors)
    return outcome


def process_single_file(
    candidate: CandidateFile,
    options: TaskOptions,
    stats: RunStatistics,
    *,
    now: datetime,
    logger: logging.Logger | None = None,
) -> GroupOutcome:
    """Per-file mode counterpart of `process_group`."""

    effective_logger = logger or LOGGER
    label = str(candidate.path)
    errors: list[str] = []
    try:
        record = build_single_file_archive(
            candidate,
            dest_root=options.dest_root,
            name_pattern=options.name_pattern,
            compression=options.compression,
            now=now,
            logger=effective_logger,
        )
        outcome = _finish_record(label, record, options, errors, effective_logger)
    except (ArchiverError, OSError) as exc:
        message = f"Error archiving file {label}: {exc}"
        effective_logger.error("archive_run.file_failed path=%s error=%s", label, exc)
        errors.append(message)
        outcome = _failed_outcome(label, 1, message)
    stats.merge_outcome(outcome, errors)
    return outcome


def _run_bounded(
    jobs: Sequence[tuple[str, int, Callable[[], GroupOutcome]]],
    stats: RunStatistics,
    max_workers: int,
    logger: logging.Logger,
) -> list[GroupOutcome]:
    """Run every job, at most `max_workers` at a time, and wait for all of them."""

    outcomes: list[GroupOutcome] = []
    if not jobs:
        return outcomes

    with ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="archive") as executor:
        futures: dict[Future[GroupOutcome], tuple[str, int]] = {
            executor.submit(job): (label, files_total) for label, files_total, job in jobs
        }
        for future in as_completed(futures):
            label, files_total = futures[future]
            try:
                outcomes.append(future.result())
            except Exception as exc:
                message = f"Error archiving group {label}: {exc}"
                logger.exception("archive_run.task_crashed label=%s", label)
                outcome = _failed_outcome(label, files_total, message)
                stats.merge_outcome(outcome, [message])
                outcomes.append(outcome)

    outcomes.sort(key=lambda item: item.period_key)
    return outcomes


def archive_groups(
    groups: Sequence[FileGroup],
    options: TaskOptions,
    stats: RunStatistics,
    *,
    max_workers: int,
    logger: logging.Logger | None = None,
) -> list[GroupOutcome]:
    """Archive every group concurrently; one group's failure never cancels the others."""

    effective_logger = logger or LOGGER
    stats.set_group_count(len(groups))
    effective_logger.info("archive_run.fan_out groups=%s max_workers=%s", len(groups), max_workers)
    jobs = [
        (
            group.period_key,
            len(group.files),
            lambda group=group: process_group(group, options, stats, logger=effective_logger),
        )
        for group in groups
    ]
    return _run_bounded(jobs, stats, max_workers, effective_logger)


def archive_files_individually(
    groups: Sequence[FileGroup],
    options: TaskOptions,
    stats: RunStatistics,
    *,
    max_workers: int,
    now: datetime,
    logger: logging.Logger | None = None,
) -> list[GroupOutcome]:
    """Archive each grouped file into its own container (per-file mode)."""

    effective_logger = logger or LOGGER
    stats.set_group_count(len(groups))
    candidates = [candidate for group in groups for candidate in group.files]
    effective_logger.info("archive_run.fan_out files=%s max_workers=%s", len(candidates), max_workers)
    jobs = [
        (
            str(candidate.path),
            1,
            lambda candidate=candidate: process_single_file(
                candidate, options, stats, now=now, logger=effective_logger
            ),
        )
        for candidate in candidates
    ]
    return _run_bounded(jobs, stats, max_workers, effective_logger)
