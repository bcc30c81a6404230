"""Batch archive pipeline: scan, group, archive in parallel, then apply retention."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from log_archiver.archive.builder import require_grouped_compression
from log_archiver.archive.coordinator import (
    TaskOptions,
    archive_files_individually,
    archive_groups,
    resolve_worker_count,
)
from log_archiver.archive.stats import GroupOutcome, RunStatistics
from log_archiver.config import AppSettings
from log_archiver.errors import ArchiverError, DestinationError
from log_archiver.ingest.discover import scan_candidate_files
from log_archiver.ingest.grouping import FileGroup, group_candidates
from log_archiver.report.summary import build_run_summary, write_run_artifacts
from log_archiver.retention.manager import RetentionResult, apply_retention, select_retention_policy
from log_archiver.utils.time_utils import now_local

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ArchiveRunOptions:
    """Runtime options for one archive run."""

    dry_run: bool = False
    skip_retention: bool = False
    write_artifacts: bool = True


@dataclass(frozen=True, slots=True)
class ArchiveRunResult:
    """Return object for archive run outcomes."""

    run_id: str
    stats: RunStatistics
    workers: int
    groups: list[FileGroup] = field(default_factory=list)
    outcomes: list[GroupOutcome] = field(default_factory=list)
    retention: RetentionResult | None = None
    summary: dict[str, Any] = field(default_factory=dict)
    summary_path: Path | None = None
    group_results_path: Path | None = None


def task_options_from_settings(settings: AppSettings) -> TaskOptions:
    """Project the settings a worker task needs."""

    return TaskOptions(
        dest_root=settings.paths.dest_root,
        name_pattern=settings.archive.name_pattern,
        compression=settings.archive.compression,
        delete_after_verify=settings.deletion.delete_after_verify,
        delete_attempts=settings.deletion.retry_attempts,
        delete_delay_sec=settings.deletion.retry_delay_sec,
    )


def _prepare_destination(dest_root: Path) -> None:
    try:
        dest_root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DestinationError(f"failed to create destination folder {dest_root}: {exc}") from exc


def _archive_phase(
    settings: AppSettings,
    stats: RunStatistics,
    *,
    options: ArchiveRunOptions,
    now: datetime,
    workers: int,
    logger: logging.Logger,
) -> tuple[list[FileGroup], list[GroupOutcome]]:
    archive_cfg = settings.archive
    if archive_cfg.mode == "grouped":
        require_grouped_compression(archive_cfg.compression)
    if not options.dry_run:
        _prepare_destination(settings.paths.dest_root)

    candidates = scan_candidate_files(
        settings.paths.source_root,
        archive_cfg.min_age_days,
        now=now,
        logger=logger,
    )
    if not candidates:
        logger.info("archive_run.no_candidates source_root=%s", settings.paths.source_root)
        return [], []

    groups = group_candidates(
        candidates,
        archive_cfg.scope,
        now=now,
        include_current_period=archive_cfg.include_current_period,
        logger=logger,
    )
    if options.dry_run:
        stats.set_group_count(len(groups))
        return groups, []

    task_options = task_options_from_settings(settings)
    if archive_cfg.mode == "per_file":
        outcomes = archive_files_individually(
            groups, task_options, stats, max_workers=workers, now=now, logger=logger
        )
    else:
        outcomes = archive_groups(groups, task_options, stats, max_workers=workers, logger=logger)
    return groups, outcomes


def run_archive_pipeline(
    settings: AppSettings,
    *,
    options: ArchiveRunOptions | None = None,
    now: datetime | None = None,
    logger: logging.Logger | None = None,
) -> ArchiveRunResult:
    """Run one archive pass followed by the retention sweep.

    Only directory-level failures stop the archive phase; they are recorded in the
    statistics and the run still reaches retention and summary output.
    """

    effective_logger = logger or LOGGER
    run_options = options or ArchiveRunOptions()
    reference = now or now_local()
    run_id = f"archive-run-{uuid4().hex[:12]}"
    stats = RunStatistics(started_ts=now_local())
    workers = resolve_worker_count(settings.workers.max_workers)

    effective_logger.info(
        "archive_run.start run_id=%s source_root=%s dest_root=%s scope=%s mode=%s workers=%s dry_run=%s",
        run_id,
        settings.paths.source_root,
        settings.paths.dest_root,
        settings.archive.scope,
        settings.archive.mode,
        workers,
        run_options.dry_run,
    )

    groups: list[FileGroup] = []
    outcomes: list[GroupOutcome] = []
    try:
        groups, outcomes = _archive_phase(
            settings,
            stats,
            options=run_options,
            now=reference,
            workers=workers,
            logger=effective_logger,
        )
    except ArchiverError as exc:
        effective_logger.error("archive_run.aborted run_id=%s error=%s", run_id, exc)
        stats.record_error(str(exc))

    retention: RetentionResult | None = None
    if not run_options.dry_run and not run_options.skip_retention and settings.retention.enabled:
        policy = select_retention_policy(settings.retention.keep_last_n, settings.retention.retention_days)
        retention = apply_retention(
            settings.paths.dest_root,
            policy,
            now=reference,
            stats=stats,
            logger=effective_logger,
        )

    stats.finalize()
    summary = build_run_summary(
        run_id=run_id,
        settings=settings,
        stats=stats,
        outcomes=outcomes,
        retention=retention,
        workers=workers,
        dry_run=run_options.dry_run,
    )

    summary_path: Path | None = None
    group_results_path: Path | None = None
    if run_options.write_artifacts and not run_options.dry_run:
        summary_path, group_results_path = write_run_artifacts(
            summary,
            outcomes,
            artifacts_root=settings.paths.artifacts_root,
            run_id=run_id,
            parquet=settings.parquet,
        )

    effective_logger.info(
        "archive_run.complete run_id=%s groups=%s archived=%s deleted=%s errors=%s summary_path=%s",
        run_id,
        stats.group_count,
        stats.files_archived,
        stats.files_deleted,
        len(stats.errors),
        summary_path,
    )
    return ArchiveRunResult(
        run_id=run_id,
        stats=stats,
        workers=workers,
        groups=groups,
        outcomes=outcomes,
        retention=retention,
        summary=summary,
        summary_path=summary_path,
        group_results_path=group_results_path,
    )


def run_retention_only(
    settings: AppSettings,
    *,
    now: datetime | None = None,
    logger: logging.Logger | None = None,
) -> RetentionResult:
    """Apply the configured retention policy without archiving anything."""

    policy = select_retention_policy(settings.retention.keep_last_n, settings.retention.retention_days)
    return apply_retention(settings.paths.dest_root, policy, now=now, logger=logger or LOGGER)
