"""Run summary payloads, per-group result tables and the console summary."""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any, Sequence

import polars as pl

from log_archiver.archive.stats import MEGABYTE, GroupOutcome, RunStatistics
from log_archiver.config import AppSettings, ParquetConfig
from log_archiver.utils.paths import write_json_atomically, write_parquet_atomically
from log_archiver.utils.time_utils import now_utc

if TYPE_CHECKING:
    from log_archiver.retention.manager import RetentionResult

SUMMARY_ERROR_LIMIT = 200
RULE_WIDTH = 50

GROUP_RESULTS_SCHEMA: dict[str, pl.DataType] = {
    "period_key": pl.String,
    "archive_path": pl.String,
    "files_total": pl.Int64,
    "files_added": pl.Int64,
    "files_verified": pl.Int64,
    "files_deleted": pl.Int64,
    "bytes_before": pl.Int64,
    "bytes_after": pl.Int64,
    "success": pl.Boolean,
    "error_message": pl.String,
}


def build_run_summary(
    *,
    run_id: str,
    settings: AppSettings,
    stats: RunStatistics,
    outcomes: Sequence[GroupOutcome],
    retention: RetentionResult | None,
    workers: int,
    dry_run: bool = False,
) -> dict[str, Any]:
    """Assemble the JSON summary for one run."""

    snapshot = stats.as_dict()
    errors = snapshot.pop("errors")
    return {
        "run_id": run_id,
        "generated_ts_utc": now_utc().isoformat(),
        "dry_run": dry_run,
        "source_root": str(settings.paths.source_root),
        "dest_root": str(settings.paths.dest_root),
        "scope": settings.archive.scope,
        "mode": settings.archive.mode,
        "compression": settings.archive.compression,
        "delete_after_verify": settings.deletion.delete_after_verify,
        "workers": workers,
        **snapshot,
        "groups_failed": sorted(outcome.period_key for outcome in outcomes if not outcome.success),
        "retention": {
            "policy": retention.policy.describe() if retention and retention.policy else None,
            "removed": [str(path) for path in retention.removed] if retention else [],
        },
        "errors": errors[:SUMMARY_ERROR_LIMIT],
    }


def group_results_frame(outcomes: Sequence[GroupOutcome]) -> pl.DataFrame:
    """Return one row per group outcome with a stable schema."""

    if not outcomes:
        return pl.DataFrame(schema=GROUP_RESULTS_SCHEMA)
    return pl.DataFrame([asdict(outcome) for outcome in outcomes], schema_overrides=GROUP_RESULTS_SCHEMA)


def write_run_artifacts(
    summary: dict[str, Any],
    outcomes: Sequence[GroupOutcome],
    *,
    artifacts_root: Path,
    run_id: str,
    parquet: ParquetConfig | None = None,
) -> tuple[Path, Path]:
    """Persist the JSON summary and group-results parquet under `run_summaries/`."""

    parquet_cfg = parquet or ParquetConfig()
    artifacts_dir = artifacts_root / "run_summaries"
    summary_path = write_json_atomically(summary, artifacts_dir / f"{run_id}_archive_run_summary.json")
    group_results_path = write_parquet_atomically(
        group_results_frame(outcomes),
        artifacts_dir / f"{run_id}_group_results.parquet",
        compression=parquet_cfg.compression,
        compression_level=parquet_cfg.compression_level,
        statistics=parquet_cfg.statistics,
    )
    return summary_path, group_results_path


def format_console_summary(stats: RunStatistics, *, error_limit: int = 5) -> list[str]:
    """Render the end-of-run summary; errors beyond `error_limit` are only counted."""

    lines = [
        "=" * RULE_WIDTH,
        "ARCHIVE SUMMARY",
        "=" * RULE_WIDTH,
        f"Groups: {stats.group_count}",
        f"Files processed: {stats.files_processed}",
        f"Files archived: {stats.files_archived}",
        f"Files deleted: {stats.files_deleted}",
        f"Total size before: {stats.bytes_before / MEGABYTE:.2f} MB",
        f"Total size after: {stats.bytes_after / MEGABYTE:.2f} MB",
    ]
    ratio = stats.compression_ratio_pct
    if ratio is not None:
        lines.append(f"Compression ratio: {ratio:.2f}%")
    lines.append(f"Processing time: {stats.duration_sec:.2f}s")
    if stats.retention_removed:
        lines.append(f"Retention removed: {stats.retention_removed}")

    errors = list(stats.errors)
    if errors:
        lines.append(f"Errors encountered: {len(errors)}")
        lines.extend(f"  - {message}" for message in errors[:error_limit])
        if len(errors) > error_limit:
            lines.append(f"  ... and {len(errors) - error_limit} more errors")
    lines.append("=" * RULE_WIDTH)
    return lines
