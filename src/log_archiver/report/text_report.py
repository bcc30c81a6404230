"""Plain-text run report written next to the other run outputs."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

from log_archiver.archive.stats import MEGABYTE, RunStatistics
from log_archiver.utils.paths import write_text_atomically
from log_archiver.utils.time_utils import now_local

REPORT_TITLE = "log_archiver run report"
RULE_WIDTH = 60


def report_file_name(when: datetime) -> str:
    return f"compression_report_{when.strftime('%Y%m%d_%H%M%S')}.txt"


def render_text_report(
    stats: RunStatistics,
    *,
    host: str,
    workers: int,
    email_status: str,
    cpu_count: int | None = None,
) -> str:
    """Render the full report; unlike the console summary, every error is listed."""

    started = stats.started_ts
    finished = stats.finished_ts or now_local()
    lines = [
        REPORT_TITLE,
        "=" * RULE_WIDTH,
        f"Host: {host}",
        f"Start: {started.isoformat(timespec='seconds')}",
        f"End:   {finished.isoformat(timespec='seconds')}",
        f"Duration: {stats.duration_sec:.3f}s",
        f"CPU Count: {cpu_count or os.cpu_count() or 1}",
        f"Workers: {workers}",
        f"Groups: {stats.group_count}",
        f"Archives written: {stats.archives_written}",
        f"Files processed: {stats.files_processed}",
        f"Files archived: {stats.files_archived}",
        f"Files deleted: {stats.files_deleted}",
        f"Total before: {stats.bytes_before / MEGABYTE:.2f} MB",
        f"Total after: {stats.bytes_after / MEGABYTE:.2f} MB",
    ]
    ratio = stats.compression_ratio_pct
    if ratio is not None:
        lines.append(f"Compression ratio: {ratio:.2f}%")
    lines.append(f"Throughput: {stats.throughput_mb_per_sec:.2f} MB/s")
    lines.append(f"Retention removed: {stats.retention_removed}")
    lines.append(f"Email status: {email_status}")
    if stats.errors:
        lines.append("Errors:")
        lines.extend(f" - {message}" for message in stats.errors)
    return "\n".join(lines) + "\n"


def write_text_report(
    stats: RunStatistics,
    reports_root: Path,
    *,
    host: str,
    workers: int,
    email_status: str,
) -> Path:
    """Write the report as `compression_report_YYYYMMDD_HHMMSS.txt` under `reports_root`."""

    content = render_text_report(stats, host=host, workers=workers, email_status=email_status)
    return write_text_atomically(content, reports_root / report_file_name(now_local()))
