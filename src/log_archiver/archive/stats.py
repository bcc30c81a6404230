"""Run-wide statistics shared by concurrent archive tasks."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from log_archiver.utils.time_utils import now_local

MEGABYTE = 1024 * 1024


@dataclass(frozen=True, slots=True)
class GroupOutcome:
    """Per-group (or per-file in single-file mode) result of build, verify and delete."""

    period_key: str
    archive_path: str | None
    files_total: int
    files_added: int
    files_verified: int
    files_deleted: int
    bytes_before: int
    bytes_after: int
    success: bool
    error_message: str | None = None


@dataclass
class RunStatistics:
    """Counters for one run.

    Every mutation goes through a method holding `_lock` for the update only.
    """

    started_ts: datetime = field(default_factory=now_local)
    finished_ts: datetime | None = None
    files_processed: int = 0
    files_archived: int = 0
    files_deleted: int = 0
    bytes_before: int = 0
    bytes_after: int = 0
    group_count: int = 0
    archives_written: int = 0
    retention_removed: int = 0
    errors: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def record_error(self, message: str) -> None:
        with self._lock:
            self.errors.append(message)

    def record_errors(self, messages: Iterable[str]) -> None:
        batch = list(messages)
        if not batch:
            return
        with self._lock:
            self.errors.extend(batch)

    def set_group_count(self, count: int) -> None:
        with self._lock:
            self.group_count = count

    def merge_outcome(self, outcome: GroupOutcome, errors: Iterable[str] = ()) -> None:
        """Fold one task's tally and error strings into the shared totals."""

        batch = list(errors)
        with self._lock:
            self.files_processed += outcome.files_total
            self.files_deleted += outcome.files_deleted
            if outcome.success:
                self.files_archived += outcome.files_added
                self.bytes_before += outcome.bytes_before
                self.bytes_after += outcome.bytes_after
                self.archives_written += 1
            self.errors.extend(batch)

    def record_retention_removals(self, count: int) -> None:
        with self._lock:
            self.retention_removed += count

    def finalize(self, finished_ts: datetime | None = None) -> None:
        with self._lock:
            if self.finished_ts is None:
                self.finished_ts = finished_ts or now_local()

    @property
    def duration_sec(self) -> float:
        end = self.finished_ts or now_local()
        return max(0.0, (end - self.started_ts).total_seconds())

    @property
    def compression_ratio_pct(self) -> float | None:
        if self.bytes_before <= 0:
            return None
        return (self.bytes_before - self.bytes_after) / self.bytes_before * 100

    @property
    def throughput_mb_per_sec(self) -> float:
        duration = self.duration_sec
        if duration <= 0 or self.bytes_before <= 0:
            return 0.0
        return (self.bytes_before / MEGABYTE) / duration

    @property
    def succeeded(self) -> bool:
        return not self.errors

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-ready snapshot."""

        with self._lock:
            errors = list(self.errors)
        ratio = self.compression_ratio_pct
        return {
            "started_ts": self.started_ts.isoformat(),
            "finished_ts": self.finished_ts.isoformat() if self.finished_ts else None,
            "duration_sec": round(self.duration_sec, 3),
            "group_count": self.group_count,
            "archives_written": self.archives_written,
            "files_processed": self.files_processed,
            "files_archived": self.files_archived,
            "files_deleted": self.files_deleted,
            "bytes_before": self.bytes_before,
            "bytes_after": self.bytes_after,
            "compression_ratio_pct": round(ratio, 2) if ratio is not None else None,
            "retention_removed": self.retention_removed,
            "error_count": len(errors),
            "errors": errors,
        }
