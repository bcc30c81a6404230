"""Partition candidate files into calendar periods."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from log_archiver.config import ArchiveScope
from log_archiver.ingest.discover import CandidateFile
from log_archiver.utils.time_utils import now_local

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FileGroup:
    """Candidates sharing one period key, oldest first."""

    period_key: str
    files: tuple[CandidateFile, ...]
    reference_time: datetime

    @property
    def total_bytes(self) -> int:
        return sum(item.size_bytes for item in self.files)


def period_key_for(timestamp: datetime, scope: ArchiveScope) -> str:
    """Return `YYYY-MM` (monthly) or `YYYY-MM-DD` (daily) in the local calendar."""

    local = timestamp.astimezone()
    if scope == "daily":
        return local.strftime("%Y-%m-%d")
    return local.strftime("%Y-%m")


def period_start_for(timestamp: datetime, scope: ArchiveScope) -> datetime:
    """Return midnight of the first day of the period containing `timestamp`."""

    local = timestamp.astimezone()
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    if scope == "monthly":
        start = start.replace(day=1)
    return start


def group_candidates(
    candidates: Sequence[CandidateFile],
    scope: ArchiveScope,
    *,
    now: datetime | None = None,
    include_current_period: bool = False,
    logger: logging.Logger | None = None,
) -> list[FileGroup]:
    """Group candidates by period, dropping the current period.

    Daily scope always drops today's key. Monthly scope drops the current month unless
    `include_current_period` is set.
    """

    effective_logger = logger or LOGGER
    reference = now or now_local()

    buckets: dict[str, list[CandidateFile]] = defaultdict(list)
    for candidate in candidates:
        buckets[period_key_for(candidate.modified_at, scope)].append(candidate)

    current_key = period_key_for(reference, scope)
    keep_current = scope == "monthly" and include_current_period
    if not keep_current and current_key in buckets:
        excluded = buckets.pop(current_key)
        effective_logger.info(
            "grouping.current_period_excluded period_key=%s files=%s scope=%s",
            current_key,
            len(excluded),
            scope,
        )

    groups = [
        FileGroup(
            period_key=key,
            files=tuple(sorted(members, key=lambda item: (item.mtime_ns, str(item.path)))),
            reference_time=period_start_for(members[0].modified_at, scope),
        )
        for key, members in sorted(buckets.items())
    ]
    effective_logger.info("grouping.complete scope=%s groups=%s", scope, len(groups))
    return groups
