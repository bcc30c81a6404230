"""Discover aging log files under a source directory tree."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from stat import S_ISREG

from log_archiver.errors import ScanError
from log_archiver.utils.time_utils import datetime_to_ns, now_local, ns_to_local_datetime

LOGGER = logging.getLogger(__name__)

LOG_FILE_EXTENSIONS: frozenset[str] = frozenset({".log", ".txt"})


@dataclass(frozen=True, slots=True)
class CandidateFile:
    """A log file eligible for archiving."""

    path: Path
    size_bytes: int
    modified_at: datetime
    mtime_ns: int


def is_log_file_name(path: Path) -> bool:
    """Return True for `.log`/`.txt` files or any path mentioning "log" (case-insensitive)."""

    if path.suffix.lower() in LOG_FILE_EXTENSIONS:
        return True
    return "log" in str(path).lower()


def _raise_walk_error(exc: OSError) -> None:
    raise exc


def scan_candidate_files(
    source_root: Path,
    min_age_days: int,
    *,
    now: datetime | None = None,
    logger: logging.Logger | None = None,
) -> list[CandidateFile]:
    """Recursively collect regular log files modified at or before `now - min_age_days`.

    Results are sorted oldest first. Symlinks and other non-regular entries are skipped.

    Any traversal error, including a missing root, raises `ScanError` and discards
    whatever was collected so far.
    """

    effective_logger = logger or LOGGER
    reference = now or now_local()
    cutoff_ns = datetime_to_ns(reference - timedelta(days=min_age_days))

    if not source_root.is_dir():
        raise ScanError(f"source directory is not readable: {source_root}")

    candidates: list[CandidateFile] = []
    try:
        for dir_path, _dir_names, file_names in os.walk(source_root, onerror=_raise_walk_error):
            for file_name in file_names:
                file_path = Path(dir_path) / file_name
                # Symlinks are never candidates; lstat keeps dangling links from failing the walk.
                stats = file_path.lstat()
                if not S_ISREG(stats.st_mode):
                    continue
                if stats.st_mtime_ns > cutoff_ns:
                    continue
                if not is_log_file_name(file_path):
                    continue
                candidates.append(
                    CandidateFile(
                        path=Path(os.path.abspath(file_path)),
                        size_bytes=stats.st_size,
                        modified_at=ns_to_local_datetime(stats.st_mtime_ns),
                        mtime_ns=stats.st_mtime_ns,
                    )
                )
    except OSError as exc:
        effective_logger.error("discover.scan_failed source_root=%s error=%s", source_root, exc)
        raise ScanError(f"failed to scan {source_root}: {exc}") from exc

    candidates.sort(key=lambda item: (item.mtime_ns, str(item.path)))
    effective_logger.info(
        "discover.scan_complete source_root=%s min_age_days=%s candidates=%s",
        source_root,
        min_age_days,
        len(candidates),
    )
    return candidates
