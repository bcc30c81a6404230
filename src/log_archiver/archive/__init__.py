"""Archive stage: container building, verification, guarded deletion and fan-out."""

from log_archiver.archive.builder import (
    ArchiveRecord,
    build_group_archive,
    build_single_file_archive,
    require_grouped_compression,
)
from log_archiver.archive.coordinator import (
    TaskOptions,
    archive_files_individually,
    archive_groups,
    process_group,
    resolve_worker_count,
)
from log_archiver.archive.deletion import DeletionResult, delete_verified_sources, delete_with_retry
from log_archiver.archive.naming import (
    compression_extension,
    open_unique_container,
    resolve_period_archive_name,
    resolve_single_file_archive_name,
)
from log_archiver.archive.stats import GroupOutcome, RunStatistics
from log_archiver.archive.verify import VerificationResult, verify_archive

__all__ = [
    "ArchiveRecord",
    "build_group_archive",
    "build_single_file_archive",
    "require_grouped_compression",
    "TaskOptions",
    "archive_groups",
    "archive_files_individually",
    "process_group",
    "resolve_worker_count",
    "DeletionResult",
    "delete_verified_sources",
    "delete_with_retry",
    "compression_extension",
    "open_unique_container",
    "resolve_period_archive_name",
    "resolve_single_file_archive_name",
    "GroupOutcome",
    "RunStatistics",
    "VerificationResult",
    "verify_archive",
]
