"""Ingestion package for candidate discovery and period grouping."""

from log_archiver.ingest.discover import CandidateFile, is_log_file_name, scan_candidate_files
from log_archiver.ingest.grouping import FileGroup, group_candidates, period_key_for, period_start_for

__all__ = [
    "CandidateFile",
    "is_log_file_name",
    "scan_candidate_files",
    "FileGroup",
    "group_candidates",
    "period_key_for",
    "period_start_for",
]
