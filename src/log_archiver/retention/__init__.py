"""Retention sweeps over the archive destination."""

from log_archiver.retention.manager import (
    AgeCutoff,
    KeepLastN,
    RetentionPolicy,
    RetentionResult,
    apply_retention,
    select_retention_policy,
)

__all__ = [
    "AgeCutoff",
    "KeepLastN",
    "RetentionPolicy",
    "RetentionResult",
    "apply_retention",
    "select_retention_policy",
]
