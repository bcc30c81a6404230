"""Shared utility helpers."""

from log_archiver.utils.paths import (
    ensure_directories,
    write_json_atomically,
    write_parquet_atomically,
    write_text_atomically,
)
from log_archiver.utils.time_utils import datetime_to_ns, now_local, now_utc

__all__ = [
    "ensure_directories",
    "write_json_atomically",
    "write_parquet_atomically",
    "write_text_atomically",
    "datetime_to_ns",
    "now_local",
    "now_utc",
]
