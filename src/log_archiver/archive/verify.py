"""Re-open freshly written containers and confirm their contents against the source files."""

from __future__ import annotations

import gzip
import logging
import zipfile
from pathlib import Path

from log_archiver.archive.builder import COPY_CHUNK_BYTES, ArchiveRecord

LOGGER = logging.getLogger(__name__)

VerificationResult = dict[Path, bool]


def _live_size(path: Path, logger: logging.Logger) -> int | None:
    try:
        return path.stat().st_size
    except OSError as exc:
        logger.warning("verify.stat_failed path=%s error=%s", path, exc)
        return None


def _zip_entry_sizes(archive_path: Path) -> dict[str, int]:
    with zipfile.ZipFile(archive_path, mode="r") as archive:
        return {info.filename: info.file_size for info in archive.infolist()}


def _gzip_stream_size(archive_path: Path) -> int:
    total = 0
    with gzip.open(archive_path, mode="rb") as stream:
        while chunk := stream.read(COPY_CHUNK_BYTES):
            total += len(chunk)
    return total


def verify_archive(
    record: ArchiveRecord,
    *,
    errors: list[str] | None = None,
    logger: logging.Logger | None = None,
) -> VerificationResult:
    """Map each embedded source path to True when the container holds it at its current size.

    Presence is matched by base name and integrity by uncompressed size only. If the
    container cannot be read, every path is False and an error is appended.
    """

    effective_logger = logger or LOGGER
    error_sink = errors if errors is not None else []
    result: VerificationResult = {path: False for path in record.added_paths}

    try:
        if record.compression == "gzip":
            entries = {path.name: _gzip_stream_size(record.archive_path) for path in record.added_paths[:1]}
        else:
            entries = _zip_entry_sizes(record.archive_path)
    except (OSError, EOFError, zipfile.BadZipFile) as exc:
        effective_logger.error("verify.open_failed archive=%s error=%s", record.archive_path, exc)
        error_sink.append(f"verify open {record.compression} {record.archive_path}: {exc}")
        return result

    for path in record.added_paths:
        live_size = _live_size(path, effective_logger)
        archived_size = entries.get(path.name)
        if live_size is not None and archived_size is not None and archived_size == live_size:
            result[path] = True
        else:
            effective_logger.warning(
                "verify.mismatch archive=%s path=%s archived_size=%s live_size=%s",
                record.archive_path,
                path,
                archived_size,
                live_size,
            )

    effective_logger.info(
        "verify.complete archive=%s verified=%s/%s",
        record.archive_path,
        sum(result.values()),
        len(result),
    )
    return result
