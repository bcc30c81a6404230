"""Write period groups (or single files) into container archives."""

from __future__ import annotations

import gzip
import logging
import os
import shutil
import time
import zipfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

from log_archiver.archive.naming import (
    open_unique_container,
    resolve_period_archive_name,
    resolve_single_file_archive_name,
)
from log_archiver.config import CompressionKind
from log_archiver.errors import GroupArchiveError, UnsupportedCompressionError
from log_archiver.ingest.discover import CandidateFile
from log_archiver.ingest.grouping import FileGroup

LOGGER = logging.getLogger(__name__)

COPY_CHUNK_BYTES = 1024 * 1024
ZIP_MIN_DATE_TIME = (1980, 1, 1, 0, 0, 0)


@dataclass(frozen=True, slots=True)
class ArchiveRecord:
    """A closed container plus the source files that actually went in."""

    archive_path: Path
    compression: CompressionKind
    added_paths: tuple[Path, ...]
    added_bytes: int
    attempted: int

    @property
    def archive_size_bytes(self) -> int:
        return self.archive_path.stat().st_size


def require_grouped_compression(compression: str) -> None:
    """Raise unless `compression` can hold a multi-file group."""

    if compression == "gzip":
        raise UnsupportedCompressionError("grouped mode requires zip compression; gzip cannot hold a group")
    if compression != "zip":
        raise UnsupportedCompressionError(f"unsupported compression type: {compression} (supported: zip)")


def _zip_entry_info(entry_name: str, mtime: float) -> zipfile.ZipInfo:
    date_time = time.localtime(mtime)[:6]
    if date_time < ZIP_MIN_DATE_TIME:
        date_time = ZIP_MIN_DATE_TIME
    info = zipfile.ZipInfo(entry_name, date_time=date_time)
    info.compress_type = zipfile.ZIP_DEFLATED
    return info


def _discard_container(handle: BinaryIO, archive_path: Path, logger: logging.Logger) -> None:
    try:
        handle.close()
    except OSError as exc:
        logger.debug("archive_build.discard_close_failed archive=%s error=%s", archive_path, exc)
    try:
        os.remove(archive_path)
    except FileNotFoundError:
        pass


def _embed_file(
    archive: zipfile.ZipFile,
    candidate: CandidateFile,
    errors: list[str],
    logger: logging.Logger,
) -> int | None:
    """Stream one source into the archive under its base name; return bytes copied or None."""

    try:
        source = candidate.path.open("rb")
    except OSError as exc:
        logger.warning("archive_build.open_failed path=%s error=%s", candidate.path, exc)
        errors.append(f"open {candidate.path}: {exc}")
        return None

    with source:
        try:
            stats = os.fstat(source.fileno())
            info = _zip_entry_info(candidate.path.name, stats.st_mtime)
            with archive.open(info, mode="w", force_zip64=stats.st_size >= zipfile.ZIP64_LIMIT) as entry:
                shutil.copyfileobj(source, entry, COPY_CHUNK_BYTES)
        except OSError as exc:
            logger.warning("archive_build.copy_failed path=%s error=%s", candidate.path, exc)
            errors.append(f"zip copy {candidate.path}: {exc}")
            return None
    return stats.st_size


def build_group_archive(
    group: FileGroup,
    *,
    dest_root: Path,
    name_pattern: str,
    compression: str = "zip",
    errors: list[str] | None = None,
    logger: logging.Logger | None = None,
) -> ArchiveRecord:
    """Write every member of `group` into one new ZIP container.

    Files that fail to open or copy are skipped and described in `errors`. Entries are
    stored under the source base name, so same-named files from different directories
    overwrite each other inside the container. A failure to close the container removes
    it and raises `GroupArchiveError`.
    """

    effective_logger = logger or LOGGER
    error_sink = errors if errors is not None else []
    require_grouped_compression(compression)

    archive_name = resolve_period_archive_name(name_pattern, group.reference_time, compression)
    handle, archive_path = open_unique_container(dest_root, archive_name)

    added_paths: list[Path] = []
    added_bytes = 0
    archive = zipfile.ZipFile(handle, mode="w", compression=zipfile.ZIP_DEFLATED, allowZip64=True)
    for candidate in group.files:
        copied = _embed_file(archive, candidate, error_sink, effective_logger)
        if copied is None:
            continue
        added_paths.append(candidate.path)
        added_bytes += copied
        effective_logger.info("archive_build.file_added archive=%s path=%s", archive_path, candidate.path)

    try:
        archive.close()
        handle.close()
    except OSError as exc:
        _discard_container(handle, archive_path, effective_logger)
        raise GroupArchiveError(f"closing archive {archive_path}: {exc}") from exc

    return ArchiveRecord(
        archive_path=archive_path,
        compression="zip",
        added_paths=tuple(added_paths),
        added_bytes=added_bytes,
        attempted=len(group.files),
    )


def build_single_file_archive(
    candidate: CandidateFile,
    *,
    dest_root: Path,
    name_pattern: str,
    compression: str,
    now: datetime,
    logger: logging.Logger | None = None,
) -> ArchiveRecord:
    """Compress one source file into its own `.zip` or `.gz` container.

    Any failure removes the partial container and raises `GroupArchiveError`.
    """

    effective_logger = logger or LOGGER
    if compression not in {"zip", "gzip"}:
        raise UnsupportedCompressionError(f"unsupported compression type: {compression} (supported: zip, gzip)")

    try:
        source = candidate.path.open("rb")
    except OSError as exc:
        raise GroupArchiveError(f"failed to open source file {candidate.path}: {exc}") from exc

    archive_name = resolve_single_file_archive_name(name_pattern, candidate.path, compression, now)
    with source:
        handle, archive_path = open_unique_container(dest_root, archive_name)
        try:
            stats = os.fstat(source.fileno())
            if compression == "zip":
                with zipfile.ZipFile(handle, mode="w", compression=zipfile.ZIP_DEFLATED, allowZip64=True) as archive:
                    info = _zip_entry_info(candidate.path.name, stats.st_mtime)
                    with archive.open(info, mode="w", force_zip64=stats.st_size >= zipfile.ZIP64_LIMIT) as entry:
                        shutil.copyfileobj(source, entry, COPY_CHUNK_BYTES)
            else:
                with gzip.GzipFile(
                    filename=candidate.path.name,
                    mode="wb",
                    fileobj=handle,
                    mtime=int(stats.st_mtime),
                ) as stream:
                    shutil.copyfileobj(source, stream, COPY_CHUNK_BYTES)
            handle.close()
        except OSError as exc:
            _discard_container(handle, archive_path, effective_logger)
            raise GroupArchiveError(f"compression failed for {candidate.path}: {exc}") from exc

    effective_logger.info("archive_build.file_added archive=%s path=%s", archive_path, candidate.path)
    return ArchiveRecord(
        archive_path=archive_path,
        compression="gzip" if compression == "gzip" else "zip",
        added_paths=(candidate.path,),
        added_bytes=stats.st_size,
        attempted=1,
    )
