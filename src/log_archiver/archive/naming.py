"""Container file naming from `%`-token patterns."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

from log_archiver.config import CompressionKind
from log_archiver.errors import DestinationError

COMPRESSION_EXTENSIONS: dict[str, str] = {"zip": ".zip", "gzip": ".gz"}
CONTAINER_EXTENSIONS: tuple[str, ...] = tuple(COMPRESSION_EXTENSIONS.values())

_TOKEN_PATTERN = re.compile(r"%[YmdHMSyjF]")
_MAX_UNIQUE_ATTEMPTS = 10_000


def compression_extension(compression: CompressionKind | str) -> str:
    """Return the file extension for a compression kind, `.zip` when unknown."""

    return COMPRESSION_EXTENSIONS.get(str(compression).lower(), ".zip")


def _substitute(pattern: str, values: dict[str, str]) -> str:
    return _TOKEN_PATTERN.sub(lambda match: values.get(match.group(0), match.group(0)), pattern)


def _date_tokens(reference: datetime) -> dict[str, str]:
    return {
        "%Y": f"{reference.year:04d}",
        "%m": f"{reference.month:02d}",
        "%d": f"{reference.day:02d}",
        "%H": f"{reference.hour:02d}",
        "%M": f"{reference.minute:02d}",
        "%S": f"{reference.second:02d}",
        "%y": f"{reference.year % 100:02d}",
        "%j": f"{reference.timetuple().tm_yday:03d}",
    }


def resolve_period_archive_name(
    pattern: str,
    reference_time: datetime,
    compression: CompressionKind | str,
) -> str:
    """Resolve a grouped-archive file name against the period's reference time.

    Hour, minute and second always render as `00`; `%F` renders as `logs`. The reference
    time is the period start, so for monthly groups `%d` is `01` and `%j` is the day of
    year of the 1st, not of the oldest member.
    """

    values = _date_tokens(reference_time)
    values.update({"%H": "00", "%M": "00", "%S": "00", "%F": "logs"})
    return _substitute(pattern, values) + compression_extension(compression)


def resolve_single_file_archive_name(
    pattern: str,
    source_path: Path,
    compression: CompressionKind | str,
    now: datetime,
) -> str:
    """Resolve a per-file archive name against wall-clock time and the source stem."""

    values = _date_tokens(now)
    values["%F"] = source_path.stem
    resolved = _substitute(pattern, values)
    if "%F" not in pattern:
        resolved = f"{resolved}_{source_path.stem}"
    return resolved + compression_extension(compression)


def open_unique_container(dest_root: Path, file_name: str) -> tuple[BinaryIO, Path]:
    """Exclusively create `file_name` in `dest_root`, adding `_N` before the extension on collision."""

    suffix = Path(file_name).suffix
    stem = file_name[: -len(suffix)] if suffix else file_name
    for attempt in range(_MAX_UNIQUE_ATTEMPTS):
        candidate = dest_root / (file_name if attempt == 0 else f"{stem}_{attempt}{suffix}")
        try:
            handle = open(candidate, "xb")
        except FileExistsError:
            continue
        except OSError as exc:
            raise DestinationError(f"failed to create destination file {candidate}: {exc}") from exc
        return handle, candidate
    raise DestinationError(f"no free archive name for {file_name} in {dest_root}")
