"""Remove archived originals, but only those the verifier confirmed."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping

LOGGER = logging.getLogger(__name__)

DEFAULT_DELETE_ATTEMPTS = 3
DEFAULT_DELETE_DELAY_SEC = 0.5


@dataclass(slots=True)
class DeletionResult:
    """Which verified sources were removed, which resisted, which were never eligible."""

    deleted: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)
    skipped_unverified: list[Path] = field(default_factory=list)


def delete_with_retry(
    path: Path,
    *,
    attempts: int = DEFAULT_DELETE_ATTEMPTS,
    delay_sec: float = DEFAULT_DELETE_DELAY_SEC,
    remove: Callable[[Path], None] = os.remove,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Remove `path`, retrying a fixed number of times with a fixed delay.

    Re-raises the last `OSError` once every attempt failed. A file that is already gone
    counts as removed.
    """

    total_attempts = max(1, attempts)
    for attempt in range(1, total_attempts + 1):
        try:
            remove(path)
            return
        except FileNotFoundError:
            return
        except OSError:
            if attempt == total_attempts:
                raise
            sleep(delay_sec)


def delete_verified_sources(
    verification: Mapping[Path, bool],
    *,
    enabled: bool,
    attempts: int = DEFAULT_DELETE_ATTEMPTS,
    delay_sec: float = DEFAULT_DELETE_DELAY_SEC,
    logger: logging.Logger | None = None,
    remove: Callable[[Path], None] = os.remove,
    sleep: Callable[[float], None] = time.sleep,
) -> DeletionResult:
    """Delete every path mapped to True when deletion is enabled; never touch the rest."""

    effective_logger = logger or LOGGER
    result = DeletionResult()
    if not enabled:
        return result

    for path, verified in verification.items():
        if verified is not True:
            result.skipped_unverified.append(path)
            continue
        try:
            delete_with_retry(path, attempts=attempts, delay_sec=delay_sec, remove=remove, sleep=sleep)
        except OSError as exc:
            result.failed.append(path)
            effective_logger.warning(
                "deletion.failed path=%s attempts=%s error=%s",
                path,
                attempts,
                exc,
            )
            continue
        result.deleted.append(path)
        effective_logger.info("deletion.removed path=%s", path)

    if result.skipped_unverified:
        effective_logger.warning(
            "deletion.skipped_unverified count=%s paths=%s",
            len(result.skipped_unverified),
            [str(path) for path in result.skipped_unverified[:20]],
        )
    return result
