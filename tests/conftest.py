import logging
import os
from datetime import datetime
from pathlib import Path

import pytest

from log_archiver.config import (
    AppSettings,
    ArchiveConfig,
    DeletionConfig,
    PathsConfig,
    ReportConfig,
    RetentionConfig,
    WorkersConfig,
)
from log_archiver.ingest.discover import CandidateFile
from log_archiver.utils.time_utils import datetime_to_ns


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path_factory, monkeypatch):
    # Keep the repo's configs/settings.yaml and any LOG_ARCHIVER_* vars out of tests.
    for key in list(os.environ):
        if key.startswith("LOG_ARCHIVER_"):
            monkeypatch.delenv(key, raising=False)
    missing = tmp_path_factory.mktemp("settings") / "absent.yaml"
    monkeypatch.setenv("LOG_ARCHIVER_SETTINGS_FILE", str(missing))


@pytest.fixture()
def restore_root_handlers():
    root = logging.getLogger()
    saved = list(root.handlers)
    saved_level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in saved:
            root.removeHandler(handler)
            handler.close()
    for handler in saved:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)


def local_dt(*args: int) -> datetime:
    return datetime(*args).astimezone()


@pytest.fixture()
def at():
    return local_dt


@pytest.fixture()
def write_file():
    def _write(path: Path, when: datetime, content: bytes | str = b"entry\n") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        data = content.encode("utf-8") if isinstance(content, str) else content
        path.write_bytes(data)
        stamp = datetime_to_ns(when)
        os.utime(path, ns=(stamp, stamp))
        return path

    return _write


@pytest.fixture()
def candidate_for():
    def _candidate(path: Path) -> CandidateFile:
        stats = path.stat()
        return CandidateFile(
            path=path,
            size_bytes=stats.st_size,
            modified_at=datetime.fromtimestamp(stats.st_mtime).astimezone(),
            mtime_ns=stats.st_mtime_ns,
        )

    return _candidate


@pytest.fixture()
def workspace(tmp_path):
    source = tmp_path / "source"
    dest = tmp_path / "dest"
    source.mkdir()
    return {"root": tmp_path, "source": source, "dest": dest}


@pytest.fixture()
def make_settings(workspace):
    def _make(
        *,
        archive: dict | None = None,
        deletion: dict | None = None,
        retention: dict | None = None,
        max_workers: int | None = 2,
    ) -> AppSettings:
        root = workspace["root"]
        return AppSettings(
            paths=PathsConfig(
                source_root=workspace["source"],
                dest_root=workspace["dest"],
                artifacts_root=root / "artifacts",
                reports_root=root / "reports",
                logs_root=root / "logs",
            ),
            archive=ArchiveConfig(**{"min_age_days": 1, **(archive or {})}),
            deletion=DeletionConfig(**{"retry_delay_sec": 0.0, **(deletion or {})}),
            retention=RetentionConfig(**(retention or {})),
            workers=WorkersConfig(max_workers=max_workers),
            report=ReportConfig(),
        )

    return _make
