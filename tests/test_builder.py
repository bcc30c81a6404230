import gzip
import zipfile

import pytest

from log_archiver.archive.builder import build_group_archive, build_single_file_archive
from log_archiver.archive.verify import verify_archive
from log_archiver.errors import GroupArchiveError, UnsupportedCompressionError
from log_archiver.ingest.grouping import FileGroup


def _group(key, reference, candidates):
    return FileGroup(period_key=key, files=tuple(candidates), reference_time=reference)


def test_group_archive_round_trip(tmp_path, at, write_file, candidate_for):
    dest = tmp_path / "dest"
    dest.mkdir()
    sources = [
        write_file(tmp_path / "src" / f"u_ex2401{day:02d}.log", at(2024, 1, day), f"line {day}\n" * day * 50)
        for day in (3, 9, 27)
    ]
    group = _group("2024-01", at(2024, 1, 1), [candidate_for(path) for path in sources])
    errors: list[str] = []

    record = build_group_archive(group, dest_root=dest, name_pattern="logs_%Y%m%d_%H%M%S", errors=errors)

    assert errors == []
    assert record.archive_path == dest / "logs_20240101_000000.zip"
    assert record.added_paths == tuple(sources)
    assert record.added_bytes == sum(path.stat().st_size for path in sources)
    with zipfile.ZipFile(record.archive_path) as archive:
        sizes = {info.filename: info.file_size for info in archive.infolist()}
    assert sizes == {path.name: path.stat().st_size for path in sources}


def test_missing_member_is_skipped_and_reported(tmp_path, at, write_file, candidate_for):
    dest = tmp_path / "dest"
    dest.mkdir()
    sources = [write_file(tmp_path / "src" / f"f{index}.log", at(2024, 1, index + 1)) for index in range(5)]
    candidates = [candidate_for(path) for path in sources]
    sources[2].unlink()
    errors: list[str] = []

    record = build_group_archive(
        _group("2024-01", at(2024, 1, 1), candidates),
        dest_root=dest,
        name_pattern="logs_%Y%m",
        errors=errors,
    )

    assert len(record.added_paths) == 4
    assert sources[2] not in record.added_paths
    assert len(errors) == 1 and errors[0].startswith(f"open {sources[2]}")
    with zipfile.ZipFile(record.archive_path) as archive:
        assert sorted(archive.namelist()) == ["f0.log", "f1.log", "f3.log", "f4.log"]


def test_base_name_collision_overwrites_inside_container(tmp_path, at, write_file, candidate_for):
    dest = tmp_path / "dest"
    dest.mkdir()
    first = write_file(tmp_path / "site1" / "app.log", at(2024, 1, 2), b"a" * 10)
    second = write_file(tmp_path / "site2" / "app.log", at(2024, 1, 3), b"b" * 20)
    group = _group("2024-01", at(2024, 1, 1), [candidate_for(first), candidate_for(second)])

    with pytest.warns(UserWarning, match="Duplicate name"):
        record = build_group_archive(group, dest_root=dest, name_pattern="logs_%Y%m")

    with zipfile.ZipFile(record.archive_path) as archive:
        assert archive.namelist() == ["app.log", "app.log"]
        assert archive.getinfo("app.log").file_size == 20
    assert verify_archive(record) == {first: False, second: True}


def test_gzip_is_rejected_for_groups(tmp_path, at, write_file, candidate_for):
    dest = tmp_path / "dest"
    dest.mkdir()
    source = write_file(tmp_path / "src" / "a.log", at(2024, 1, 2))

    with pytest.raises(UnsupportedCompressionError, match="requires zip"):
        build_group_archive(
            _group("2024-01", at(2024, 1, 1), [candidate_for(source)]),
            dest_root=dest,
            name_pattern="logs_%Y%m",
            compression="gzip",
        )
    assert list(dest.iterdir()) == []


def test_close_failure_removes_container(tmp_path, at, write_file, candidate_for, monkeypatch):
    dest = tmp_path / "dest"
    dest.mkdir()
    source = write_file(tmp_path / "src" / "a.log", at(2024, 1, 2))

    def failing_close(self):
        if self.fp is None:
            return
        self.fp = None
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(zipfile.ZipFile, "close", failing_close)

    with pytest.raises(GroupArchiveError, match="No space left"):
        build_group_archive(
            _group("2024-01", at(2024, 1, 1), [candidate_for(source)]),
            dest_root=dest,
            name_pattern="logs_%Y%m",
        )
    assert list(dest.iterdir()) == []
    assert source.exists()


def test_single_file_gzip_archive(tmp_path, at, write_file, candidate_for):
    dest = tmp_path / "dest"
    dest.mkdir()
    source = write_file(tmp_path / "src" / "w3svc.log", at(2024, 1, 2), "GET /index.html 200\n" * 100)

    record = build_single_file_archive(
        candidate_for(source),
        dest_root=dest,
        name_pattern="%F_%Y%m%d",
        compression="gzip",
        now=at(2024, 6, 1, 9),
    )

    assert record.archive_path.name == "w3svc_20240601.gz"
    assert record.compression == "gzip"
    with gzip.open(record.archive_path, "rb") as stream:
        assert stream.read() == source.read_bytes()
    assert verify_archive(record) == {source: True}


def test_single_file_missing_source_raises(tmp_path, at, write_file, candidate_for):
    dest = tmp_path / "dest"
    dest.mkdir()
    source = write_file(tmp_path / "src" / "gone.log", at(2024, 1, 2))
    candidate = candidate_for(source)
    source.unlink()

    with pytest.raises(GroupArchiveError, match="failed to open"):
        build_single_file_archive(candidate, dest_root=dest, name_pattern="x", compression="zip", now=at(2024, 6, 1))
    assert list(dest.iterdir()) == []
