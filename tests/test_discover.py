from datetime import timedelta
from pathlib import Path

import pytest

from log_archiver.errors import ScanError
from log_archiver.ingest import discover
from log_archiver.ingest.discover import is_log_file_name, scan_candidate_files


def test_is_log_file_name_heuristics():
    assert is_log_file_name(Path("/srv/w3svc/u_ex240101.LOG"))
    assert is_log_file_name(Path("/srv/data/notes.txt"))
    assert is_log_file_name(Path("/var/Logs/app/events.csv"))
    assert is_log_file_name(Path("/srv/data/catalog.json"))
    assert not is_log_file_name(Path("/srv/data/image.png"))


def test_scan_keeps_old_named_files_oldest_first(tmp_path, at, write_file):
    now = at(2024, 3, 1, 12)
    root = tmp_path / "w3svc"
    write_file(root / "b.txt", at(2024, 2, 1, 8))
    write_file(root / "nested" / "deep" / "a.log", at(2024, 1, 10, 8))
    write_file(root / "app_logs" / "c.csv", at(2024, 1, 20, 8))
    write_file(root / "data" / "d.csv", at(2024, 1, 5, 8))
    write_file(root / "recent.log", at(2024, 2, 28, 8))

    found = scan_candidate_files(root, 7, now=now)

    assert [item.path.name for item in found] == ["a.log", "c.csv", "b.txt"]
    assert all(item.path.is_absolute() for item in found)
    assert found[0].size_bytes == len(b"entry\n")
    assert found[0].modified_at == at(2024, 1, 10, 8)


def test_scan_includes_file_exactly_at_age_cutoff(tmp_path, at, write_file):
    now = at(2024, 3, 1, 12)
    root = tmp_path / "w3svc"
    write_file(root / "edge.txt", now - timedelta(days=7))
    write_file(root / "young.txt", now - timedelta(days=7) + timedelta(microseconds=1))

    found = scan_candidate_files(root, 7, now=now)

    assert [item.path.name for item in found] == ["edge.txt"]


def test_scan_never_returns_directories(tmp_path, at, write_file):
    root = tmp_path / "w3svc"
    (root / "old.log").mkdir(parents=True)
    write_file(root / "old.log" / "inner.txt", at(2023, 5, 1))

    found = scan_candidate_files(root, 1, now=at(2024, 1, 1))

    assert [item.path.name for item in found] == ["inner.txt"]


def test_scan_missing_root_is_fatal(tmp_path):
    with pytest.raises(ScanError):
        scan_candidate_files(tmp_path / "does-not-exist", 7)


def test_scan_traversal_error_discards_partial_results(tmp_path, at, write_file, monkeypatch):
    root = tmp_path / "w3svc"
    write_file(root / "a.txt", at(2023, 1, 1))

    def failing_walk(top, onerror=None):
        yield str(top), [], ["a.txt"]
        onerror(PermissionError(13, "Permission denied", str(Path(top) / "locked")))

    monkeypatch.setattr(discover.os, "walk", failing_walk)

    with pytest.raises(ScanError, match="Permission denied"):
        scan_candidate_files(root, 1, now=at(2024, 1, 1))


def test_scan_skips_dangling_symlink(tmp_path, at, write_file):
    root = tmp_path / "w3svc"
    good = write_file(root / "good.txt", at(2023, 6, 1))
    (root / "stale.txt").symlink_to(root / "missing.txt")

    found = scan_candidate_files(root, 1, now=at(2024, 1, 1))

    assert [item.path for item in found] == [good]


def test_scan_keeps_walk_path_and_skips_symlinked_files(tmp_path, at, write_file):
    root = tmp_path / "w3svc"
    outside = write_file(tmp_path / "elsewhere" / "real_data.bin", at(2023, 6, 1))
    (root / "u_ex230601.txt").parent.mkdir(parents=True)
    (root / "u_ex230601.txt").symlink_to(outside)
    (tmp_path / "alias").symlink_to(root, target_is_directory=True)
    write_file(root / "u_ex230602.txt", at(2023, 6, 2))

    found = scan_candidate_files(tmp_path / "alias", 1, now=at(2024, 1, 1))

    assert [item.path for item in found] == [tmp_path / "alias" / "u_ex230602.txt"]
