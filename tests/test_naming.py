from pathlib import Path

from log_archiver.archive.naming import (
    compression_extension,
    open_unique_container,
    resolve_period_archive_name,
    resolve_single_file_archive_name,
)
from log_archiver.ingest.grouping import period_start_for


def test_period_name_zeroes_time_of_day(at):
    name = resolve_period_archive_name("logs_%Y%m%d_%H%M%S", at(2024, 1, 1), "zip")
    assert name == "logs_20240101_000000.zip"


def test_period_name_all_tokens(at):
    name = resolve_period_archive_name("%Y-%m-%d_%y_%j_%F", at(2024, 3, 17, 13, 45, 10), "zip")
    assert name == "2024-03-17_24_077_logs.zip"


def test_single_file_name_uses_wall_clock_and_stem(at):
    now = at(2024, 5, 6, 7, 8, 9)
    assert (
        resolve_single_file_archive_name("arch_%Y%m%d_%H%M%S", Path("/srv/app.log"), "gzip", now)
        == "arch_20240506_070809_app.gz"
    )
    assert resolve_single_file_archive_name("%F-%Y", Path("/srv/app.log"), "zip", now) == "app-2024.zip"


def test_unknown_compression_falls_back_to_zip_extension():
    assert compression_extension("gzip") == ".gz"
    assert compression_extension("ZIP") == ".zip"
    assert compression_extension("bzip2") == ".zip"


def test_open_unique_container_never_overwrites(tmp_path):
    existing = tmp_path / "logs_20240101_000000.zip"
    existing.write_bytes(b"previous run")

    handle, path = open_unique_container(tmp_path, existing.name)
    handle.close()
    second_handle, second_path = open_unique_container(tmp_path, existing.name)
    second_handle.close()

    assert existing.read_bytes() == b"previous run"
    assert path.name == "logs_20240101_000000_1.zip"
    assert second_path.name == "logs_20240101_000000_2.zip"


def test_monthly_day_of_year_comes_from_first_of_month(at):
    reference = period_start_for(at(2024, 3, 29, 18), "monthly")

    name = resolve_period_archive_name("logs_%Y_%j", reference, "zip")

    assert name == "logs_2024_061.zip"
