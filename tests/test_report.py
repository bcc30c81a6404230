from datetime import datetime

from log_archiver.archive.stats import GroupOutcome, RunStatistics
from log_archiver.report.summary import GROUP_RESULTS_SCHEMA, format_console_summary, group_results_frame
from log_archiver.report.text_report import render_text_report, report_file_name, write_text_report


def _stats_with_errors(count: int) -> RunStatistics:
    stats = RunStatistics()
    stats.record_errors(f"open /var/log/app/file{index}.log: permission denied" for index in range(count))
    stats.finalize()
    return stats


def test_console_summary_caps_error_list():
    lines = format_console_summary(_stats_with_errors(7), error_limit=5)

    assert "ARCHIVE SUMMARY" in lines
    assert "Errors encountered: 7" in lines
    listed = [line for line in lines if line.startswith("  - ")]
    assert len(listed) == 5
    assert "  ... and 2 more errors" in lines


def test_console_summary_without_errors_has_no_error_section():
    stats = RunStatistics(files_processed=3, files_archived=3, bytes_before=3000, bytes_after=1000)
    stats.finalize()

    lines = format_console_summary(stats)

    assert "Compression ratio: 66.67%" in lines
    assert not any(line.startswith("Errors") for line in lines)


def test_text_report_lists_every_error(tmp_path):
    stats = _stats_with_errors(7)

    content = render_text_report(stats, host="web01", workers=4, email_status="Email disabled", cpu_count=8)

    assert "Host: web01" in content
    assert "CPU Count: 8" in content
    assert "Email status: Email disabled" in content
    assert content.count("\n - open ") == 7

    path = write_text_report(stats, tmp_path / "reports", host="web01", workers=4, email_status="Email sent")
    assert path.parent == tmp_path / "reports"
    assert path.name.startswith("compression_report_") and path.suffix == ".txt"
    assert "Email status: Email sent" in path.read_text(encoding="utf-8")


def test_report_file_name_uses_timestamp():
    assert report_file_name(datetime(2024, 3, 5, 14, 7, 9)) == "compression_report_20240305_140709.txt"


def test_group_results_frame_schema():
    empty = group_results_frame([])
    assert empty.height == 0
    assert dict(empty.schema) == GROUP_RESULTS_SCHEMA

    frame = group_results_frame(
        [
            GroupOutcome("2024-01", "/dest/logs_202401.zip", 5, 4, 4, 0, 500, 120, True),
            GroupOutcome("2024-02", None, 2, 0, 0, 0, 0, 0, False, "Error archiving group 2024-02: boom"),
        ]
    )
    assert frame.get_column("success").to_list() == [True, False]
    assert frame.get_column("archive_path").to_list() == ["/dest/logs_202401.zip", None]
