"""Run summary and report writers."""

from log_archiver.report.summary import (
    build_run_summary,
    format_console_summary,
    group_results_frame,
    write_run_artifacts,
)
from log_archiver.report.text_report import render_text_report, write_text_report

__all__ = [
    "build_run_summary",
    "format_console_summary",
    "group_results_frame",
    "write_run_artifacts",
    "render_text_report",
    "write_text_report",
]
