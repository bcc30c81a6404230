from datetime import timedelta

import pytest
from typer.testing import CliRunner

from log_archiver.cli import app
from log_archiver.utils.time_utils import now_local

runner = CliRunner()

SETTINGS_YAML = """
paths:
  source_root: ./incoming
  dest_root: ./archives
archive:
  min_age_days: 30
email:
  password: hunter2
"""


@pytest.fixture()
def project(tmp_path, write_file):
    settings_file = tmp_path / "configs" / "settings.yaml"
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text(SETTINGS_YAML, encoding="utf-8")
    old = (now_local() - timedelta(days=400)).replace(day=15, hour=12, minute=0)
    for index in range(3):
        write_file(tmp_path / "incoming" / f"app{index}.log", old + timedelta(hours=index), "GET / 200\n" * 20)
    write_file(tmp_path / "incoming" / "today.log", now_local())
    return tmp_path, settings_file


def test_show_config_masks_password(project):
    _root, settings_file = project

    result = runner.invoke(app, ["show-config", "--config-file", str(settings_file)])

    assert result.exit_code == 0, result.output
    assert "hunter2" not in result.output
    assert "min_age_days: 30" in result.output


def test_plan_groups_lists_old_period(project):
    _root, settings_file = project

    result = runner.invoke(app, ["plan-groups", "--config-file", str(settings_file)])

    assert result.exit_code == 0, result.output
    assert "group_count: 1" in result.output
    assert "files=3" in result.output


def test_archive_run_writes_archive_and_report(project, restore_root_handlers):
    root, settings_file = project

    result = runner.invoke(app, ["archive-run", "--config-file", str(settings_file)])

    assert result.exit_code == 0, result.output
    assert "ARCHIVE SUMMARY" in result.output
    assert "Files archived: 3" in result.output
    assert "email_status: Email disabled" in result.output
    assert len(list((root / "archives").glob("logs_*.zip"))) == 1
    assert len(list((root / "reports").glob("compression_report_*.txt"))) == 1
    assert (root / "logs" / "archiver.log").exists()
    assert len(list((root / "incoming").iterdir())) == 4


def test_discover_files_reports_scan_failure(tmp_path):
    settings_file = tmp_path / "configs" / "settings.yaml"
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text("paths:\n  source_root: ./missing\n", encoding="utf-8")

    result = runner.invoke(app, ["discover-files", "--config-file", str(settings_file)])

    assert result.exit_code == 1
