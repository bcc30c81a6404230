"""Typer CLI entrypoint for log_archiver."""

from __future__ import annotations

import logging
import smtplib
from pathlib import Path

import typer
import yaml

from log_archiver.archive.pipeline import ArchiveRunOptions, run_archive_pipeline, run_retention_only
from log_archiver.config import AppSettings, load_settings
from log_archiver.errors import ScanError
from log_archiver.ingest.discover import scan_candidate_files
from log_archiver.ingest.grouping import group_candidates
from log_archiver.logging_utils import PACKAGE_LOGGER_NAME, configure_logging
from log_archiver.notify.email import compose_notification, resolve_host_name, send_notification
from log_archiver.report.summary import format_console_summary
from log_archiver.report.text_report import write_text_report
from log_archiver.utils.paths import ensure_directories

app = typer.Typer(
    add_completion=False,
    help="log_archiver command line interface.",
    no_args_is_help=True,
)

CONFIG_FILE_OPTION = typer.Option(
    None,
    "--config-file",
    help="Optional settings YAML path.",
    exists=False,
    file_okay=True,
    dir_okay=False,
    readable=True,
)


def _load_and_optionally_configure_logger(
    config_file: Path | None,
    configure: bool,
) -> tuple[AppSettings, logging.Logger]:
    settings = load_settings(config_file=config_file)
    if configure:
        logger = configure_logging(
            settings.paths.logs_root / settings.logging.file_name,
            level=settings.logging.level,
        )
    else:
        logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    return settings, logger


@app.command("show-config")
def show_config(config_file: Path | None = CONFIG_FILE_OPTION) -> None:
    """Print the effective configuration after env overrides."""

    settings, _ = _load_and_optionally_configure_logger(config_file, configure=False)
    rendered = yaml.safe_dump(settings.as_dict(), sort_keys=False)
    typer.echo(rendered)


@app.command("init-dirs")
def init_dirs(config_file: Path | None = CONFIG_FILE_OPTION) -> None:
    """Create destination, artifacts, reports and log folders."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    created_dirs = ensure_directories(
        [
            settings.paths.dest_root,
            settings.paths.artifacts_root,
            settings.paths.reports_root,
            settings.paths.logs_root,
        ]
    )
    logger.info("init_dirs.created_dirs count=%s", len(created_dirs))
    typer.echo(f"Initialized {len(created_dirs)} folders.")


@app.command("discover-files")
def discover_files_cmd(
    show: int = typer.Option(20, "--show", min=0, help="Print the first N candidates."),
    config_file: Path | None = CONFIG_FILE_OPTION,
) -> None:
    """List log files old enough to be archived."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=False)
    try:
        candidates = scan_candidate_files(
            settings.paths.source_root,
            settings.archive.min_age_days,
            logger=logger,
        )
    except ScanError as exc:
        typer.echo(f"scan failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"candidates_total: {len(candidates)}")
    typer.echo(f"bytes_total: {sum(item.size_bytes for item in candidates)}")
    for item in candidates[:show]:
        typer.echo(f"{item.modified_at.isoformat(timespec='seconds')}  {item.size_bytes:>12}  {item.path}")


@app.command("plan-groups")
def plan_groups_cmd(config_file: Path | None = CONFIG_FILE_OPTION) -> None:
    """Show which periods would be archived, without writing anything."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=False)
    try:
        candidates = scan_candidate_files(
            settings.paths.source_root,
            settings.archive.min_age_days,
            logger=logger,
        )
    except ScanError as exc:
        typer.echo(f"scan failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    groups = group_candidates(
        candidates,
        settings.archive.scope,
        include_current_period=settings.archive.include_current_period,
        logger=logger,
    )
    typer.echo(f"scope: {settings.archive.scope}")
    typer.echo(f"group_count: {len(groups)}")
    for group in groups:
        typer.echo(f"{group.period_key}: files={len(group.files)} bytes={group.total_bytes}")


@app.command("archive-run")
def archive_run(
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Scan and group files without writing archives.",
    ),
    skip_retention: bool = typer.Option(
        False,
        "--skip-retention",
        help="Do not apply the retention policy after archiving.",
    ),
    no_email: bool = typer.Option(
        False,
        "--no-email",
        help="Skip the email notification even when enabled in settings.",
    ),
    config_file: Path | None = CONFIG_FILE_OPTION,
) -> None:
    """Archive aging log files by period, verify, optionally delete originals, then prune."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    options = ArchiveRunOptions(dry_run=dry_run, skip_retention=skip_retention)
    result = run_archive_pipeline(settings, options=options, logger=logger)
    stats = result.stats

    for line in format_console_summary(stats, error_limit=settings.report.console_error_limit):
        typer.echo(line)

    host = resolve_host_name()
    email_status = "Email disabled"
    if dry_run or no_email:
        email_status = "Email skipped"
    elif settings.email.enabled:
        message = compose_notification(stats, settings.email, host=host, workers=result.workers)
        try:
            send_notification(message, settings.email, logger=logger)
            email_status = "Email sent successfully"
        except (smtplib.SMTPException, OSError) as exc:
            email_status = f"Email send failed: {exc}"
            logger.error("archive_run.email_failed error=%s", exc)

    if settings.report.write_text_report and not dry_run:
        try:
            report_path = write_text_report(
                stats,
                settings.paths.reports_root,
                host=host,
                workers=result.workers,
                email_status=email_status,
            )
            typer.echo(f"report_path: {report_path}")
        except OSError as exc:
            logger.error("archive_run.report_failed error=%s", exc)

    typer.echo(f"run_id: {result.run_id}")
    typer.echo(f"email_status: {email_status}")
    if result.summary_path is not None:
        typer.echo(f"summary_path: {result.summary_path}")


@app.command("retention-run")
def retention_run(config_file: Path | None = CONFIG_FILE_OPTION) -> None:
    """Apply only the retention policy to the destination folder."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    result = run_retention_only(settings, logger=logger)
    typer.echo(f"policy: {result.policy.describe() if result.policy else 'disabled'}")
    typer.echo(f"removed: {len(result.removed)}")
    typer.echo(f"errors: {len(result.errors)}")
    for message in result.errors:
        typer.echo(f"  - {message}")


def main() -> None:
    """Console-script entrypoint."""

    app()


if __name__ == "__main__":
    main()
