"""HTML email notification for a finished run."""

from __future__ import annotations

import html
import logging
import smtplib
import socket
from email.message import EmailMessage
from typing import Callable

from log_archiver.archive.stats import MEGABYTE, RunStatistics
from log_archiver.config import EmailConfig

LOGGER = logging.getLogger(__name__)

FOOTER = "log_archiver"


def resolve_host_name() -> str:
    """Return this machine's host name, or `unknown-host`."""

    return socket.gethostname() or "unknown-host"


def notification_subject(stats: RunStatistics, host: str, custom_subject: str = "") -> str:
    status = "Success" if stats.succeeded else "Failed"
    subject = f"{status} - Log archive {host}"
    if custom_subject.strip():
        subject = f"{subject} - {custom_subject.strip()}"
    return subject


def _row(label: str, value: object) -> str:
    return f"<tr><td>{html.escape(label)}</td><td>{html.escape(str(value))}</td></tr>"


def render_html_body(stats: RunStatistics, subject: str, *, workers: int) -> str:
    ratio = stats.compression_ratio_pct
    parts = [
        "<html><body>",
        f"<h3>{html.escape(subject)}</h3>",
        '<table border="1" cellpadding="6" cellspacing="0">',
        _row("Groups", stats.group_count),
        _row("Files processed", stats.files_processed),
        _row("Files archived", stats.files_archived),
        _row("Files deleted", stats.files_deleted),
        _row("Total before", f"{stats.bytes_before / MEGABYTE:.2f} MB"),
        _row("Total after", f"{stats.bytes_after / MEGABYTE:.2f} MB"),
        _row("Compression ratio", f"{ratio:.2f}%" if ratio is not None else "n/a"),
        _row("Start", stats.started_ts.isoformat(timespec="seconds")),
        _row("End", stats.finished_ts.isoformat(timespec="seconds") if stats.finished_ts else ""),
        _row("Duration", f"{stats.duration_sec:.2f}s"),
        _row("Workers", workers),
    ]
    if stats.errors:
        items = "".join(f"<li>{html.escape(message)}</li>" for message in stats.errors)
        parts.append(f"<tr><td>Errors</td><td><ul>{items}</ul></td></tr>")
    parts.extend(["</table>", f"<p><small>{html.escape(FOOTER)}</small></p>", "</body></html>"])
    return "".join(parts)


def compose_notification(
    stats: RunStatistics,
    email_settings: EmailConfig,
    *,
    host: str,
    workers: int,
) -> EmailMessage:
    """Build the notification message for a finished run."""

    subject = notification_subject(stats, host, email_settings.subject)
    message = EmailMessage()
    message["From"] = email_settings.sender
    message["To"] = email_settings.recipient
    message["Subject"] = subject
    message.set_content(render_html_body(stats, subject, workers=workers), subtype="html", charset="utf-8")
    return message


def send_notification(
    message: EmailMessage,
    email_settings: EmailConfig,
    *,
    smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    logger: logging.Logger | None = None,
) -> None:
    """Deliver `message` over SMTP; errors propagate to the caller."""

    effective_logger = logger or LOGGER
    with smtp_factory(
        email_settings.smtp_host,
        email_settings.smtp_port,
        timeout=email_settings.timeout_sec,
    ) as client:
        if email_settings.use_starttls:
            client.starttls()
        if email_settings.username:
            client.login(email_settings.username, email_settings.password)
        client.send_message(message)
    effective_logger.info(
        "notify.email_sent host=%s port=%s to=%s",
        email_settings.smtp_host,
        email_settings.smtp_port,
        email_settings.recipient,
    )
