"""Run notifications."""

from log_archiver.notify.email import (
    compose_notification,
    notification_subject,
    resolve_host_name,
    send_notification,
)

__all__ = [
    "compose_notification",
    "notification_subject",
    "resolve_host_name",
    "send_notification",
]
