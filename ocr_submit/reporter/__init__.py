"""Reporting: result export and user notifications."""

from ocr_submit.reporter.exporter import ExportArtifact, ResultExporter, artifact_filename
from ocr_submit.reporter.notifications import (
    Notification,
    NotificationKind,
    Notifier,
    build_notification,
)

__all__ = [
    "ExportArtifact",
    "ResultExporter",
    "artifact_filename",
    "Notification",
    "NotificationKind",
    "Notifier",
    "build_notification",
]
