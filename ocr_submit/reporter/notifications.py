"""User-facing notifications emitted by the processing lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from ocr_submit.utils.logging import get_logger

logger = get_logger("reporter.notifications")


class NotificationKind(Enum):
    """Events the presentation layer is told about."""

    FILE_ACCEPTED = "file_accepted"
    FILE_TOO_LARGE = "file_too_large"
    UNSUPPORTED_TYPE = "unsupported_type"
    NO_FILE_SELECTED = "no_file_selected"
    PROCESSING_SUCCEEDED = "processing_succeeded"
    PROCESSING_FAILED = "processing_failed"
    EXPORT_STARTED = "export_started"


@dataclass(frozen=True)
class Notification:
    """A notification payload."""

    kind: NotificationKind
    title: str
    description: str
    destructive: bool = False

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "title": self.title,
            "description": self.description,
            "destructive": self.destructive,
        }


def build_notification(kind: NotificationKind, **payload: Any) -> Notification:
    """
    Render the copy for a notification.

    Recognized payload keys: ``file_name`` (FILE_ACCEPTED) and ``message``
    (FILE_TOO_LARGE, UNSUPPORTED_TYPE, PROCESSING_FAILED).
    """
    if kind is NotificationKind.FILE_ACCEPTED:
        return Notification(
            kind,
            "File selected",
            f"{payload.get('file_name', 'File')} ready for processing",
        )
    if kind is NotificationKind.FILE_TOO_LARGE:
        return Notification(
            kind,
            "File too large",
            payload.get("message") or "Please select a file smaller than 10MB",
            destructive=True,
        )
    if kind is NotificationKind.UNSUPPORTED_TYPE:
        return Notification(
            kind,
            "Invalid file type",
            payload.get("message")
            or "Please select an image file (JPG, PNG, GIF, BMP, or WebP)",
            destructive=True,
        )
    if kind is NotificationKind.NO_FILE_SELECTED:
        return Notification(
            kind,
            "No file selected",
            "Please select a file to process",
            destructive=True,
        )
    if kind is NotificationKind.PROCESSING_SUCCEEDED:
        return Notification(
            kind,
            "Processing complete",
            "Document has been successfully processed",
        )
    if kind is NotificationKind.PROCESSING_FAILED:
        return Notification(
            kind,
            "Processing failed",
            payload.get("message") or "Unknown error occurred",
            destructive=True,
        )
    return Notification(
        NotificationKind.EXPORT_STARTED,
        "Download started",
        "OCR results have been downloaded",
    )


Subscriber = Callable[[Notification], None]


class Notifier:
    """
    Dispatches notifications to subscribers in registration order.

    Every notification is logged and kept in ``history`` for the lifetime
    of the notifier.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self.history: list[Notification] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def emit(self, kind: NotificationKind, **payload: Any) -> Notification:
        """
        Build and dispatch a notification.

        Args:
            kind: What happened
            **payload: Details used to render the message

        Returns:
            The dispatched notification
        """
        notification = build_notification(kind, **payload)
        self.history.append(notification)

        log = logger.warning if notification.destructive else logger.info
        log(
            "notification",
            kind=kind.value,
            title=notification.title,
            description=notification.description,
        )

        for subscriber in list(self._subscribers):
            subscriber(notification)

        return notification

    def kinds(self) -> list[NotificationKind]:
        """Kinds emitted so far, oldest first."""
        return [n.kind for n in self.history]
