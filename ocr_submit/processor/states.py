"""FSM state definitions for a document processing session."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from ocr_submit.models import Document, ProcessingResult


class SessionStatus(Enum):
    """States of the processing lifecycle."""

    IDLE = "idle"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"

    def is_terminal(self) -> bool:
        """Terminal states stay put until the next explicit action."""
        return self in (SessionStatus.SUCCESS, SessionStatus.ERROR)

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    SessionStatus.IDLE: "Ready to Process",
    SessionStatus.PROCESSING: "Processing Document...",
    SessionStatus.SUCCESS: "Processing Complete",
    SessionStatus.ERROR: "Processing Failed",
}


# Valid state transitions
TRANSITIONS: dict[SessionStatus, set[SessionStatus]] = {
    # Staging a file keeps the session idle
    SessionStatus.IDLE: {SessionStatus.IDLE, SessionStatus.PROCESSING},
    # A new submission supersedes the running one; reset/remove abandon it
    SessionStatus.PROCESSING: {
        SessionStatus.PROCESSING,
        SessionStatus.SUCCESS,
        SessionStatus.ERROR,
        SessionStatus.IDLE,
    },
    SessionStatus.SUCCESS: {SessionStatus.PROCESSING, SessionStatus.IDLE},
    SessionStatus.ERROR: {SessionStatus.PROCESSING, SessionStatus.IDLE},
}


class TransitionError(Exception):
    """Invalid state transition."""

    def __init__(self, from_state: SessionStatus, to_state: SessionStatus) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid transition: {from_state.name} -> {to_state.name}"
        )


class SessionInvariantError(Exception):
    """A transition would leave the session in an inconsistent state."""


@dataclass
class ProcessingSession:
    """
    Mutable lifecycle state for the current document.

    Invariants:
        SUCCESS => result is set
        ERROR   => error_message is set
        IDLE    => progress == 0, no result, no error_message
    """

    status: SessionStatus = SessionStatus.IDLE
    progress: float = 0.0
    result: Optional[ProcessingResult] = None
    error_message: Optional[str] = None
    document: Optional[Document] = None

    # Submission counter; completions stamped with an older value are stale
    attempt: int = 0

    # History of state transitions
    history: list[tuple[str, str]] = field(default_factory=list)

    def can_transition_to(self, new_status: SessionStatus) -> bool:
        """Check if transition to new_status is valid."""
        return new_status in TRANSITIONS.get(self.status, set())

    def transition_to(
        self,
        new_status: SessionStatus,
        progress: float = 0.0,
        result: Optional[ProcessingResult] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """
        Move to a new status, replacing all transient fields at once.

        Raises:
            TransitionError: If the transition is not in TRANSITIONS
            SessionInvariantError: If the new fields break a status invariant
        """
        if not self.can_transition_to(new_status):
            raise TransitionError(self.status, new_status)

        check_invariants(new_status, progress, result, error_message)

        self.history.append((
            new_status.name,
            datetime.now(timezone.utc).isoformat(),
        ))

        self.status = new_status
        self.progress = progress
        self.result = result
        self.error_message = error_message

    def snapshot(self) -> "ProcessingSession":
        """Independent copy for consumers outside the state machine."""
        return ProcessingSession(
            status=self.status,
            progress=self.progress,
            result=self.result,
            error_message=self.error_message,
            document=self.document,
            attempt=self.attempt,
            history=copy.copy(self.history),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for display or logging."""
        return {
            "status": self.status.value,
            "label": self.status.label,
            "progress": round(self.progress, 2),
            "document": self.document.to_dict() if self.document else None,
            "attempt": self.attempt,
            "error_message": self.error_message,
            "result": (
                {
                    "text": self.result.text,
                    "confidence": self.result.confidence,
                    "confidence_level": self.result.confidence_level,
                    "processing_time_ms": self.result.processing_time_ms,
                    "raw": self.result.to_dict(),
                }
                if self.result
                else None
            ),
        }


def check_invariants(
    status: SessionStatus,
    progress: float,
    result: Optional[ProcessingResult],
    error_message: Optional[str],
) -> None:
    """Raise SessionInvariantError if the fields do not fit the status."""
    if not 0 <= progress <= 100:
        raise SessionInvariantError(f"progress out of range: {progress}")

    if status is SessionStatus.SUCCESS and result is None:
        raise SessionInvariantError("SUCCESS requires a result")

    if status is SessionStatus.ERROR and error_message is None:
        raise SessionInvariantError("ERROR requires an error message")

    if status is SessionStatus.IDLE and (
        progress != 0 or result is not None or error_message is not None
    ):
        raise SessionInvariantError("IDLE requires cleared progress, result and error")
