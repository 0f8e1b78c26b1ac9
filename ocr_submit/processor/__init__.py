"""FSM-based document processing.

A session moves through well-defined states:

    IDLE -> PROCESSING -> SUCCESS | ERROR -> IDLE

IDLE also covers a staged-but-unsubmitted file. A new submission, a reset
or a file removal supersedes whatever is in flight; late completions of a
superseded submission are discarded.
"""

from ocr_submit.processor.machine import ProcessingStateMachine
from ocr_submit.processor.progress import ProgressEstimator, ProgressHandle
from ocr_submit.processor.states import (
    TRANSITIONS,
    ProcessingSession,
    SessionInvariantError,
    SessionStatus,
    TransitionError,
)

__all__ = [
    # States
    "SessionStatus",
    "ProcessingSession",
    "SessionInvariantError",
    "TransitionError",
    "TRANSITIONS",
    # Progress
    "ProgressEstimator",
    "ProgressHandle",
    # Machine
    "ProcessingStateMachine",
]
