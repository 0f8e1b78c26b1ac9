"""Utility modules for ocr-submit."""

from ocr_submit.utils.atomic import AtomicWriteError, atomic_write, atomic_write_text
from ocr_submit.utils.logging import (
    clear_submission_context,
    configure_logging,
    get_logger,
    set_submission_context,
)
from ocr_submit.utils.result import Err, Ok, Result

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "set_submission_context",
    "clear_submission_context",
    # Files
    "AtomicWriteError",
    "atomic_write",
    "atomic_write_text",
    # Result
    "Ok",
    "Err",
    "Result",
]
