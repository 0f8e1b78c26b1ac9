"""Data models for ocr-submit."""

from ocr_submit.models.document import (
    Document,
    ProcessingResult,
    format_file_size,
    guess_mime_type,
)

__all__ = [
    "Document",
    "ProcessingResult",
    "format_file_size",
    "guess_mime_type",
]
