"""File acceptance checks run before anything reaches the network."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from ocr_submit.config.settings import DEFAULT_ACCEPTED_TYPES, DEFAULT_MAX_FILE_SIZE
from ocr_submit.models import Document, format_file_size
from ocr_submit.utils.logging import get_logger
from ocr_submit.utils.result import Err, Ok, Rejection, RejectionReason, Result

logger = get_logger("pipeline.validator")

ValidationOutcome = Result[Document, Rejection]

_TYPE_LABELS = {
    "image/jpeg": "JPG",
    "image/png": "PNG",
    "image/gif": "GIF",
    "image/bmp": "BMP",
    "image/webp": "WebP",
}


def normalize_mime_type(mime_type: str) -> str:
    """Lower-case a MIME type and strip parameters such as ``; charset=``."""
    return mime_type.split(";", 1)[0].strip().lower()


class FileValidator:
    """
    Accepts or rejects a candidate file by declared type and size.

    Size is checked before type, so an oversized file is always reported
    as too large whatever its type. Bytes are never sniffed.
    """

    def __init__(
        self,
        max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE,
        accepted_types: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> None:
        self.max_file_size_bytes = max_file_size_bytes
        self.accepted_types = {
            normalize_mime_type(mime): tuple(extensions)
            for mime, extensions in (accepted_types or DEFAULT_ACCEPTED_TYPES).items()
        }

    @property
    def accepted_extensions(self) -> list[str]:
        return sorted({ext for exts in self.accepted_types.values() for ext in exts})

    def describe_types(self) -> str:
        """Human list of accepted formats, e.g. ``JPG, PNG, or WebP``."""
        labels = [_TYPE_LABELS.get(mime, mime) for mime in self.accepted_types]
        if len(labels) <= 2:
            return " or ".join(labels)
        return f"{', '.join(labels[:-1])}, or {labels[-1]}"

    def validate(self, candidate: Document) -> ValidationOutcome:
        """
        Classify a single candidate.

        Returns:
            Ok(candidate) if accepted, Err(Rejection) otherwise
        """
        if candidate.size_bytes > self.max_file_size_bytes:
            logger.info(
                "file_rejected",
                reason=RejectionReason.TOO_LARGE.value,
                file_name=candidate.name,
                size_bytes=candidate.size_bytes,
                max_size_bytes=self.max_file_size_bytes,
            )
            return Err(Rejection(
                reason=RejectionReason.TOO_LARGE,
                message=(
                    "Please select a file smaller than "
                    f"{format_file_size(self.max_file_size_bytes).replace(' ', '')}"
                ),
                file_name=candidate.name,
            ))

        if normalize_mime_type(candidate.mime_type) not in self.accepted_types:
            logger.info(
                "file_rejected",
                reason=RejectionReason.UNSUPPORTED_TYPE.value,
                file_name=candidate.name,
                mime_type=candidate.mime_type,
            )
            return Err(Rejection(
                reason=RejectionReason.UNSUPPORTED_TYPE,
                message=f"Please select an image file ({self.describe_types()})",
                file_name=candidate.name,
            ))

        logger.debug(
            "file_accepted",
            file_name=candidate.name,
            mime_type=candidate.mime_type,
            size_bytes=candidate.size_bytes,
        )
        return Ok(candidate)

    def select(self, candidates: Sequence[Document]) -> Optional[ValidationOutcome]:
        """
        Apply the single-file policy: only the first candidate is validated.

        Returns:
            The first candidate's outcome, or None when there are no candidates
        """
        if not candidates:
            return None

        if len(candidates) > 1:
            logger.debug(
                "extra_candidates_ignored",
                kept=candidates[0].name,
                ignored=[c.name for c in candidates[1:]],
            )

        return self.validate(candidates[0])
