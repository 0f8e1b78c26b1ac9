"""Data models for staged documents and processing results."""

from __future__ import annotations

import copy
import json
import math
import mimetypes
from dataclasses import dataclass, field
from numbers import Real
from pathlib import Path
from typing import Any, Optional

from ocr_submit.utils.logging import get_logger

logger = get_logger("models.document")

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")

# Mapping types the stdlib table may not know about on every platform
_EXTRA_MIME_TYPES = {
    ".webp": "image/webp",
    ".bmp": "image/bmp",
}


def format_file_size(size_bytes: int) -> str:
    """
    Render a byte count for humans, e.g. ``1.5 KB`` or ``12 MB``.

    Uses base 1024, at most two decimals, trailing zeros dropped.
    """
    if size_bytes <= 0:
        return "0 Bytes"

    exponent = 0
    while exponent < len(SIZE_UNITS) - 1 and size_bytes >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(size_bytes / (1024 ** exponent), 2)
    if value == int(value):
        return f"{int(value)} {SIZE_UNITS[exponent]}"
    return f"{value:g} {SIZE_UNITS[exponent]}"


def guess_mime_type(name: str) -> str:
    """Declared MIME type for a file name, ``application/octet-stream`` if unknown."""
    suffix = Path(name).suffix.lower()
    if suffix in _EXTRA_MIME_TYPES:
        return _EXTRA_MIME_TYPES[suffix]
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or "application/octet-stream"


@dataclass(frozen=True)
class Document:
    """
    A single file staged for submission.

    Attributes:
        name: File name as selected by the user
        size_bytes: Declared size in bytes
        mime_type: Declared MIME type (trusted, never sniffed)
        content: Raw file bytes
    """

    name: str
    size_bytes: int
    mime_type: str
    content: bytes = field(default=b"", repr=False)

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be >= 0, got {self.size_bytes}")

    @classmethod
    def from_bytes(
        cls,
        name: str,
        content: bytes,
        mime_type: Optional[str] = None,
    ) -> "Document":
        """Create a document from in-memory bytes."""
        return cls(
            name=name,
            size_bytes=len(content),
            mime_type=mime_type or guess_mime_type(name),
            content=content,
        )

    @classmethod
    def from_path(cls, path: Path, mime_type: Optional[str] = None) -> "Document":
        """
        Read a file from disk.

        The MIME type is taken from ``mime_type`` if given, otherwise
        declared from the file extension.
        """
        path = Path(path)
        content = path.read_bytes()
        logger.debug("document_loaded", path=str(path), size_bytes=len(content))
        return cls.from_bytes(path.name, content, mime_type)

    @property
    def extension(self) -> str:
        """Upper-cased extension for display, e.g. ``.PNG``."""
        return Path(self.name).suffix.upper()

    @property
    def display_size(self) -> str:
        return format_file_size(self.size_bytes)

    def to_dict(self) -> dict:
        """Metadata only; the content is never serialized."""
        return {
            "name": self.name,
            "size_bytes": self.size_bytes,
            "mime_type": self.mime_type,
        }


def _is_real_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class ProcessingResult:
    """
    Normalized result of one successful submission.

    ``raw`` holds the effective payload exactly as received; the other
    fields are views onto it.
    """

    text: str
    confidence: Optional[float] = None
    processing_time_ms: Optional[float] = None
    raw: Any = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ProcessingResult":
        """
        Map an effective payload onto a result.

        ``text`` resolves to the explicit string ``text`` field, else to the
        payload itself when it is a string, else to a JSON rendering of the
        payload. Confidence outside [0, 1] and negative processing times are
        dropped.
        """
        text: Optional[str] = None
        confidence: Optional[float] = None
        processing_time: Optional[float] = None

        if isinstance(payload, dict):
            if isinstance(payload.get("text"), str):
                text = payload["text"]

            raw_confidence = payload.get("confidence")
            if raw_confidence is not None:
                if _is_real_number(raw_confidence) and 0 <= raw_confidence <= 1:
                    confidence = float(raw_confidence)
                else:
                    logger.warning("confidence_ignored", value=repr(raw_confidence))

            raw_time = payload.get("processingTime")
            if raw_time is not None:
                if _is_real_number(raw_time) and raw_time >= 0:
                    processing_time = float(raw_time)
                else:
                    logger.warning("processing_time_ignored", value=repr(raw_time))

        elif isinstance(payload, str):
            text = payload

        if text is None:
            text = json.dumps(payload, indent=2, ensure_ascii=False)

        return cls(
            text=text,
            confidence=confidence,
            processing_time_ms=processing_time,
            raw=payload,
        )

    @property
    def confidence_level(self) -> Optional[str]:
        """Coarse confidence bucket: high (> 0.8), medium (> 0.6) or low."""
        if self.confidence is None:
            return None
        if self.confidence > 0.8:
            return "high"
        if self.confidence > 0.6:
            return "medium"
        return "low"

    def to_dict(self) -> Any:
        """The full stored result object, as received."""
        return copy.deepcopy(self.raw)
