"""Export of processing results as downloadable JSON artifacts."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ocr_submit.models import ProcessingResult
from ocr_submit.utils.atomic import atomic_write_text
from ocr_submit.utils.logging import get_logger

logger = get_logger("reporter.exporter")

FALLBACK_DOCUMENT_NAME = "document"


def artifact_filename(document_name: Optional[str]) -> str:
    """``ocr-results-<original-filename>.json``."""
    return f"ocr-results-{document_name or FALLBACK_DOCUMENT_NAME}.json"


@dataclass(frozen=True)
class ExportArtifact:
    """A serialized result ready to be saved or streamed."""

    filename: str
    content: str
    media_type: str = "application/json"

    def to_bytes(self) -> bytes:
        return self.content.encode("utf-8")

    def write(self, directory: Path) -> Path:
        """
        Write the artifact into ``directory``.

        Returns:
            Path of the written file
        """
        path = Path(directory) / self.filename
        atomic_write_text(path, self.content)
        logger.info("artifact_written", path=str(path), size_bytes=len(self.to_bytes()))
        return path


class ResultExporter:
    """Serializes the full stored result, not just its text."""

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent

    def export(
        self,
        result: ProcessingResult,
        document_name: Optional[str] = None,
    ) -> ExportArtifact:
        """
        Serialize a result as pretty-printed JSON.

        Args:
            result: Stored processing result
            document_name: Source file name, used to name the artifact

        Returns:
            ExportArtifact whose content parses back to ``result.to_dict()``
        """
        content = json.dumps(result.to_dict(), indent=self.indent, ensure_ascii=False)
        artifact = ExportArtifact(
            filename=artifact_filename(document_name),
            content=content,
        )
        logger.debug("result_exported", filename=artifact.filename)
        return artifact
