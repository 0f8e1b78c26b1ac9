"""HTTP client that transmits a staged document to the processing endpoint."""

from __future__ import annotations

from typing import Optional

import httpx

from ocr_submit.config.settings import EndpointConfig
from ocr_submit.models import Document, ProcessingResult
from ocr_submit.pipeline.decoding import decode_response
from ocr_submit.utils.logging import get_logger
from ocr_submit.utils.result import (
    Err,
    HttpError,
    NetworkFailure,
    Result,
    SubmissionError,
)

logger = get_logger("pipeline.client")


class SubmissionClient:
    """
    Sends one document per call as a multipart POST.

    Each call is a single attempt: no retries, no caching. The endpoint
    comes from configuration; ``transport`` lets callers swap the network
    layer (e.g. ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: Optional[EndpointConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Endpoint settings (URL, timeout, multipart field names)
            transport: Optional httpx transport override
        """
        self.config = config or EndpointConfig()
        self._transport = transport

    def build_multipart(self, document: Document) -> tuple[dict, dict]:
        """Return the ``(files, data)`` pair for the multipart body."""
        files = {
            self.config.file_field: (document.name, document.content, document.mime_type),
        }
        data = {self.config.filename_field: document.name}
        return files, data

    async def submit(self, document: Document) -> Result[ProcessingResult, SubmissionError]:
        """
        Transmit a document and decode the response.

        Args:
            document: Accepted document to submit

        Returns:
            Ok(ProcessingResult) or Err with HttpError, NetworkFailure,
            DecodingError or ApplicationError
        """
        files, data = self.build_multipart(document)

        logger.info(
            "submission_started",
            endpoint=self.config.url,
            file_name=document.name,
            size_bytes=document.size_bytes,
        )

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self.config.timeout_seconds,
            ) as client:
                response = await client.post(self.config.url, files=files, data=data)
                body = await response.aread()
        except httpx.HTTPError as e:
            logger.warning(
                "submission_network_failure",
                error_type=type(e).__name__,
                error=str(e),
            )
            return Err(NetworkFailure(str(e) or type(e).__name__))

        if not response.is_success:
            logger.warning("submission_http_error", status=response.status_code)
            return Err(HttpError(response.status_code))

        content_type = response.headers.get("content-type")
        result = decode_response(body, content_type)

        if result.is_err():
            error = result.unwrap_err()
            logger.warning(
                "submission_rejected",
                error_type=type(error).__name__,
                error=str(error),
            )
        else:
            logger.info(
                "submission_completed",
                status=response.status_code,
                content_type=content_type,
                text_length=len(result.unwrap().text),
            )

        return result
