"""Submission pipeline: file validation, transmission and response decoding."""

from ocr_submit.pipeline.client import SubmissionClient
from ocr_submit.pipeline.decoding import (
    JsonBody,
    TextBody,
    decode_body,
    decode_response,
    effective_payload,
)
from ocr_submit.pipeline.validator import FileValidator, ValidationOutcome

__all__ = [
    "FileValidator",
    "ValidationOutcome",
    "SubmissionClient",
    "JsonBody",
    "TextBody",
    "decode_body",
    "decode_response",
    "effective_payload",
]
