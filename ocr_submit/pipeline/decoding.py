"""Tolerant decoding of processing responses.

The processing service is loosely specified: it may answer with a JSON
object, a one-element JSON array, JSON mislabelled as text, or plain text.
Decoding runs as an explicit sequence of steps:

    raw bytes -> content-type check -> JsonBody | TextBody
              -> effective payload -> failure check -> ProcessingResult
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional, Union

from ocr_submit.models import ProcessingResult
from ocr_submit.utils.logging import get_logger
from ocr_submit.utils.result import (
    ApplicationError,
    DecodingError,
    Err,
    Ok,
    Result,
)

logger = get_logger("pipeline.decoding")

DEFAULT_FAILURE_MESSAGE = "Processing failed"


@dataclass(frozen=True)
class JsonBody:
    """A body that parsed as JSON."""

    value: Any


@dataclass(frozen=True)
class TextBody:
    """A body that was not JSON and is taken as extracted text."""

    text: str

    @property
    def value(self) -> dict[str, str]:
        return {"text": self.text}


DecodedBody = Union[JsonBody, TextBody]


def _media_type(content_type: Optional[str]) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def _charset(content_type: Optional[str]) -> str:
    if content_type:
        for param in content_type.split(";")[1:]:
            key, _, value = param.partition("=")
            if key.strip().lower() == "charset" and value.strip():
                return value.strip().strip('"')
    return "utf-8"


def _decode_text(body: bytes, charset: str) -> str:
    # LookupError covers unknown names and non-text codecs such as base64
    try:
        return body.decode(charset)
    except LookupError:
        logger.warning("unknown_charset", charset=charset)
    return body.decode("utf-8")


def is_json_content_type(content_type: Optional[str]) -> bool:
    """True for ``application/json`` and ``+json`` structured syntax types."""
    media_type = _media_type(content_type)
    return media_type == "application/json" or media_type.endswith("+json")


def decode_body(body: bytes, content_type: Optional[str]) -> Result[DecodedBody, DecodingError]:
    """
    Turn a raw response body into a structured or text variant.

    A body declared as JSON must parse. Any other body is read as text and
    parsed as JSON opportunistically; if that fails, the text itself is the
    result.
    """
    try:
        text = _decode_text(body, _charset(content_type))
    except UnicodeError as e:
        return Err(DecodingError(f"body is not valid text ({e})"))

    if is_json_content_type(content_type):
        try:
            return Ok(JsonBody(json.loads(text)))
        except json.JSONDecodeError as e:
            return Err(DecodingError(f"invalid JSON body: {e.msg}"))

    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        logger.debug("text_body_fallback", content_type=content_type, length=len(text))
        return Ok(TextBody(text))

    logger.debug("mislabelled_json_body", content_type=content_type)
    return Ok(JsonBody(value))


def effective_payload(value: Any) -> Any:
    """Unwrap a single result the service may have wrapped in a list."""
    if isinstance(value, list) and value:
        return value[0]
    return value


def check_application_failure(payload: Any) -> Result[Any, ApplicationError]:
    """
    Detect a payload that explicitly reports ``success: false``.

    Only a literal boolean ``False`` counts; a missing field means success.
    """
    if isinstance(payload, dict) and payload.get("success") is False:
        message = payload.get("error")
        if not isinstance(message, str) or not message:
            message = DEFAULT_FAILURE_MESSAGE
        return Err(ApplicationError(message))
    return Ok(payload)


def decode_response(
    body: bytes,
    content_type: Optional[str],
) -> Result[ProcessingResult, Union[DecodingError, ApplicationError]]:
    """
    Run the full decoding pipeline over a successful (2xx) response.

    Args:
        body: Raw response bytes
        content_type: The response's Content-Type header, if any

    Returns:
        Ok(ProcessingResult), or Err with a DecodingError/ApplicationError
    """
    return (
        decode_body(body, content_type)
        .map(lambda decoded: effective_payload(decoded.value))
        .and_then(check_application_failure)
        .map(ProcessingResult.from_payload)
    )
