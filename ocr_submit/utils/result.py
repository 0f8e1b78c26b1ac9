"""Result type and error taxonomy for the submission pipeline.

Every fallible step of the pipeline (validation, transmission, decoding,
configuration) returns a Result instead of raising, so the state machine
can map each failure to exactly one user-facing message.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, NoReturn, TypeVar, Union

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type
U = TypeVar("U")  # Mapped type


class ResultError(Exception):
    """Raised when unwrapping a Result fails."""

    pass


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Represents a successful result."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the success value. Safe to call since this is Ok."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        """Get the error value. Raises since this is Ok."""
        raise ResultError(f"Called unwrap_err on Ok value: {self.value}")

    def map(self, fn: Callable[[T], U]) -> "Ok[U]":
        """Transform the success value."""
        return Ok(fn(self.value))

    def and_then(self, fn: Callable[[T], "Result[U, E]"]) -> "Result[U, E]":
        """Chain another Result-returning operation."""
        return fn(self.value)

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True)
class Err(Generic[E]):
    """Represents an error result."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """Get the success value. Raises since this is Err."""
        raise ResultError(f"Called unwrap on Err value: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_err(self) -> E:
        """Get the error value. Safe to call since this is Err."""
        return self.error

    def map(self, fn: Callable[[T], U]) -> "Err[E]":
        """Transform the success value. No-op for Err."""
        return self

    def and_then(self, fn: Callable[[T], "Result[U, E]"]) -> "Err[E]":
        """Chain another Result-returning operation. No-op for Err."""
        return self

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


# Type alias for Result
Result = Union[Ok[T], Err[E]]


# Validation errors (raised before any network activity)
class RejectionReason(Enum):
    """Why a candidate file was refused by the validator."""

    TOO_LARGE = "too_large"
    UNSUPPORTED_TYPE = "unsupported_type"


@dataclass(frozen=True)
class Rejection:
    """A candidate file was refused before entering the pipeline."""

    reason: RejectionReason
    message: str
    file_name: str = ""

    @property
    def title(self) -> str:
        if self.reason is RejectionReason.TOO_LARGE:
            return "File too large"
        return "Invalid file type"

    def __str__(self) -> str:
        return self.message


# Submission errors (terminate at the state machine as ERROR)
@dataclass(frozen=True)
class HttpError:
    """The processing endpoint answered with a non-2xx status."""

    status: int

    def __str__(self) -> str:
        return f"Request failed with HTTP status {self.status}"


@dataclass(frozen=True)
class NetworkFailure:
    """The request never produced an HTTP response."""

    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"Could not reach the processing service: {self.detail}"
        return "Could not reach the processing service"


@dataclass(frozen=True)
class DecodingError:
    """The response body was neither valid JSON nor usable text."""

    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"Could not decode the processing response: {self.detail}"
        return "Could not decode the processing response"


@dataclass(frozen=True)
class ApplicationError:
    """The processing service explicitly reported a failure."""

    message: str

    def __str__(self) -> str:
        return self.message


TransportError = Union[HttpError, NetworkFailure]
SubmissionError = Union[HttpError, NetworkFailure, DecodingError, ApplicationError]


@dataclass(frozen=True)
class ConfigError:
    """Error in configuration."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"Config error in '{self.field}': {self.message}"


# Exit codes
class ExitCode:
    """Exit codes for CLI."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFIG_ERROR = 2

    # Selection errors (10-19)
    FILE_REJECTED = 10
    NO_FILE_SELECTED = 11

    # Submission errors (20-29)
    SUBMISSION_FAILED = 20
    EXPORT_FAILED = 21
