"""Configuration for the submission client.

The processing endpoint is deployment configuration, never user input.
Values are loaded from an optional YAML file, then overridden from the
environment, then validated before anything is submitted.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

import yaml

from ocr_submit.utils.result import ConfigError, Err, Ok, Result

DEFAULT_ENDPOINT_URL = "http://localhost:5678/webhook/ocr"

# 10 MiB
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024

DEFAULT_ACCEPTED_TYPES: dict[str, tuple[str, ...]] = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/png": (".png",),
    "image/gif": (".gif",),
    "image/bmp": (".bmp",),
    "image/webp": (".webp",),
}

ENV_ENDPOINT_URL = "OCR_ENDPOINT_URL"
ENV_LOG_LEVEL = "OCR_LOG_LEVEL"


@dataclass
class EndpointConfig:
    """Remote processing endpoint settings."""

    url: str = DEFAULT_ENDPOINT_URL
    timeout_seconds: float = 60.0
    file_field: str = "file"
    filename_field: str = "filename"


@dataclass
class UploadConfig:
    """File acceptance rules."""

    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE
    accepted_types: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_ACCEPTED_TYPES)
    )


@dataclass
class ProgressConfig:
    """Synthetic progress ticker settings."""

    interval_seconds: float = 0.5
    max_increment: float = 15.0
    cap: float = 90.0


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "info"
    format: str = "json"


@dataclass
class ClientConfig:
    """Complete client configuration."""

    endpoint: EndpointConfig = field(default_factory=EndpointConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    progress: ProgressConfig = field(default_factory=ProgressConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> Result["ClientConfig", ConfigError]:
        """
        Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Result with loaded config or error
        """
        path = Path(path)

        if not path.exists():
            return Err(ConfigError(
                field="path",
                message=f"Configuration file not found: {path}",
            ))

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            return Err(ConfigError(
                field="yaml",
                message=f"Failed to parse YAML: {e}",
            ))
        except OSError as e:
            return Err(ConfigError(
                field="file",
                message=f"Failed to read config file: {e}",
            ))

        if not isinstance(data, dict):
            return Err(ConfigError(
                field="yaml",
                message="Top-level YAML value must be a mapping",
            ))

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Result["ClientConfig", ConfigError]:
        """
        Create configuration from a dictionary.

        ``endpoint_url`` (or ``endpointUrl``) at the top level is accepted as
        a shorthand for ``endpoint.url``.
        """
        try:
            endpoint_data = data.get("endpoint") or {}
            url = (
                data.get("endpoint_url")
                or data.get("endpointUrl")
                or endpoint_data.get("url", DEFAULT_ENDPOINT_URL)
            )
            endpoint = EndpointConfig(
                url=str(url),
                timeout_seconds=float(endpoint_data.get("timeout_seconds", 60.0)),
                file_field=endpoint_data.get("file_field", "file"),
                filename_field=endpoint_data.get("filename_field", "filename"),
            )

            upload_data = data.get("upload") or {}
            accepted = upload_data.get("accepted_types")
            upload = UploadConfig(
                max_file_size_bytes=int(
                    upload_data.get("max_file_size_bytes", DEFAULT_MAX_FILE_SIZE)
                ),
                accepted_types=(
                    {
                        mime.lower(): tuple(extensions or ())
                        for mime, extensions in accepted.items()
                    }
                    if accepted is not None
                    else dict(DEFAULT_ACCEPTED_TYPES)
                ),
            )

            progress_data = data.get("progress") or {}
            progress = ProgressConfig(
                interval_seconds=float(progress_data.get("interval_seconds", 0.5)),
                max_increment=float(progress_data.get("max_increment", 15.0)),
                cap=float(progress_data.get("cap", 90.0)),
            )

            logging_data = data.get("logging") or {}
            logging_config = LoggingConfig(
                level=logging_data.get("level", "info"),
                format=logging_data.get("format", "json"),
            )

            return Ok(cls(
                endpoint=endpoint,
                upload=upload,
                progress=progress,
                logging=logging_config,
            ))

        except (TypeError, ValueError, AttributeError) as e:
            return Err(ConfigError(
                field="unknown",
                message=f"Failed to parse configuration: {e}",
            ))

    def validate(self) -> Result[None, ConfigError]:
        """
        Validate configuration values.

        Returns:
            Result indicating success or validation error
        """
        parsed = urlparse(self.endpoint.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return Err(ConfigError(
                field="endpoint.url",
                message=f"Must be an absolute http(s) URL, got {self.endpoint.url!r}",
            ))

        if self.endpoint.timeout_seconds <= 0:
            return Err(ConfigError(
                field="endpoint.timeout_seconds",
                message=f"Must be positive, got {self.endpoint.timeout_seconds}",
            ))

        for name, value in [
            ("endpoint.file_field", self.endpoint.file_field),
            ("endpoint.filename_field", self.endpoint.filename_field),
        ]:
            if not value:
                return Err(ConfigError(field=name, message="Must not be empty"))

        if self.upload.max_file_size_bytes < 1:
            return Err(ConfigError(
                field="upload.max_file_size_bytes",
                message=f"Must be at least 1, got {self.upload.max_file_size_bytes}",
            ))

        if not self.upload.accepted_types:
            return Err(ConfigError(
                field="upload.accepted_types",
                message="At least one MIME type must be accepted",
            ))

        if self.progress.interval_seconds <= 0:
            return Err(ConfigError(
                field="progress.interval_seconds",
                message=f"Must be positive, got {self.progress.interval_seconds}",
            ))

        if not 0 < self.progress.cap < 100:
            return Err(ConfigError(
                field="progress.cap",
                message=f"Must be between 0 and 100 (exclusive), got {self.progress.cap}",
            ))

        if self.progress.max_increment <= 0:
            return Err(ConfigError(
                field="progress.max_increment",
                message=f"Must be positive, got {self.progress.max_increment}",
            ))

        return Ok(None)

    def with_endpoint(self, url: str) -> "ClientConfig":
        """Return a copy of this config pointing at another endpoint."""
        return ClientConfig(
            endpoint=EndpointConfig(
                url=url,
                timeout_seconds=self.endpoint.timeout_seconds,
                file_field=self.endpoint.file_field,
                filename_field=self.endpoint.filename_field,
            ),
            upload=self.upload,
            progress=self.progress,
            logging=self.logging,
        )


def load_config(path: Optional[Path] = None) -> Result[ClientConfig, ConfigError]:
    """
    Load configuration from the standard locations.

    Reads ``path`` when given (it must exist), otherwise ``./ocr-submit.yaml``
    if present, then applies environment overrides and validates.

    Args:
        path: Optional explicit YAML configuration file

    Returns:
        Result with loaded config or error
    """
    if path is not None:
        result = ClientConfig.from_yaml(Path(path))
        if result.is_err():
            return result
        config = result.unwrap()
    else:
        default_path = Path("./ocr-submit.yaml")
        if default_path.exists():
            result = ClientConfig.from_yaml(default_path)
            if result.is_err():
                return result
            config = result.unwrap()
        else:
            config = ClientConfig()

    env_url = get_env_endpoint_url()
    if env_url:
        config = config.with_endpoint(env_url)

    env_level = os.environ.get(ENV_LOG_LEVEL)
    if env_level:
        config.logging.level = env_level

    validation_result = config.validate()
    if validation_result.is_err():
        return Err(validation_result.unwrap_err())

    return Ok(config)


def get_env_endpoint_url() -> Optional[str]:
    """Get the processing endpoint URL from the environment."""
    return os.environ.get(ENV_ENDPOINT_URL)
