"""Configuration module for ocr-submit."""

from ocr_submit.config.settings import (
    ClientConfig,
    EndpointConfig,
    LoggingConfig,
    ProgressConfig,
    UploadConfig,
    load_config,
)

__all__ = [
    "ClientConfig",
    "EndpointConfig",
    "LoggingConfig",
    "ProgressConfig",
    "UploadConfig",
    "load_config",
]
