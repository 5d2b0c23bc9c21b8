"""Bootstrap option models and environment-variable overrides."""

from confstrap.config.models import (
    BootstrapOptions,
    FileLoggingSettings,
    FileRotationSettings,
    LoggingSettings,
    RemoteDescriptor,
    RetrySettings,
)
from confstrap.config.options import resolve_dotenv_path, resolve_options

__all__ = [
    "BootstrapOptions",
    "FileLoggingSettings",
    "FileRotationSettings",
    "LoggingSettings",
    "RemoteDescriptor",
    "RetrySettings",
    "resolve_dotenv_path",
    "resolve_options",
]
