"""
confstrap: service configuration bootstrap.

Resolves configuration at startup from a `.env` file, an on-disk configuration file,
a remote key/value provider and live environment variables, then exposes typed
lookups and fail-fast checks for required keys and sources.
"""

from confstrap.api import (
    configure,
    configure_with_defaults,
    current,
    ensure_loaded,
    ensure_sources_succeeded,
    error_for,
    get,
    get_bool,
    get_float,
    get_int,
    get_string,
    get_string_list,
    reset,
)
from confstrap.bootstrap import Bootstrapper, ConfigContext
from confstrap.config.models import BootstrapOptions, LoggingSettings, RemoteDescriptor, RetrySettings
from confstrap.remote.retry import RetryAttempt, RetryPolicy
from confstrap.sources.models import Source
from confstrap.store.store import ConfigStore

__version__ = "0.1.0"

__all__ = [
    "BootstrapOptions",
    "Bootstrapper",
    "ConfigContext",
    "ConfigStore",
    "LoggingSettings",
    "RemoteDescriptor",
    "RetryAttempt",
    "RetryPolicy",
    "RetrySettings",
    "Source",
    "configure",
    "configure_with_defaults",
    "current",
    "ensure_loaded",
    "ensure_sources_succeeded",
    "error_for",
    "get",
    "get_bool",
    "get_float",
    "get_int",
    "get_string",
    "get_string_list",
    "reset",
]
