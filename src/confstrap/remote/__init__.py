"""Remote key/value providers and the bounded retry policy wrapped around them."""

from confstrap.remote.interfaces import RemoteProvider
from confstrap.remote.providers import ConsulKVProvider, HttpProvider, default_providers
from confstrap.remote.retry import RetryAttempt, RetryPolicy

__all__ = [
    "ConsulKVProvider",
    "HttpProvider",
    "RemoteProvider",
    "RetryAttempt",
    "RetryPolicy",
    "default_providers",
]
