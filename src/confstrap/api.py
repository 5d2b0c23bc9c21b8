"""
Process-wide convenience surface.

`configure()` bootstraps and installs the resulting context as the current one; the
module-level readers below all read from it. Until the first `configure()` call the
current context is uninitialized and every read returns the zero value.

Bootstrap once at startup, before spawning any reader; concurrent `configure()`
calls are not supported.
"""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, MutableMapping, Optional

from confstrap.bootstrap import Bootstrapper, ConfigContext
from confstrap.config.models import BootstrapOptions
from confstrap.remote.interfaces import RemoteProvider
from confstrap.remote.retry import RetryAttempt, RetryPolicy
from confstrap.sources.models import Source

_current: ConfigContext = ConfigContext.uninitialized()


def configure(
    options: Optional[BootstrapOptions] = None,
    *,
    environ: Optional[MutableMapping[str, str]] = None,
    providers: Optional[Mapping[str, RemoteProvider]] = None,
    policy: Optional[RetryPolicy] = None,
    on_retry: Optional[Callable[[RetryAttempt], None]] = None,
    **overrides: Any,
) -> ConfigContext:
    """
    Bootstrap configuration and make it the current context.

    `overrides` are BootstrapOptions fields applied on top of `options`, e.g.
    `configure(config_type="yaml", search_dirs=["./conf"])`. CONFSTRAP_* environment
    variables still take precedence over both.
    """
    global _current

    if overrides:
        base = options if options is not None else BootstrapOptions()
        options = BootstrapOptions.model_validate({**base.model_dump(), **overrides})

    context = Bootstrapper(
        environ=environ,
        providers=providers,
        policy=policy,
        on_retry=on_retry,
    ).run(options)
    _current = context
    return context


def configure_with_defaults() -> ConfigContext:
    return configure()


def current() -> ConfigContext:
    return _current


def reset() -> None:
    """Drop the current context and return to the uninitialized state."""
    global _current
    _current = ConfigContext.uninitialized()


def get(key: str) -> Any:
    return _current.get(key)


def get_string(key: str) -> str:
    return _current.get_string(key)


def get_int(key: str) -> int:
    return _current.get_int(key)


def get_float(key: str) -> float:
    return _current.get_float(key)


def get_bool(key: str) -> bool:
    return _current.get_bool(key)


def get_string_list(key: str) -> List[str]:
    return _current.get_string_list(key)


def error_for(source: Source) -> Optional[BaseException]:
    return _current.error_for(source)


def ensure_loaded(*keys: str) -> None:
    _current.ensure_loaded(*keys)


def ensure_sources_succeeded(*sources: Source) -> None:
    _current.ensure_sources_succeeded(*sources)
