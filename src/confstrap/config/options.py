from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

from confstrap.config.models import BootstrapOptions, RemoteDescriptor

logger = logging.getLogger(__name__)

ENV_TYPE_KEY = "CONFSTRAP_TYPE"
ENV_FILENAME_KEY = "CONFSTRAP_FILENAME"
ENV_PREFIX_KEY = "CONFSTRAP_ENV_PREFIX"
ENV_CONFIG_DIRS_KEY = "CONFSTRAP_CONFIG_DIRS"
ENV_DOTENV_KEY = "CONFSTRAP_DOTENV"
ENV_REMOTE_PROVIDER_KEY = "CONFSTRAP_REMOTE_PROVIDER"
ENV_REMOTE_DSN_KEY = "CONFSTRAP_REMOTE_DSN"
ENV_REMOTE_KEY_KEY = "CONFSTRAP_REMOTE_KEY"
ENV_CONSUL_KEY = "CONFSTRAP_CONSUL"


def _read_env(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_dotenv_path(options: BootstrapOptions, environ: Mapping[str, str]) -> Optional[str]:
    override = _read_env(environ, ENV_DOTENV_KEY)
    if override is not None:
        return override
    return options.dotenv_path


def _resolve_remote(
    base: Optional[RemoteDescriptor],
    filename: str,
    environ: Mapping[str, str],
) -> Optional[RemoteDescriptor]:
    fields: Dict[str, str] = {
        "provider": base.provider if base else "",
        "dsn": base.dsn if base else "",
        "key": base.key if base else "",
    }

    consul = _read_env(environ, ENV_CONSUL_KEY)
    if consul is not None:
        fields["provider"] = "consul"
        fields["dsn"] = consul

    for env_name, field_name in (
        (ENV_REMOTE_PROVIDER_KEY, "provider"),
        (ENV_REMOTE_DSN_KEY, "dsn"),
        (ENV_REMOTE_KEY_KEY, "key"),
    ):
        value = _read_env(environ, env_name)
        if value is not None:
            fields[field_name] = value

    if consul is not None and not fields["key"]:
        fields["key"] = f"/{filename}"

    if not any(fields.values()):
        return None
    return RemoteDescriptor(**fields)


def resolve_options(
    options: Optional[BootstrapOptions] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BootstrapOptions:
    """
    Apply CONFSTRAP_* environment overrides on top of caller options.

    Override order is built-in default, then caller value, then environment variable.
    Empty variables are treated as unset.
    """
    base = options if options is not None else BootstrapOptions()
    env = environ if environ is not None else os.environ

    update: Dict[str, Any] = {}

    config_type = _read_env(env, ENV_TYPE_KEY)
    if config_type is not None:
        update["config_type"] = config_type.lower()

    filename = _read_env(env, ENV_FILENAME_KEY)
    if filename is not None:
        update["filename"] = filename

    prefix = _read_env(env, ENV_PREFIX_KEY)
    if prefix is not None:
        update["env_prefix"] = prefix

    dirs = _read_env(env, ENV_CONFIG_DIRS_KEY)
    if dirs is not None:
        update["search_dirs"] = tuple(d for d in dirs.split(os.pathsep) if d)

    dotenv_path = _read_env(env, ENV_DOTENV_KEY)
    if dotenv_path is not None:
        update["dotenv_path"] = dotenv_path

    remote = _resolve_remote(base.remote, update.get("filename", base.filename), env)
    if remote != base.remote:
        update["remote"] = remote

    if update:
        logger.debug("Applied environment overrides to bootstrap options. fields=%s", sorted(update))
        return BootstrapOptions.model_validate({**base.model_dump(), **update})
    return base
