from __future__ import annotations

import io
import json
import tomllib
from typing import Any, Callable, Dict, Tuple, Union

import yaml
from dotenv import dotenv_values

from confstrap.errors import ConfigParseError, UnsupportedConfigFormatError
from confstrap.sources.models import Source

Content = Union[str, bytes]


def _parse_json(text: str) -> Any:
    return json.loads(text)


def _parse_yaml(text: str) -> Any:
    return yaml.safe_load(text)


def _parse_toml(text: str) -> Any:
    return tomllib.loads(text)


def _parse_dotenv(text: str) -> Any:
    return dict(dotenv_values(stream=io.StringIO(text), interpolate=False))


_PARSERS: Dict[str, Callable[[str], Any]] = {
    "json": _parse_json,
    "yaml": _parse_yaml,
    "yml": _parse_yaml,
    "toml": _parse_toml,
    "env": _parse_dotenv,
    "dotenv": _parse_dotenv,
}

_EXTENSIONS: Dict[str, Tuple[str, ...]] = {
    "json": ("json",),
    "yaml": ("yaml", "yml"),
    "yml": ("yml", "yaml"),
    "toml": ("toml",),
    "env": ("env",),
    "dotenv": ("env",),
}


def supported_types() -> Tuple[str, ...]:
    return tuple(sorted(_PARSERS))


def extensions_for(config_type: str) -> Tuple[str, ...]:
    return _EXTENSIONS.get(config_type.lower(), (config_type.lower(),))


def parse_config(content: Content, config_type: str, *, source: Source, location: str) -> Dict[str, Any]:
    """
    Decode a configuration document into a mapping.

    Empty documents decode to an empty mapping. The top level must be a mapping.
    """
    parser = _PARSERS.get(config_type.lower())
    if parser is None:
        raise UnsupportedConfigFormatError(
            source,
            f"Unsupported configuration type. type={config_type} supported={', '.join(supported_types())}",
        )

    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConfigParseError(source, f"Configuration is not valid UTF-8. location={location}") from exc
    else:
        text = content

    try:
        data = parser(text)
    except Exception as exc:
        raise ConfigParseError(
            source,
            f"Failed to parse configuration. type={config_type} location={location} error={exc}",
        ) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            source,
            f"Top-level configuration must be a mapping, got: {type(data).__name__}. location={location}",
        )
    return data
