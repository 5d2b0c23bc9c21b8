from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

from confstrap.errors import (
    ConfigFileNotFoundError,
    ConfigParseError,
    SourceError,
    UnsupportedConfigFormatError,
)
from confstrap.sources.formats import extensions_for, parse_config, supported_types
from confstrap.sources.models import ProbeResult, Source

logger = logging.getLogger(__name__)


def expand_search_dir(directory: str) -> Path:
    return Path(os.path.expanduser(os.path.expandvars(directory)))


def find_config_file(filename: str, config_type: str, search_dirs: Sequence[str]) -> tuple[Optional[Path], List[str]]:
    """Return the first `<dir>/<filename>.<ext>` that exists, plus every candidate tried."""
    tried: List[str] = []
    for directory in search_dirs:
        base = expand_search_dir(directory)
        for ext in extensions_for(config_type):
            candidate = base / f"{filename}.{ext}"
            tried.append(str(candidate))
            if candidate.is_file():
                return candidate, tried
    return None, tried


def probe_file(filename: str, config_type: str, search_dirs: Sequence[str]) -> ProbeResult:
    """
    Locate and parse one configuration file.

    Directories are searched in the given order and the first match wins; a parse
    failure in that file is final even when later directories hold a candidate.
    """
    if config_type.lower() not in supported_types():
        return ProbeResult(
            source=Source.FILE,
            error=UnsupportedConfigFormatError(
                Source.FILE,
                f"Unsupported configuration type. type={config_type} supported={', '.join(supported_types())}",
            ),
        )

    path, tried = find_config_file(filename, config_type, search_dirs)
    if path is None:
        return ProbeResult(
            source=Source.FILE,
            error=ConfigFileNotFoundError(
                Source.FILE,
                f"Config file not found. name={filename}.{config_type} dirs={', '.join(search_dirs)}",
                searched=tried,
            ),
        )

    try:
        raw = path.read_bytes()
    except OSError as exc:
        return ProbeResult(
            source=Source.FILE,
            error=ConfigParseError(Source.FILE, f"Failed to read config file. path={path} error={exc}"),
            location=str(path),
        )

    try:
        data = parse_config(raw, config_type, source=Source.FILE, location=str(path))
    except SourceError as exc:
        return ProbeResult(source=Source.FILE, error=exc, location=str(path))

    logger.debug("Parsed config file. path=%s keys=%s", path, len(data))
    return ProbeResult(source=Source.FILE, data=data, location=str(path))
