from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import List, MutableMapping, Optional

from dotenv import dotenv_values
from dotenv.parser import parse_stream

from confstrap.errors import DotenvNotFoundError, DotenvParseError
from confstrap.sources.models import ProbeResult, Source

logger = logging.getLogger(__name__)


def _malformed_lines(text: str) -> List[int]:
    return [binding.original.line for binding in parse_stream(io.StringIO(text)) if binding.error]


def probe_dotenv(dotenv_path: Optional[str], environ: MutableMapping[str, str]) -> ProbeResult:
    """
    Load a `.env` file into `environ` without overriding variables that are already set.

    A missing or malformed file is recorded on the result, never raised. Well-formed
    lines of a malformed file are still loaded. Values are taken literally; `${VAR}`
    references are not expanded.
    """
    if dotenv_path is None:
        return ProbeResult(
            source=Source.ENV,
            error=DotenvNotFoundError(Source.ENV, "Loading of .env files is disabled."),
        )

    path = Path(dotenv_path)
    if not path.is_file():
        return ProbeResult(
            source=Source.ENV,
            error=DotenvNotFoundError(Source.ENV, f".env file not found: {path}"),
            location=str(path),
        )

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return ProbeResult(
            source=Source.ENV,
            error=DotenvParseError(Source.ENV, f"Failed to read .env file. path={path} error={exc}"),
            location=str(path),
        )
    values = dotenv_values(stream=io.StringIO(text), interpolate=False)

    loaded = {}
    for key, value in values.items():
        if value is None or key in environ:
            continue
        environ[key] = value
        loaded[key] = value

    logger.debug("Loaded .env file. path=%s variables=%s", path, len(loaded))

    bad_lines = _malformed_lines(text)
    if bad_lines:
        return ProbeResult(
            source=Source.ENV,
            data=loaded,
            error=DotenvParseError(
                Source.ENV,
                f"Malformed .env file. path={path} lines={', '.join(str(n) for n in bad_lines)}",
                lines=bad_lines,
            ),
            location=str(path),
        )
    return ProbeResult(source=Source.ENV, data=loaded, location=str(path))
