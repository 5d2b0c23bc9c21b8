from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class Source(str, Enum):
    ENV = "env"
    FILE = "file"
    REMOTE = "remote"


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """
    Outcome of a single source probe.

    Exactly one of `data` and `error` is meaningful: `error` is None iff the probe
    produced usable configuration. `location` names the file, URL or path consulted.
    """

    source: Source
    data: Optional[Mapping[str, Any]] = None
    error: Optional[BaseException] = None
    location: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
