from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional, Tuple

from confstrap.sources.models import Source

logger = logging.getLogger(__name__)

# Sources merged into the store, in load order. On a key collision the later source
# wins, so file values override remote values.
LOAD_ORDER: Tuple[Source, ...] = (Source.REMOTE, Source.FILE)


def normalize_keys(data: Mapping[Any, Any]) -> Dict[str, Any]:
    """Return a deep copy of `data` with every mapping key lower-cased."""
    result: Dict[str, Any] = {}
    for k, v in data.items():
        key = str(k).lower()
        if isinstance(v, Mapping):
            result[key] = normalize_keys(v)
        else:
            result[key] = copy.deepcopy(v)
    return result


def deep_merge_dicts(base: MutableMapping[str, Any], override: Mapping[str, Any]) -> None:
    for k, v in override.items():
        if isinstance(v, Mapping) and isinstance(base.get(k), Mapping):
            deep_merge_dicts(base[k], v)  # type: ignore[arg-type]
            continue
        base[k] = v


def iter_leaf_keys(data: Mapping[str, Any], prefix: str = "") -> Iterator[str]:
    for k, v in data.items():
        dotted = f"{prefix}.{k}" if prefix else k
        if isinstance(v, Mapping) and v:
            yield from iter_leaf_keys(v, dotted)
        else:
            yield dotted


class MergeEngine:
    """
    Folds probed sources into one nested key space.

    Mappings merge recursively and anything else is replaced, so both sources
    contribute keys and the later load wins on collisions. The engine remembers which
    source supplied each leaf.
    """

    def __init__(self) -> None:
        self._tree: Dict[str, Any] = {}
        self._origins: Dict[str, Source] = {}

    def load(self, source: Source, data: Mapping[str, Any]) -> None:
        incoming = normalize_keys(data)
        deep_merge_dicts(self._tree, incoming)

        live = set(iter_leaf_keys(self._tree))
        self._origins = {k: s for k, s in self._origins.items() if k in live}
        for key in iter_leaf_keys(incoming):
            if key in live:
                self._origins[key] = source
        logger.debug("Merged configuration source. source=%s leaves=%s", source.value, len(incoming))

    def origin(self, key: str) -> Optional[Source]:
        return self._origins.get(key.lower())

    def snapshot(self) -> Tuple[Dict[str, Any], Dict[str, Source]]:
        return copy.deepcopy(self._tree), dict(self._origins)
