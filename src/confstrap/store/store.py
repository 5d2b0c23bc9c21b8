from __future__ import annotations

import copy
import os
from typing import Any, Dict, List, Mapping, Optional, Tuple

from confstrap.sources.models import Source
from confstrap.store import cast
from confstrap.store.merge import MergeEngine, iter_leaf_keys

_MISSING = object()


class ConfigStore:
    """
    Read-only view over merged configuration with a live environment overlay.

    Lookups are case-insensitive and use dotted paths (`db.host`). Before the merged
    tree is consulted, the environment is checked for `<PREFIX>_DB_HOST` (or `DB_HOST`
    without a prefix), so variables exported after bootstrap still take effect.
    Typed accessors return the zero value of their type for absent or unconvertible
    keys.
    """

    def __init__(
        self,
        tree: Optional[Mapping[str, Any]] = None,
        *,
        origins: Optional[Mapping[str, Source]] = None,
        env_prefix: str = "",
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._tree: Dict[str, Any] = dict(tree or {})
        self._origins: Dict[str, Source] = dict(origins or {})
        self._env_prefix = env_prefix.strip().rstrip("_").upper()
        self._environ: Mapping[str, str] = environ if environ is not None else os.environ

    @classmethod
    def empty(cls) -> "ConfigStore":
        """An uninitialized store: every read returns the zero value."""
        return cls(environ={})

    @classmethod
    def from_engine(
        cls,
        engine: MergeEngine,
        *,
        env_prefix: str = "",
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ConfigStore":
        tree, origins = engine.snapshot()
        return cls(tree, origins=origins, env_prefix=env_prefix, environ=environ)

    @property
    def env_prefix(self) -> str:
        return self._env_prefix

    def env_key(self, key: str) -> str:
        name = key.upper().replace(".", "_").replace("-", "_")
        if self._env_prefix:
            return f"{self._env_prefix}_{name}"
        return name

    def _lookup(self, key: str) -> Tuple[Any, Optional[Source]]:
        if not key:
            return _MISSING, None
        env_value = self._environ.get(self.env_key(key))
        if env_value is not None:
            return env_value, Source.ENV

        normalized = key.lower()
        node: Any = self._tree
        for segment in normalized.split("."):
            if not isinstance(node, Mapping) or segment not in node:
                node = _MISSING
                break
            node = node[segment]

        if node is _MISSING:
            node = self._tree.get(normalized, _MISSING)
        if node is _MISSING:
            return _MISSING, None
        return node, self._origins.get(normalized)

    def get(self, key: str) -> Any:
        value, _ = self._lookup(key)
        if value is _MISSING:
            return None
        return copy.deepcopy(value)

    def is_set(self, key: str) -> bool:
        value, _ = self._lookup(key)
        return value is not _MISSING and value is not None

    __contains__ = is_set

    def origin(self, key: str) -> Optional[Source]:
        _, source = self._lookup(key)
        return source

    def get_string(self, key: str) -> str:
        return cast.to_string(self.get(key))

    def get_int(self, key: str) -> int:
        return cast.to_int(self.get(key))

    def get_float(self, key: str) -> float:
        return cast.to_float(self.get(key))

    def get_bool(self, key: str) -> bool:
        return cast.to_bool(self.get(key))

    def get_string_list(self, key: str) -> List[str]:
        return cast.to_string_list(self.get(key))

    def all_keys(self) -> List[str]:
        return sorted(iter_leaf_keys(self._tree))

    def all_settings(self) -> Dict[str, Any]:
        """Nested copy of the merged tree with environment overrides applied to known leaves."""
        settings = copy.deepcopy(self._tree)
        for key in iter_leaf_keys(self._tree):
            env_value = self._environ.get(self.env_key(key))
            if env_value is None:
                continue
            *parents, leaf = key.split(".")
            node: Any = settings
            for segment in parents:
                node = node.get(segment) if isinstance(node, dict) else None
            if isinstance(node, dict) and leaf in node:
                node[leaf] = env_value
        return settings
