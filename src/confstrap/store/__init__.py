"""Merge engine and the resolved, read-only configuration store."""

from confstrap.store.merge import LOAD_ORDER, MergeEngine, deep_merge_dicts
from confstrap.store.store import ConfigStore

__all__ = ["ConfigStore", "LOAD_ORDER", "MergeEngine", "deep_merge_dicts"]
