"""
Sideload Cache — Null (no-op) store.

Every read is a miss and every write is dropped. Configuring it
disables fragment reuse without touching serializer declarations.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from ..core import CacheStats, FragmentStore


class NullStore(FragmentStore):
    """No-op fragment store."""

    __slots__ = ("_stats",)

    def __init__(self):
        self._stats = CacheStats(backend="null")

    @property
    def name(self) -> str:
        return "null"

    def read_multi(self, keys: Iterable[str]) -> Dict[str, Any]:
        self._stats.bulk_reads += 1
        self._stats.misses += len(list(keys))
        return {}

    def write(self, key: str, value: Any, expires_in: Optional[int] = None) -> bool:
        return False

    def stats(self) -> CacheStats:
        return self._stats
