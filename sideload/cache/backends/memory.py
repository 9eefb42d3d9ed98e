"""
Sideload Cache — In-process LRU fragment store.

OrderedDict gives O(1) get/set/delete and LRU eviction. Expired
entries are dropped lazily on read. Guarded by a threading.RLock so a
single store can be shared by concurrent requests.
"""

from __future__ import annotations

import fnmatch
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Dict, Iterable, Optional

from ..core import CacheEntry, CacheStats, FragmentStore

logger = logging.getLogger("sideload.cache.memory")


class MemoryStore(FragmentStore):
    """
    Thread-safe in-memory fragment store with LRU eviction.
    """

    __slots__ = ("_max_size", "_store", "_lock", "_stats")

    def __init__(self, max_size: int = 10000):
        """
        Args:
            max_size: Maximum number of entries before LRU eviction.
        """
        self._max_size = max_size
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.RLock()
        self._stats = CacheStats(max_size=max_size, backend="memory")

    @property
    def name(self) -> str:
        return "memory"

    def read_multi(self, keys: Iterable[str]) -> Dict[str, Any]:
        """One locked pass over *keys*; misses and expired entries are omitted."""
        found: Dict[str, Any] = {}
        with self._lock:
            self._stats.bulk_reads += 1
            for key in keys:
                entry = self._lookup(key)
                if entry is not None:
                    found[key] = entry.value
        return found

    def read(self, key: str):
        with self._lock:
            entry = self._lookup(key)
            if entry is None:
                return False, None
            return True, entry.value

    def _lookup(self, key: str) -> Optional[CacheEntry]:
        entry = self._store.get(key)
        if entry is None:
            self._stats.misses += 1
            return None
        if entry.is_expired:
            self._evict_key(key)
            self._stats.misses += 1
            return None
        entry.touch()
        self._stats.hits += 1
        self._store.move_to_end(key)
        return entry

    def write(self, key: str, value: Any, expires_in: Optional[int] = None) -> bool:
        with self._lock:
            if key in self._store:
                del self._store[key]

            while len(self._store) >= self._max_size:
                evicted, _ = self._store.popitem(last=False)
                self._stats.evictions += 1
                logger.debug("Evicted %s", evicted)

            expires_at = None
            if expires_in is not None and expires_in > 0:
                expires_at = time.monotonic() + expires_in

            self._store[key] = CacheEntry(key=key, value=value, expires_at=expires_at)
            self._stats.writes += 1
            self._stats.size = len(self._store)
        return True

    def delete(self, key: str) -> bool:
        with self._lock:
            if key in self._store:
                self._evict_key(key)
                self._stats.deletes += 1
                return True
            return False

    def delete_matched(self, pattern: str) -> int:
        """Delete keys matching a glob *pattern*; returns the count."""
        with self._lock:
            matched = [k for k in self._store if fnmatch.fnmatch(k, pattern)]
            for key in matched:
                self._evict_key(key)
            self._stats.deletes += len(matched)
            return len(matched)

    def clear(self) -> int:
        with self._lock:
            count = len(self._store)
            self._store.clear()
            self._stats.size = 0
            return count

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._store)

    def stats(self) -> CacheStats:
        with self._lock:
            self._stats.size = len(self._store)
            return self._stats

    def _evict_key(self, key: str) -> None:
        self._store.pop(key, None)
        self._stats.size = len(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return self.read(key)[0]
