"""
Sideload Cache — Core types and the fragment store contract.

The serializer core only ever talks to a store through ``read_multi``
(one round trip per serialization wave). Stores that can also write
implement ``write``; ``fetch`` is built on the two.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional, Tuple


# ============================================================================
# Cache Entry
# ============================================================================

@dataclass(slots=True)
class CacheEntry:
    """
    Single stored fragment with expiry metadata.
    """
    key: str
    value: Any
    created_at: float = field(default_factory=time.monotonic)
    expires_at: Optional[float] = None
    access_count: int = 0

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return time.monotonic() >= self.expires_at

    @property
    def ttl_remaining(self) -> Optional[float]:
        """Remaining TTL in seconds, or None if no expiry."""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    def touch(self) -> None:
        self.access_count += 1

    def __repr__(self) -> str:
        ttl = f", ttl={self.ttl_remaining:.1f}s" if self.ttl_remaining else ""
        return f"<CacheEntry key={self.key!r} hits={self.access_count}{ttl}>"


# ============================================================================
# Cache Stats
# ============================================================================

@dataclass
class CacheStats:
    """Aggregate store statistics for observability."""
    hits: int = 0
    misses: int = 0
    writes: int = 0
    deletes: int = 0
    evictions: int = 0
    errors: int = 0
    bulk_reads: int = 0
    size: int = 0
    max_size: int = 0
    backend: str = "unknown"

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "writes": self.writes,
            "deletes": self.deletes,
            "evictions": self.evictions,
            "errors": self.errors,
            "bulk_reads": self.bulk_reads,
            "hit_rate": round(self.hit_rate, 2),
            "size": self.size,
            "max_size": self.max_size,
            "backend": self.backend,
        }


# ============================================================================
# Cache Configuration
# ============================================================================

@dataclass
class CacheConfig:
    """
    Fragment cache configuration.

    Caching is off until ``enabled`` is set or a store instance is
    configured directly; with no store every lookup is a miss.
    """
    enabled: bool = False
    backend: str = "memory"            # "memory", "redis", "null"
    max_size: int = 10000              # Max entries for the memory store
    default_expires_in: Optional[int] = None  # Seconds; None = no expiry
    key_prefix: str = "sl:"
    key_version: int = 0               # Increment to invalidate every key
    hash_keys: bool = False            # Hash long keys (HashKeyBuilder)
    codec: str = "json"                # "json", "msgpack" (redis only)

    # Redis-specific
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: float = 5.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheConfig":
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "backend": self.backend,
            "max_size": self.max_size,
            "default_expires_in": self.default_expires_in,
            "key_prefix": self.key_prefix,
            "key_version": self.key_version,
            "hash_keys": self.hash_keys,
            "codec": self.codec,
            "redis_url": self.redis_url,
            "redis_socket_timeout": self.redis_socket_timeout,
        }


# ============================================================================
# Fragment Store Contract
# ============================================================================

class FragmentStore(ABC):
    """
    Abstract fragment store.

    Only ``read_multi`` is required. Stores own their own expiry and
    eviction; callers treat every read as best effort.
    """

    @abstractmethod
    def read_multi(self, keys: Iterable[str]) -> Dict[str, Any]:
        """
        Bulk read.

        Returns a mapping containing only the keys that were found.
        """
        ...

    def read(self, key: str) -> Tuple[bool, Any]:
        """Single read: ``(found, value)``."""
        found = self.read_multi([key])
        if key in found:
            return True, found[key]
        return False, None

    def write(self, key: str, value: Any, expires_in: Optional[int] = None) -> bool:
        """
        Store a fragment. Read-only stores keep this default.

        Returns True if the value was stored.
        """
        return False

    def fetch(
        self,
        key: str,
        compute: Callable[[], Any],
        expires_in: Optional[int] = None,
    ) -> Any:
        """Read *key*, or compute, write and return it."""
        found, value = self.read(key)
        if found:
            return value
        value = compute()
        self.write(key, value, expires_in=expires_in)
        return value

    def stats(self) -> CacheStats:
        return CacheStats(backend=self.name)

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name for diagnostics."""
        ...
