"""
Sideload Cache — Redis fragment store.

Uses the synchronous redis-py client: ``MGET`` for bulk reads and
``SET ... EX`` for writes. Values pass through a pluggable codec
(JSON by default).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from ..core import CacheStats, FragmentStore
from ..faults import CacheBackendFault, CacheSerializationFault

logger = logging.getLogger("sideload.cache.redis")


class RedisStore(FragmentStore):
    """
    Redis-backed fragment store.

    Pass ``client`` to reuse an existing connection pool; otherwise a
    client is created lazily from ``url`` on first use.
    """

    __slots__ = ("_url", "_socket_timeout", "_codec", "_client", "_stats")

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        socket_timeout: float = 5.0,
        codec: Optional[Any] = None,
        client: Optional[Any] = None,
    ):
        self._url = url
        self._socket_timeout = socket_timeout
        self._client = client
        self._stats = CacheStats(backend="redis")

        if codec is None:
            from ..serializers import JsonCodec
            self._codec = JsonCodec()
        else:
            self._codec = codec

    @property
    def name(self) -> str:
        return "redis"

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                import redis
            except ImportError:
                raise ImportError(
                    "Redis store requires 'redis' package. "
                    "Install with: pip install sideload[redis]"
                )
            self._client = redis.Redis.from_url(
                self._url,
                socket_timeout=self._socket_timeout,
                decode_responses=False,
            )
            logger.info("Redis fragment store configured: %s", self._url)
        return self._client

    def read_multi(self, keys: Iterable[str]) -> Dict[str, Any]:
        keys = list(keys)
        if not keys:
            return {}
        self._stats.bulk_reads += 1
        try:
            raw_values = self.client.mget(keys)
        except Exception as e:
            self._stats.errors += 1
            raise CacheBackendFault("redis", "read_multi", str(e)) from e

        found: Dict[str, Any] = {}
        for key, raw in zip(keys, raw_values):
            if raw is None:
                self._stats.misses += 1
                continue
            try:
                found[key] = self._codec.loads(raw)
            except Exception as e:
                self._stats.errors += 1
                raise CacheSerializationFault(key, "decode", str(e)) from e
            self._stats.hits += 1
        return found

    def write(self, key: str, value: Any, expires_in: Optional[int] = None) -> bool:
        try:
            data = self._codec.dumps(value)
        except Exception as e:
            raise CacheSerializationFault(key, "encode", str(e)) from e
        try:
            if expires_in is not None and expires_in > 0:
                self.client.set(key, data, ex=int(expires_in))
            else:
                self.client.set(key, data)
        except Exception as e:
            self._stats.errors += 1
            raise CacheBackendFault("redis", "write", str(e)) from e
        self._stats.writes += 1
        return True

    def delete(self, key: str) -> bool:
        try:
            removed = self.client.delete(key)
        except Exception as e:
            raise CacheBackendFault("redis", "delete", str(e)) from e
        if removed:
            self._stats.deletes += 1
        return bool(removed)

    def stats(self) -> CacheStats:
        return self._stats
