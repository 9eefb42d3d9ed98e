"""
Sideload Cache — Fragment stores for serialized resources.

Serializers opt in per class::

    class PostSerializer(Serializer):
        class Meta:
            cache = {"key": "posts", "expires_in": 3600}

and the active config names the store::

    sideload.configure(cache={"enabled": True, "backend": "memory"})

The fragment logic itself lives in ``sideload.cache.fragment``.
"""

from .backends import MemoryStore, NullStore, RedisStore
from .core import CacheConfig, CacheEntry, CacheStats, FragmentStore
from .faults import (
    CACHE,
    CacheBackendFault,
    CacheConfigFault,
    CacheFault,
    CacheSerializationFault,
)
from .key_builder import DefaultKeyBuilder, HashKeyBuilder
from .providers import create_cache_store, create_key_builder
from .serializers import JsonCodec, MsgpackCodec, get_codec

__all__ = [
    # Core
    "CacheConfig",
    "CacheEntry",
    "CacheStats",
    "FragmentStore",
    # Backends
    "MemoryStore",
    "NullStore",
    "RedisStore",
    # Keys
    "DefaultKeyBuilder",
    "HashKeyBuilder",
    # Codecs
    "JsonCodec",
    "MsgpackCodec",
    "get_codec",
    # Factory
    "create_cache_store",
    "create_key_builder",
    # Faults
    "CACHE",
    "CacheFault",
    "CacheBackendFault",
    "CacheConfigFault",
    "CacheSerializationFault",
]
