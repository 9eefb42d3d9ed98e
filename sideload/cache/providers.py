"""
Sideload Cache — Store factory.
"""

from __future__ import annotations

import logging

from .backends.memory import MemoryStore
from .backends.null import NullStore
from .core import CacheConfig, FragmentStore
from .faults import CacheConfigFault
from .key_builder import DefaultKeyBuilder, HashKeyBuilder

logger = logging.getLogger("sideload.cache.providers")


def create_cache_store(config: CacheConfig) -> FragmentStore:
    """
    Create a fragment store from configuration.

    Raises:
        CacheConfigFault: Unknown backend or codec name.
    """
    backend_type = config.backend.lower()

    if backend_type == "memory":
        store: FragmentStore = MemoryStore(max_size=config.max_size)

    elif backend_type == "redis":
        from .backends.redis import RedisStore
        from .serializers import get_codec

        store = RedisStore(
            url=config.redis_url,
            socket_timeout=config.redis_socket_timeout,
            codec=get_codec(config.codec),
        )

    elif backend_type in ("null", "none"):
        store = NullStore()

    else:
        raise CacheConfigFault(
            f"Unknown cache backend: {config.backend!r}. Options: memory, redis, null"
        )

    logger.debug("Created %s fragment store", store.name)
    return store


def create_key_builder(config: CacheConfig) -> DefaultKeyBuilder:
    """Key builder matching the configured prefix, version and hashing."""
    if config.hash_keys:
        return HashKeyBuilder(prefix=config.key_prefix, version=config.key_version)
    return DefaultKeyBuilder(prefix=config.key_prefix, version=config.key_version)
