"""
Sideload Cache Backends — Fragment store implementations.
"""

from .memory import MemoryStore
from .null import NullStore
from .redis import RedisStore

__all__ = [
    "MemoryStore",
    "NullStore",
    "RedisStore",
]
