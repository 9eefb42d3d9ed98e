"""
Sideload Cache — Fragment key builders.

A fragment key names one resource rendered under one include tree::

    posts/1-20260101120000/3f2a9c1d0b7e

Builders qualify that raw key with the configured prefix and version.
Bumping the version makes every previously written key invisible.
"""

from __future__ import annotations

import hashlib
from typing import Any


def identity_segment(obj: Any) -> str:
    """``<id>`` or ``<id>-<updated_at>`` for a resource."""
    ident = _read(obj, "id")
    updated_at = _read(obj, "updated_at")
    if updated_at is None:
        return str(ident)
    if hasattr(updated_at, "strftime"):
        updated_at = updated_at.strftime("%Y%m%d%H%M%S%f")
    return f"{ident}-{updated_at}"


def _read(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class DefaultKeyBuilder:
    """
    Readable keys.

    Pattern: ``{prefix}v{version}:{key}``, the version segment only
    when it is greater than zero.
    """

    def __init__(self, prefix: str = "", version: int = 0):
        self._prefix = prefix
        self._version = version

    def build(self, key: str) -> str:
        if self._version > 0:
            return f"{self._prefix}v{self._version}:{key}"
        return f"{self._prefix}{key}"


class HashKeyBuilder(DefaultKeyBuilder):
    """
    Fixed-length keys for stores with key length limits.

    Pattern: ``{prefix}v{version}:{sha256_hex[:hash_length]}``
    """

    def __init__(self, prefix: str = "", version: int = 0, hash_length: int = 16):
        super().__init__(prefix, version)
        self._hash_length = min(hash_length, 64)

    def build(self, key: str) -> str:
        key_hash = hashlib.sha256(key.encode("utf-8")).hexdigest()[:self._hash_length]
        return super().build(key_hash)
