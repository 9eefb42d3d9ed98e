"""
Sideload Cache — Pluggable codecs for fragment encoding.

Only stores that leave the process (redis) encode values; the memory
store keeps fragments as Python objects. JSON is the default, msgpack
is compact and cross-language.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .faults import CacheConfigFault

logger = logging.getLogger("sideload.cache.serializers")


class JsonCodec:
    """
    JSON codec. Non-serializable values fall back to ``str()``.
    """

    name = "json"

    def dumps(self, value: Any) -> bytes:
        try:
            return json.dumps(value, default=str, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning("JSON encoding failed: %s", e)
            raise

    def loads(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("JSON decoding failed: %s", e)
            raise


class MsgpackCodec:
    """
    MessagePack codec.

    Requires the ``msgpack`` package: pip install sideload[msgpack]
    """

    name = "msgpack"

    def __init__(self):
        try:
            import msgpack
        except ImportError:
            raise ImportError(
                "MsgpackCodec requires 'msgpack' package. "
                "Install with: pip install msgpack"
            )
        self._msgpack = msgpack

    def dumps(self, value: Any) -> bytes:
        try:
            return self._msgpack.packb(value, use_bin_type=True, default=str)
        except (TypeError, ValueError) as e:
            logger.warning("Msgpack encoding failed: %s", e)
            raise

    def loads(self, data: bytes) -> Any:
        try:
            return self._msgpack.unpackb(data, raw=False)
        except (ValueError, self._msgpack.UnpackException) as e:
            logger.warning("Msgpack decoding failed: %s", e)
            raise


CODECS = {
    "json": JsonCodec,
    "msgpack": MsgpackCodec,
}


def get_codec(name: str = "json"):
    """
    Factory for codec instances.

    Raises:
        CacheConfigFault: *name* is not a known codec.
    """
    cls = CODECS.get(name)
    if cls is None:
        raise CacheConfigFault(f"Unknown codec: {name!r}. Options: {sorted(CODECS)}")
    return cls()
