"""
Sideload Adapters — base class and adapter registry.

An adapter turns a serializer (single or collection) into a document.
Adapters register under a short name::

    @register_adapter("attributes")
    class Attributes(Adapter):
        ...

    adapter_class("attributes")   # → Attributes
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, ClassVar, Dict, Optional, Union

from ..serializers.base import CollectionSerializer
from ..serializers.exceptions import UnknownAdapterFault

logger = logging.getLogger("sideload.adapters.base")


class Adapter:
    """
    Base adapter.

    ``meta`` is a side channel: adapters may put document-level metadata
    there (pagination, counts) for the caller to place in the transport
    envelope.
    """

    name: ClassVar[str] = ""

    def __init__(self, serializer: Any, /, **options: Any):
        self.serializer = serializer
        self.instance_options = options
        self.meta: Dict[str, Any] = dict(options.get("meta") or {})

    @property
    def collection(self) -> bool:
        return isinstance(self.serializer, CollectionSerializer)

    def serializable_hash(self, options: Optional[Dict[str, Any]] = None) -> Any:
        raise NotImplementedError

    def as_json(self, options: Optional[Dict[str, Any]] = None) -> Any:
        return self.serializable_hash(options)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} serializer={self.serializer!r}>"


# ============================================================================
# Registry
# ============================================================================

_adapters: Dict[str, type] = {}
_lock = threading.Lock()


def register_adapter(name: str) -> Callable[[type], type]:
    """Class decorator registering an adapter under *name*."""
    def decorator(cls: type) -> type:
        with _lock:
            _adapters[name] = cls
        cls.name = name
        logger.debug("Registered adapter %s → %s", name, cls.__name__)
        return cls
    return decorator


def adapter_class(name: Union[str, type]) -> type:
    """
    Resolve an adapter name (or pass an adapter class through).

    Raises:
        UnknownAdapterFault: *name* is not registered.
    """
    if isinstance(name, type) and issubclass(name, Adapter):
        return name
    with _lock:
        found = _adapters.get(str(name))
        available = list(_adapters)
    if found is None:
        raise UnknownAdapterFault(name, available)
    return found


def registered_adapters() -> Dict[str, type]:
    with _lock:
        return dict(_adapters)
