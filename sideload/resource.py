"""
Sideload entry point: resource (or collection) → document.

    doc = serialize(post, include="comments.author")
    doc = serialize(posts, adapter="ember_data", scope=current_user)

    resource = SerializableResource(posts, adapter="ember_data")
    resource.serializable_hash()
    resource.meta        # pagination, for the transport envelope
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .adapters import Adapter, adapter_class
from .config import get_config
from .serializers.base import Serializer
from .serializers.exceptions import NoSerializerFault

logger = logging.getLogger("sideload.resource")

ADAPTER_OPTION_KEYS = frozenset({"include", "fields", "adapter", "meta", "cache_attributes"})


class SerializableResource:
    """
    Pairs a resource with its serializer and adapter.

    Options naming the adapter's behaviour (``include``, ``fields``,
    ``adapter``, ``meta``) go to the adapter; everything else (``scope``,
    ``root``, ``serializer``, ``serializer_namespace``, ...) goes to the
    serializer.
    """

    def __init__(self, resource: Any, **options: Any):
        self.resource = resource
        self.adapter_opts = {k: v for k, v in options.items() if k in ADAPTER_OPTION_KEYS}
        self.serializer_opts = {k: v for k, v in options.items() if k not in ADAPTER_OPTION_KEYS}
        self._serializer_instance: Optional[Any] = None
        self._adapter: Optional[Adapter] = None

    @property
    def serializer(self) -> Optional[type]:
        """Serializer class for the resource, or None."""
        return Serializer.serializer_for(self.resource, self.serializer_opts)

    @property
    def serializer_instance(self) -> Any:
        if self._serializer_instance is None:
            serializer_class = self.serializer
            if serializer_class is None:
                raise NoSerializerFault(self.resource)
            self._serializer_instance = serializer_class(self.resource, **self.serializer_opts)
        return self._serializer_instance

    @property
    def adapter(self) -> Adapter:
        if self._adapter is None:
            name = self.adapter_opts.get("adapter") or get_config().adapter
            cls = adapter_class(name)
            options = {k: v for k, v in self.adapter_opts.items() if k != "adapter"}
            options.update(self.serializer_opts)
            self._adapter = cls(self.serializer_instance, **options)
        return self._adapter

    @property
    def meta(self) -> Dict[str, Any]:
        return self.adapter.meta

    def serializable_hash(self, options: Optional[Dict[str, Any]] = None) -> Any:
        return self.adapter.serializable_hash(options)

    as_json = serializable_hash

    def __repr__(self) -> str:
        return f"<SerializableResource resource={self.resource!r}>"


def serialize(resource: Any, **options: Any) -> Any:
    """Serialize *resource* with the configured (or given) adapter."""
    return SerializableResource(resource, **options).serializable_hash()
