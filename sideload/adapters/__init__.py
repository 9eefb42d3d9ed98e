"""
Sideload Adapters — serializer → document.

- ``attributes``: nested attribute tree (``Attributes``)
- ``ember_data``: rooted document with side-loaded siblings (``EmberData``)
"""

from .attributes import Attributes
from .base import Adapter, adapter_class, register_adapter, registered_adapters
from .ember_data import EmberData

__all__ = [
    "Adapter",
    "Attributes",
    "EmberData",
    "adapter_class",
    "register_adapter",
    "registered_adapters",
]
