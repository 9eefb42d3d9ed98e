"""
Sideload — include-tree driven resource serialization.

Serialize a graph of resources into a nested document, choosing which
associations to include per request, reusing cached fragments, and
optionally side-loading associations as sibling arrays::

    import sideload
    from sideload import Serializer, Attribute, HasMany, BelongsTo

    class PostSerializer(Serializer):
        id = Attribute()
        title = Attribute()
        author = BelongsTo()
        comments = HasMany(sideload=True)

    sideload.serialize(post, include="comments.author")
    sideload.serialize(posts, adapter="ember_data")
"""

from .adapters import Adapter, Attributes, EmberData, adapter_class, register_adapter
from .config import (
    ConfigLoader,
    SideloadConfig,
    configure,
    get_cache_store,
    get_config,
    reset_config,
)
from .resource import SerializableResource, serialize
from .serializers import (
    ALL,
    USE_ATTRIBUTE,
    Attribute,
    BelongsTo,
    CollectionSerializer,
    FieldContext,
    HasMany,
    HasOne,
    IncludeTree,
    NoSerializerFault,
    SerializationFault,
    Serializer,
    UnknownAdapterFault,
)

__version__ = "0.3.0"

__all__ = [
    # Entry points
    "serialize",
    "SerializableResource",
    # Serializers
    "Serializer",
    "CollectionSerializer",
    "Attribute",
    "HasOne",
    "HasMany",
    "BelongsTo",
    "FieldContext",
    "USE_ATTRIBUTE",
    "ALL",
    "IncludeTree",
    # Adapters
    "Adapter",
    "Attributes",
    "EmberData",
    "adapter_class",
    "register_adapter",
    # Config
    "SideloadConfig",
    "ConfigLoader",
    "configure",
    "get_config",
    "reset_config",
    "get_cache_store",
    # Faults
    "SerializationFault",
    "NoSerializerFault",
    "UnknownAdapterFault",
]
