"""
Sideload Serializers — declarative resource serializers.

Quick start::

    from sideload.serializers import Serializer, Attribute, HasMany, BelongsTo

    class PostSerializer(Serializer):
        id = Attribute()
        title = Attribute()
        author = BelongsTo()
        comments = HasMany(sideload=True)

        class Meta:
            model = Post
"""

from .base import (
    CollectionSerializer,
    Serializer,
    SerializerMeta,
    is_collection,
    model_name_for,
)
from .exceptions import (
    SERIALIZATION,
    NoSerializerFault,
    SerializationFault,
    UnknownAdapterFault,
)
from .fields import Attribute, Field, FieldContext
from .include_tree import IncludeTree
from .lookup import SerializerRegistry, get_registry, registry
from .policy import ALL, ReadPolicy, permitted_attributes
from .relations import (
    USE_ATTRIBUTE,
    Association,
    BelongsTo,
    HasMany,
    HasOne,
    Reflection,
)

__all__ = [
    # Core
    "Serializer",
    "CollectionSerializer",
    "SerializerMeta",
    "is_collection",
    "model_name_for",
    # Descriptors
    "Field",
    "Attribute",
    "FieldContext",
    "Reflection",
    "HasOne",
    "HasMany",
    "BelongsTo",
    "Association",
    "USE_ATTRIBUTE",
    # Include trees
    "IncludeTree",
    # Lookup
    "SerializerRegistry",
    "registry",
    "get_registry",
    # Policies
    "ALL",
    "ReadPolicy",
    "permitted_attributes",
    # Faults
    "SERIALIZATION",
    "SerializationFault",
    "NoSerializerFault",
    "UnknownAdapterFault",
]
