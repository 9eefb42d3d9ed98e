"""
Sideload Adapters — Attributes.

Renders a serializer as a nested tree: the resource's attributes, then
one key per included association holding the associated resource
rendered the same way::

    {"id": 1, "title": "Hello", "author": {"id": 7, "name": "Ada"},
     "comments": [{"id": 3, "body": "First"}]}

Which associations appear, and how deep, is decided by the include tree.
An association declared with ``include_data=False`` renders only its
``links`` and ``meta``, or None when it has neither.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Optional

from ..cache.fragment import CachedSerializer, cache_read_multi
from ..config import get_cache_store, get_config
from ..serializers.base import CollectionSerializer, model_name_for
from ..serializers.include_tree import IncludeTree
from ..serializers.relations import Association
from ..utils.inflection import pluralize
from .base import Adapter, register_adapter

logger = logging.getLogger("sideload.adapters.attributes")


@register_adapter("attributes")
class Attributes(Adapter):
    """
    Options:
        - ``include``: include spec (defaults to the configured
          ``default_include``)
        - ``fields``: attribute keys to render. A list applies to the
          top-level resources; a mapping of model name → keys applies
          at every depth.
        - ``cache_attributes``: fragments already read from the store
    """

    def __init__(self, serializer: Any, /, **options: Any):
        super().__init__(serializer, **options)
        include = options.get("include")
        if include is None:
            include = get_config().default_include
        self.include_tree = IncludeTree.from_include_args(include)
        self._cached_attributes: Dict[str, Any] = options.get("cache_attributes") or {}
        # nested adapters share the outermost prefetch, hits or not
        self._prefetched = "cache_attributes" in options

    def serializable_hash(self, options: Optional[Dict[str, Any]] = None) -> Any:
        options = options or {}
        if isinstance(self.serializer, CollectionSerializer):
            return self._serializable_hash_for_collection(options)
        return self._serializable_hash_for_single_resource(options)

    # ── Collections ──────────────────────────────────────────────────────

    def _serializable_hash_for_collection(self, options: Dict[str, Any]) -> list:
        self._cache_attributes()
        member_options = dict(
            self.instance_options,
            include=self.include_tree,
            cache_attributes=self._cached_attributes,
        )
        return [
            Attributes(member, **member_options).serializable_hash(options)
            for member in self.serializer
        ]

    def _cache_attributes(self) -> None:
        """Prefetch every cached fragment of this collection in one read."""
        if self._prefetched or get_cache_store() is None:
            return
        keys = CachedSerializer.object_cache_keys(self.serializer, self.include_tree)
        self._cached_attributes = cache_read_multi(keys)
        self._prefetched = True

    # ── Single resources ─────────────────────────────────────────────────

    def _serializable_hash_for_single_resource(self, options: Dict[str, Any]) -> Dict[str, Any]:
        resource = dict(self._resource_object(self._fields_for(options)))
        resource.update(self._resource_relationships(options))
        return resource

    def _resource_object(self, fields: Optional[Iterable[str]]) -> Dict[str, Any]:
        cached_serializer = CachedSerializer(self.serializer, self.include_tree)
        if not cached_serializer.caching:
            return self.serializer.attributes(fields)

        attributes = None
        if cached_serializer.cached and self._cached_attributes:
            attributes = self._cached_attributes.get(cached_serializer.cache_key)
        if attributes is None:
            attributes = cached_serializer.cache_check(self.serializer.attributes)
        if fields is None:
            return attributes
        requested = set(fields)
        return {k: v for k, v in attributes.items() if k in requested}

    def _resource_relationships(self, options: Dict[str, Any]) -> Dict[str, Any]:
        relationships = {}
        for association in self.serializer.associations(self.include_tree):
            relationships[association.key] = self._relationship_value_for(association, options)
        return relationships

    def _relationship_value_for(self, association: Association, options: Dict[str, Any]) -> Any:
        if not association.include_data:
            return self._links_and_meta(association)
        if "virtual_value" in association.options:
            return association.virtual_value
        if association.serializer is None or association.serializer.object is None:
            return None

        child_options = dict(self.instance_options, include=self.include_tree.child_for(association.key))
        if self._prefetched:
            child_options["cache_attributes"] = self._cached_attributes
        else:
            child_options.pop("cache_attributes", None)
        nested = dict(options)
        if not isinstance(child_options.get("fields"), Mapping):
            child_options.pop("fields", None)
        if not isinstance(nested.get("fields"), Mapping):
            nested.pop("fields", None)
        return Attributes(association.serializer, **child_options).serializable_hash(nested)

    @staticmethod
    def _links_and_meta(association: Association) -> Optional[Dict[str, Any]]:
        """Links and meta of an association rendered without data; None when it has neither."""
        rendered: Dict[str, Any] = {}
        if association.links:
            rendered["links"] = association.links
        if association.meta is not None:
            rendered["meta"] = association.meta
        return rendered or None

    def _fields_for(self, options: Dict[str, Any]) -> Optional[Iterable[str]]:
        fields = options.get("fields", self.instance_options.get("fields"))
        if fields is None or not isinstance(fields, Mapping):
            return fields
        name = model_name_for(self.serializer.object)
        return fields.get(name, fields.get(pluralize(name)))
