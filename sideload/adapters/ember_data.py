"""
Sideload Adapters — EmberData.

Wraps the Attributes document under a root key and moves side-loaded
associations out of each resource into sibling arrays, the layout
ember-data expects::

    {"post": {"id": 1, "title": "Hello"},
     "comments": [{"id": 3, "body": "First"}, {"id": 4, "body": "Second"}]}

Associations are side-loaded when declared with ``sideload=True``.
An association whose key equals the root key stays nested, so it cannot
overwrite the primary resources. Siblings are not de-duplicated: a
comment reachable from two posts appears twice.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from ..serializers.base import CollectionSerializer, model_name_for
from ..utils.inflection import demodulize, pluralize, underscore
from .attributes import Attributes
from .base import Adapter, register_adapter

logger = logging.getLogger("sideload.adapters.ember_data")

_SERIALIZER_SUFFIX = re.compile(r"_serializer\Z")

PAGINATION_ATTRIBUTES = ("current_page", "next_page", "prev_page", "total_pages", "total_count")


@register_adapter("ember_data")
class EmberData(Adapter):
    """
    Side-loading adapter.

    Options are those of ``Attributes``. ``root=False`` returns the
    Attributes document unwrapped.
    """

    def serializable_hash(self, options: Optional[Dict[str, Any]] = None) -> Any:
        serialized = Attributes(self.serializer, **self.instance_options).serializable_hash(options)

        if self.collection:
            self._add_pagination_meta()

        if self.instance_options.get("root") is False or getattr(self.serializer, "root", None) is False:
            return serialized

        root = self.root
        document: Dict[str, Any] = {root: serialized}
        if not serialized:
            return document

        keys = [key for key in self.sideloaded_association_keys() if key != root]
        if keys:
            elements = serialized if isinstance(serialized, list) else [serialized]
            self._extract_sideloaded(document, elements, keys)
        return document

    # ── Flattening ───────────────────────────────────────────────────────

    @staticmethod
    def _extract_sideloaded(document: Dict[str, Any], elements: List[Any], keys: List[str]) -> None:
        """
        Move ``keys`` out of every element into sibling arrays.

        Removals are collected first and applied afterwards, so no
        element is mutated while the elements are being walked.
        """
        removals = []
        for element in elements:
            if not isinstance(element, dict):
                continue
            for key in keys:
                if key in element:
                    removals.append((element, key))

        for element, key in removals:
            value = element.pop(key)
            sibling = document.setdefault(key, [])
            if isinstance(value, list):
                sibling.extend(value)
            elif value is not None:
                sibling.append(value)

    def sideloaded_association_keys(self) -> List[str]:
        """Output keys of the element serializer's ``sideload=True`` associations."""
        # conditions of a collection are evaluated on its first member only
        element = self._element_serializer()
        if element is None or isinstance(element, CollectionSerializer):
            return []
        return [
            reflection.key
            for reflection in type(element)._reflections
            if reflection.sideloaded and not reflection.excluded(element)
        ]

    # ── Pagination ───────────────────────────────────────────────────────

    def _add_pagination_meta(self) -> None:
        """Copy pagination details of a paginated collection into ``meta``."""
        if not self.serializer.paginated:
            return
        page = self.serializer.object
        self.meta.update({name: getattr(page, name, None) for name in PAGINATION_ATTRIBUTES})

    # ── Root key ─────────────────────────────────────────────────────────

    def _element_serializer(self) -> Any:
        if self.collection:
            return self.serializer.first
        return self.serializer

    @property
    def root(self) -> str:
        """
        Serializer class name, else the model name, else the serializer's
        json key. Pluralized for collections.
        """
        element = self._element_serializer()
        root_name = None
        if element is not None and not isinstance(element, CollectionSerializer):
            if not type(element).__dict__.get("_is_base_serializer"):
                root_name = _SERIALIZER_SUFFIX.sub("", underscore(demodulize(type(element).__name__))) or None

        if root_name is None:
            model = self._derived_class()
            if model is not None:
                root_name = model_name_for(model)

        if root_name is None:
            # json_key of a collection is already plural
            return str(self.serializer.json_key)

        return pluralize(root_name) if self.collection else root_name

    def _derived_class(self) -> Optional[type]:
        if self.collection:
            model = getattr(self.serializer.object, "model", None)
            if isinstance(model, type):
                return model
            first = self.serializer.first
            return type(first.object) if first is not None else None
        obj = self.serializer.object
        return type(obj) if obj is not None else None
