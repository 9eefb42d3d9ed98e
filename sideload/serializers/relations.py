"""
Sideload Serializer Relations — association descriptors.

Associations are declared like attributes::

    class PostSerializer(Serializer):
        author = HasOne(serializer=AuthorSerializer)
        comments = HasMany(sideload=True)
        last_comments = HasMany(lambda ctx: ctx.object.comments[-1:], key="recent")
        secret_notes = HasMany(if_="is_admin")
        tags = HasMany(
            include_data=False,
            links={"related": lambda ctx: f"/posts/{ctx.object.id}/tags"},
            meta={"count": 3},
        )

Per serialization pass each descriptor resolves to an ``Association``:
a child serializer, a virtual (plain data) value, or neither.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Dict, Optional

from .exceptions import NoSerializerFault
from .fields import Field, FieldContext

logger = logging.getLogger("sideload.serializers.relations")


class _UseAttribute:
    """Returned by a value rule to fall back to the plain attribute read."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "<USE_ATTRIBUTE>"


USE_ATTRIBUTE = _UseAttribute()


def as_plain_data(value: Any) -> Any:
    """Best-effort plain-data coercion used for virtual values."""
    for hook in ("as_json", "to_dict"):
        method = getattr(value, hook, None)
        if callable(method):
            return method()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (list, tuple)):
        return [as_plain_data(item) for item in value]
    return value


# ============================================================================
# Resolved association
# ============================================================================

class Association:
    """
    One association of one serializer, resolved for one serialization pass.

    Exactly one of these holds: ``serializer`` is set, ``virtual_value`` is
    set, or neither (a nil association or ``include_data=False``).
    """

    __slots__ = ("name", "serializer", "options", "links", "meta")

    def __init__(
        self,
        name: str,
        serializer: Any,
        options: Dict[str, Any],
        links: Optional[Dict[str, Any]] = None,
        meta: Any = None,
    ):
        self.name = name
        self.serializer = serializer
        self.options = options
        self.links = links or {}
        self.meta = meta

    @property
    def key(self) -> str:
        return str(self.options.get("key") or self.name)

    @property
    def virtual_value(self) -> Any:
        return self.options.get("virtual_value")

    @property
    def include_data(self) -> bool:
        return self.options.get("include_data", True)

    @property
    def sideloaded(self) -> bool:
        return bool(self.options.get("sideload", False))

    def __repr__(self) -> str:
        if self.serializer is not None:
            target = type(self.serializer).__name__
        elif "virtual_value" in self.options:
            target = "virtual"
        else:
            target = "nil"
        return f"<Association {self.key!r} -> {target}>"


# ============================================================================
# Reflections
# ============================================================================

class Reflection(Field):
    """
    Association descriptor.

    Unlike attributes, associations are filtered only by their ``if_`` /
    ``unless`` conditions, not by the read policy.
    """

    _kind = "association"
    collection = False

    def __init__(
        self,
        value: Optional[Callable[[FieldContext], Any]] = None,
        *,
        serializer: Any = None,
        links: Optional[Dict[str, Any]] = None,
        meta: Any = None,
        include_data: bool = True,
        sideload: bool = False,
        **kwargs: Any,
    ):
        super().__init__(value, **kwargs)
        if serializer is not None:
            self.options["serializer"] = serializer
        if sideload:
            self.options["sideload"] = True
        self._links: Dict[str, Any] = dict(links or {})
        self._meta = meta
        self._include_data = include_data

    @property
    def sideloaded(self) -> bool:
        return bool(self.options.get("sideload", False))

    @property
    def include_data(self) -> bool:
        return self._include_data

    def excluded(self, serializer: Any) -> bool:
        return self._excluded_by_condition(serializer)

    def value(self, serializer: Any) -> Any:
        if self.block is not None:
            block_value = self.block(FieldContext.for_serializer(serializer))
            if block_value is not USE_ATTRIBUTE:
                return block_value
        return serializer.read_attribute_for_serialization(self.name)

    def build_association(self, subject: Any, parent_serializer_options: Dict[str, Any]) -> Association:
        """
        Resolve this descriptor against the parent serializer *subject*.

        Args:
            subject: The parent serializer instance.
            parent_serializer_options: The parent's instance options; they
                are handed down to the child serializer.
        """
        association_value = self.value(subject)
        reflection_options = {
            k: v for k, v in self.options.items() if k not in ("if", "unless")
        }
        reflection_options["include_data"] = self._include_data

        lookup_options = dict(reflection_options)
        namespace = parent_serializer_options.get("serializer_namespace")
        if namespace:
            lookup_options["serializer_namespace"] = namespace

        serializer = None
        if self._include_data:
            serializer_class = subject.serializer_for(association_value, lookup_options)
            if serializer_class is not None:
                try:
                    serializer = serializer_class(
                        association_value,
                        **self._serializer_options(subject, parent_serializer_options),
                    )
                except NoSerializerFault as fault:
                    logger.debug("Association %r falls back to a virtual value: %s", self.key, fault)
                    reflection_options["virtual_value"] = as_plain_data(association_value)
            elif association_value is not None and type(association_value) is not object:
                reflection_options["virtual_value"] = association_value

        context = FieldContext.for_serializer(subject)
        links = {name: self._resolve(link, context) for name, link in self._links.items()}
        meta = self._resolve(self._meta, context)

        return Association(self.name, serializer, reflection_options, links, meta)

    def _serializer_options(self, subject: Any, parent_serializer_options: Dict[str, Any]) -> Dict[str, Any]:
        options = {k: v for k, v in parent_serializer_options.items() if k != "serializer"}
        serializer = self.options.get("serializer")
        if serializer is not None:
            options["serializer"] = serializer
        options["serializer_context_class"] = type(subject)
        return options

    @staticmethod
    def _resolve(value: Any, context: FieldContext) -> Any:
        if callable(value):
            return value(context)
        return value


class HasOne(Reflection):
    """One-to-one association."""


class BelongsTo(Reflection):
    """Inverse one-to-one association."""


class HasMany(Reflection):
    """One-to-many association."""

    collection = True
