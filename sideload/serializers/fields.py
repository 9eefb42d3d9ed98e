"""
Sideload Serializer Fields — attribute descriptors.

A field describes one output key of a serializer: its name, its static
options (``key``, ``if_``, ``unless``) and an optional value rule::

    class PostSerializer(Serializer):
        id = Attribute()
        title = Attribute(key="headline")
        summary = Attribute(lambda ctx: ctx.object.body[:40])
        body = Attribute(unless="is_preview")

        def is_preview(self):
            return self.scope.preview

A field whose name is also a serializer method is declared under another
attribute name with ``name=``::

    class TeaserSerializer(Serializer):
        headline_field = Attribute(name="headline")

        def headline(self):
            return self.object.title.upper()

Without a value rule the value comes from
``serializer.read_attribute_for_serialization(name)``. A value rule is
called with a ``FieldContext``, never with the serializer itself, so rules
do not depend on the concrete serializer class.

Descriptors are created once with the serializer class and shared by
every serialization; they hold no per-request state.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Union

logger = logging.getLogger("sideload.serializers.fields")

Condition = Union[str, Callable[[Any], Any]]
ValueRule = Callable[["FieldContext"], Any]


# ============================================================================
# Value-rule capability
# ============================================================================

class FieldContext:
    """
    What a value rule may see: the resource, the scope, the serializer
    options and the serializer's declared attributes.
    """

    __slots__ = ("object", "scope", "options", "_reader")

    def __init__(
        self,
        object: Any,
        scope: Any = None,
        options: Optional[Dict[str, Any]] = None,
        reader: Optional[Callable[[str], Any]] = None,
    ):
        self.object = object
        self.scope = scope
        self.options = options or {}
        self._reader = reader

    @classmethod
    def for_serializer(cls, serializer: Any) -> "FieldContext":
        return cls(
            serializer.object,
            serializer.scope,
            serializer.instance_options,
            serializer.read_attribute_for_serialization,
        )

    def attribute(self, name: str) -> Any:
        """Read another attribute through the serializer's read chain."""
        if self._reader is None:
            return getattr(self.object, name)
        return self._reader(name)

    def __repr__(self) -> str:
        return f"<FieldContext object={self.object!r}>"


# ============================================================================
# Base Field
# ============================================================================

class Field:
    """
    Base descriptor for attributes and associations.

    The owning ``Serializer`` metaclass calls ``bind(name)`` at class
    creation; creation order is kept so output follows declaration order.
    """

    _creation_counter: int = 0
    _kind: str = "field"

    def __init__(
        self,
        value: Optional[ValueRule] = None,
        *,
        key: Optional[str] = None,
        if_: Optional[Condition] = None,
        unless: Optional[Condition] = None,
        name: Optional[str] = None,
        **options: Any,
    ):
        self.name: str = name or ""
        self.block = value
        self.options: Dict[str, Any] = dict(options)
        if key is not None:
            self.options["key"] = key
        if if_ is not None:
            self.options["if"] = if_
        if unless is not None:
            self.options["unless"] = unless

        # ``if`` wins when both are given
        if if_ is not None:
            self._condition_type: Optional[str] = "if"
            if unless is not None:
                logger.warning(
                    "%s %r declares both if_ and unless; using if_",
                    self._kind, name or "<unbound>",
                )
        elif unless is not None:
            self._condition_type = "unless"
        else:
            self._condition_type = None

        self._order = Field._creation_counter
        Field._creation_counter += 1

    # ── Binding ──────────────────────────────────────────────────────────

    def bind(self, name: str) -> None:
        """Attach the declared name (explicit ``name=`` wins)."""
        if not self.name:
            self.name = name

    @property
    def key(self) -> str:
        """Output key: the ``key`` option, else the field name."""
        return str(self.options.get("key") or self.name)

    @property
    def condition_type(self) -> Optional[str]:
        return self._condition_type

    @property
    def condition(self) -> Optional[Condition]:
        if self._condition_type is None:
            return None
        return self.options[self._condition_type]

    # ── Core API ─────────────────────────────────────────────────────────

    def value(self, serializer: Any) -> Any:
        """Compute this field's value for *serializer*."""
        if self.block is not None:
            return self.block(FieldContext.for_serializer(serializer))
        return serializer.read_attribute_for_serialization(self.name)

    def excluded(self, serializer: Any) -> bool:
        """Should *serializer* leave this field out?"""
        if serializer.unpermitted_attribute(self.name):
            return True
        return self._excluded_by_condition(serializer)

    def _excluded_by_condition(self, serializer: Any) -> bool:
        if self._condition_type == "if":
            return not self._evaluate(self.condition, serializer)
        if self._condition_type == "unless":
            return bool(self._evaluate(self.condition, serializer))
        return False

    @staticmethod
    def _evaluate(condition: Condition, serializer: Any) -> Any:
        if isinstance(condition, str):
            return serializer.resolve_method(condition)()
        return condition(serializer)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        bound = f" {self.name!r}" if self.name else ""
        return f"<{cls}{bound}>"


class Attribute(Field):
    """A plain output attribute, filtered by read policy and conditions."""

    _kind = "attribute"
