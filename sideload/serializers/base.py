"""
Sideload Serializers — Serializer and CollectionSerializer.

A serializer wraps one resource and knows which attributes and
associations to expose::

    class PostSerializer(Serializer):
        id = Attribute()
        title = Attribute()
        author = BelongsTo()
        comments = HasMany(sideload=True)

        class Meta:
            model = Post
            cache = {"key": "posts", "expires_in": 3600}

Rendering is done by an adapter (``sideload.adapters``); serializers
only answer questions: which attributes, which associations, which
serializer for a nested resource.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable, Mapping
from functools import cached_property
from typing import Any, ClassVar, Dict, Iterator, List, Optional

from ..config import get_config
from ..utils.inflection import pluralize, underscore
from .exceptions import NoSerializerFault
from .fields import Attribute, Field
from .include_tree import IncludeTree
from .lookup import registry
from .policy import permitted_attributes
from .relations import Association, Reflection

logger = logging.getLogger("sideload.serializers.base")

_UNSET = object()

CACHE_OPTION_KEYS = frozenset({"key", "expires_in", "only", "except_", "skip_digest", "enabled"})


# ============================================================================
# Helpers
# ============================================================================

def is_collection(resource: Any) -> bool:
    """Lists, tuples, sets and other sized iterables that are not text or mappings."""
    if resource is None or isinstance(resource, (str, bytes, bytearray, Mapping)):
        return False
    if isinstance(resource, (list, tuple, set, frozenset)):
        return True
    return isinstance(resource, Iterable) and hasattr(resource, "__len__")


def model_name_for(resource: Any) -> str:
    """Underscored model name: ``model_name`` attribute, else the class name."""
    cls = resource if isinstance(resource, type) else type(resource)
    name = getattr(cls, "model_name", None)
    if isinstance(name, str) and name:
        return name
    return underscore(cls.__name__)


def read_resource_attribute(resource: Any, name: str) -> Any:
    """
    Read *name* from a raw resource.

    Resource read hook, then mapping item, then attribute. Bound methods
    are called. Missing names raise ``KeyError``/``AttributeError``.
    """
    reader = getattr(resource, "read_attribute_for_serialization", None)
    if callable(reader):
        return reader(name)
    if isinstance(resource, Mapping):
        return resource[name]
    value = getattr(resource, name)
    if inspect.ismethod(value):
        return value()
    return value


# ============================================================================
# Metaclass
# ============================================================================

class SerializerMeta(type):
    """
    Metaclass for Serializer classes.

    Collects declared ``Field`` instances from the class body and parent
    classes, in declaration order, and splits them into
    ``_attributes_data`` (keyed by output key) and ``_reflections``.
    Registers the class with the lookup registry by name and by
    ``Meta.model``.
    """

    def __new__(
        mcs,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        **kwargs: Any,
    ) -> SerializerMeta:
        declared: list[tuple[str, Field]] = []
        for key, value in list(namespace.items()):
            if isinstance(value, Field):
                declared.append((key, value))
                namespace.pop(key)

        declared.sort(key=lambda pair: pair[1]._order)

        parent_fields: dict[str, Field] = {}
        for base in reversed(bases):
            if hasattr(base, "_declared_fields"):
                parent_fields.update(base._declared_fields)

        all_fields = dict(parent_fields)
        for field_name, field_obj in declared:
            field_obj.bind(field_name)
            all_fields[field_name] = field_obj

        namespace["_declared_fields"] = all_fields
        namespace["_attributes_data"] = {
            f.key: f for f in all_fields.values() if not isinstance(f, Reflection)
        }
        namespace["_reflections"] = [f for f in all_fields.values() if isinstance(f, Reflection)]

        cls = super().__new__(mcs, name, bases, namespace, **kwargs)
        cls._serializer_instance_methods = mcs._public_members(cls)

        own_meta = namespace.get("Meta")
        if not getattr(own_meta, "abstract", False) and not namespace.get("_is_base_serializer"):
            meta_namespace = getattr(cls.Meta, "namespace", None) if hasattr(cls, "Meta") else None
            # Classes nested in another class are found through their owner
            owner = cls.__qualname__.rpartition(".")[0]
            if not owner or owner.endswith("<locals>"):
                registry.register_name(cls, meta_namespace)
            model = getattr(own_meta, "model", None)
            if model is not None:
                registry.register(model, cls, meta_namespace)
        return cls

    @staticmethod
    def _public_members(cls: type) -> frozenset[str]:
        """Public methods and properties declared on concrete serializer classes."""
        names = set()
        for klass in cls.__mro__:
            if klass.__dict__.get("_is_base_serializer"):
                break
            for attr_name, member in vars(klass).items():
                if attr_name.startswith("_") or attr_name == "Meta":
                    continue
                if isinstance(member, (property, cached_property)) or inspect.isfunction(member):
                    names.add(attr_name)
        return frozenset(names)


# ============================================================================
# Serializer
# ============================================================================

class Serializer(metaclass=SerializerMeta):
    """
    Serializer for a single resource.

    Options (all optional, handed down to nested serializers):
        - ``scope``: the current viewer, handed to policies and rules
        - ``scope_name``: alias under which ``scope`` is also exposed
        - ``root``: explicit root key
        - ``serializer``: explicit serializer class for nested resources
        - ``serializer_namespace``: namespace used by serializer lookup
        - ``skip_policy``: ignore attribute read policies
    """

    _is_base_serializer: ClassVar[bool] = True
    _is_serializer: ClassVar[bool] = True
    _declared_fields: ClassVar[dict[str, Field]]
    _attributes_data: ClassVar[dict[str, Field]]
    _reflections: ClassVar[list[Reflection]]
    _serializer_instance_methods: ClassVar[frozenset[str]]

    class Meta:
        abstract = True

    def __init__(self, object: Any, *, _fragmented: Optional["Serializer"] = None, **options: Any):
        self.object = object
        self.instance_options = options
        self.root = options.get("root")
        self.scope = options.get("scope")
        self._fragmented = _fragmented
        self._attributes: Optional[Dict[str, Any]] = None
        self._policy: Any = _UNSET
        self._permitted: Any = None

        scope_name = options.get("scope_name")
        if scope_name and not hasattr(type(self), scope_name):
            setattr(self, scope_name, self.scope)

    # ── Class-level lookup ───────────────────────────────────────────────

    @classmethod
    def serializer_for(cls, resource: Any, options: Optional[Dict[str, Any]] = None) -> Optional[type]:
        """
        Serializer class for *resource*, or None.

        Precedence: the resource's own ``serializer_class``, then
        ``CollectionSerializer`` for collections, then the ``serializer``
        option, then registry lookup.
        """
        options = options or {}
        explicit = getattr(resource, "serializer_class", None)
        if explicit is not None and not isinstance(resource, type):
            return explicit
        if is_collection(resource):
            return CollectionSerializer
        if options.get("serializer") is not None:
            return options["serializer"]
        if resource is None:
            return None
        return cls.get_serializer_for(type(resource), options)

    @classmethod
    def get_serializer_for(cls, resource_cls: type, options: Optional[Dict[str, Any]] = None) -> Optional[type]:
        if not get_config().serializer_lookup_enabled:
            return None
        options = options or {}
        context = None if cls.__dict__.get("_is_base_serializer") else cls
        return registry.lookup(
            resource_cls,
            namespace=options.get("serializer_namespace"),
            context=context,
        )

    @classmethod
    def cache_options(cls) -> Optional[Dict[str, Any]]:
        """``Meta.cache`` as a dict, or None when the class is not cached."""
        meta = getattr(cls, "Meta", None)
        cache = getattr(meta, "cache", None)
        if not cache:
            return None
        if cache is True:
            cache = {}
        unknown = set(cache) - CACHE_OPTION_KEYS
        if unknown:
            logger.warning("%s: unknown cache options %s", cls.__name__, sorted(unknown))
        return dict(cache)

    # ── Naming ───────────────────────────────────────────────────────────

    @property
    def json_key(self) -> str:
        return self.root or model_name_for(self.object)

    # ── Attribute reads ──────────────────────────────────────────────────

    def read_attribute_for_serialization(self, name: str) -> Any:
        """
        Serializer method or property, then the owning serializer of a
        fragment, then the resource itself.
        """
        if name in type(self)._serializer_instance_methods:
            member = getattr(self, name)
            return member() if inspect.ismethod(member) else member
        if self._fragmented is not None:
            return self._fragmented.read_attribute_for_serialization(name)
        return read_resource_attribute(self.object, name)

    def resolve_method(self, name: str):
        """Condition method *name*, looked up here, then on the fragment owner."""
        if hasattr(type(self), name) or name in self.__dict__:
            return getattr(self, name)
        if self._fragmented is not None:
            return self._fragmented.resolve_method(name)
        raise AttributeError(f"{type(self).__name__} has no method {name!r}")

    # ── Read policy ──────────────────────────────────────────────────────

    @property
    def policy(self) -> Any:
        if self._policy is _UNSET:
            self._policy = None
            if not self.instance_options.get("skip_policy"):
                finder = get_config().policy_finder
                if finder is not None:
                    self._policy = finder(self.scope, self.object)
        return self._policy

    def unpermitted_attribute(self, name: str) -> bool:
        if self._fragmented is not None:
            return self._fragmented.unpermitted_attribute(name)
        if self._permitted is None:
            namespace = self.instance_options.get("serializer_namespace")
            self._permitted = permitted_attributes(self.policy, namespace)
        return name not in self._permitted

    # ── Output ───────────────────────────────────────────────────────────

    def attributes(self, requested_attrs: Optional[Iterable[str]] = None, reload: bool = False) -> Dict[str, Any]:
        """
        Ordered mapping of output key → value for every attribute not
        excluded, optionally restricted to *requested_attrs*.
        """
        if requested_attrs is None and self._attributes is not None and not reload:
            return self._attributes

        requested = None if requested_attrs is None else {str(a) for a in requested_attrs}
        result: Dict[str, Any] = {}
        for key, attr in self._attributes_data.items():
            if requested is not None and key not in requested:
                continue
            if attr.excluded(self):
                continue
            result[key] = attr.value(self)

        if requested is None:
            self._attributes = result
        return result

    def associations(self, include_tree: Any = None) -> Iterator[Association]:
        """
        Resolved associations the *include_tree* includes, in declaration
        order.
        """
        if self.object is None:
            return
        tree = IncludeTree.from_include_args(include_tree)
        for reflection in self._reflections:
            if reflection.excluded(self):
                continue
            if not tree.includes(reflection.key):
                continue
            yield reflection.build_association(self, self.instance_options)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} object={self.object!r}>"


# ============================================================================
# Collection Serializer
# ============================================================================

class CollectionSerializer:
    """
    Serializer for an ordered collection of resources.

    Each member gets its own serializer; a member with none raises
    ``NoSerializerFault``.
    """

    _is_serializer: ClassVar[bool] = True

    def __init__(self, resources: Any, **options: Any):
        self.object = resources
        self.root = options.get("root")
        self.instance_options = options

        context = options.get("serializer_context_class") or Serializer
        member_options = {k: v for k, v in options.items() if k != "serializer"}
        lookup_options = {}
        if options.get("serializer_namespace"):
            lookup_options["serializer_namespace"] = options["serializer_namespace"]

        self._serializers: List[Any] = []
        for resource in resources:
            serializer_class = options.get("serializer") or context.serializer_for(resource, lookup_options)
            if serializer_class is None:
                raise NoSerializerFault(resource)
            self._serializers.append(serializer_class(resource, **member_options))

    @property
    def serializers(self) -> List[Any]:
        return list(self._serializers)

    @property
    def first(self) -> Optional[Any]:
        return self._serializers[0] if self._serializers else None

    @property
    def json_key(self) -> str:
        if self.root:
            return self.root
        if self._serializers:
            key = self._serializers[0].json_key
        else:
            model = getattr(self.object, "model", None)
            if model is None:
                return "data"
            key = model_name_for(model)
        return pluralize(key)

    @property
    def paginated(self) -> bool:
        return hasattr(self.object, "current_page") and hasattr(self.object, "total_count")

    def __iter__(self) -> Iterator[Any]:
        return iter(self._serializers)

    def __len__(self) -> int:
        return len(self._serializers)

    def __repr__(self) -> str:
        return f"<CollectionSerializer size={len(self._serializers)}>"
