"""
Sideload Cache — Cached serializers and fragment caching.

A serializer class opts in with ``Meta.cache``::

    class PostSerializer(Serializer):
        class Meta:
            cache = {"key": "posts", "expires_in": 3600}

    class AuthorSerializer(Serializer):
        class Meta:
            # only "bio" is cached; the other attributes are computed live
            cache = {"key": "authors", "only": ["bio"]}

Only attribute mappings are cached. Relationships are always resolved
live, so a cache entry never holds another resource's data.

Every cache failure degrades to computing the value; the document is
the same with or without a store.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..config import get_cache_store, get_config
from ..serializers.base import CollectionSerializer, Serializer, SerializerMeta, model_name_for
from ..serializers.include_tree import IncludeTree
from ..utils.inflection import pluralize
from .core import FragmentStore
from .faults import CacheFault
from .key_builder import identity_segment
from .providers import create_key_builder

logger = logging.getLogger("sideload.cache.fragment")


# ============================================================================
# Cached serializer
# ============================================================================

class CachedSerializer:
    """
    Cache view of one serializer instance under one include tree.
    """

    def __init__(
        self,
        serializer: Any,
        include_tree: Any = None,
        store: Optional[FragmentStore] = None,
    ):
        self.serializer = serializer
        self.include_tree = IncludeTree.from_include_args(include_tree)
        self.options: Optional[Dict[str, Any]] = type(serializer).cache_options() if isinstance(serializer, Serializer) else None
        self._store = store

    @property
    def store(self) -> Optional[FragmentStore]:
        if self._store is None:
            self._store = get_cache_store()
        return self._store

    @property
    def enabled(self) -> bool:
        return self.options is not None and self.options.get("enabled", True) is not False

    @property
    def cached(self) -> bool:
        """Whole attribute mapping is cached."""
        return self.enabled and not self.options.get("only") and not self.options.get("except_")

    @property
    def fragment_cached(self) -> bool:
        """Exactly one of ``only`` / ``except_`` splits the mapping."""
        return self.enabled and bool(self.options.get("only")) != bool(self.options.get("except_"))

    @property
    def caching(self) -> bool:
        return self.cached or self.fragment_cached

    @property
    def expires_in(self) -> Optional[int]:
        if self.options and self.options.get("expires_in") is not None:
            return self.options["expires_in"]
        return get_config().cache.default_expires_in

    # ── Keys ─────────────────────────────────────────────────────────────

    @property
    def cache_key(self) -> str:
        """``<base>/<identity>/<digest>``, qualified by the configured key builder."""
        builder = create_key_builder(get_config().cache)
        return builder.build(f"{self.object_cache_key()}/{self.digest()}")

    def object_cache_key(self) -> str:
        obj = self.serializer.object
        configured = self.options.get("key") if self.options else None
        if configured:
            return f"{configured}/{identity_segment(obj)}"
        own_key = getattr(obj, "cache_key", None)
        if callable(own_key):
            own_key = own_key()
        if isinstance(own_key, str) and own_key:
            return own_key
        return f"{pluralize(model_name_for(obj))}/{identity_segment(obj)}"

    def digest(self) -> str:
        """
        Include-tree digest, mixed with the serializer's shape unless
        ``skip_digest`` is set.
        """
        if self.options and self.options.get("skip_digest"):
            return self.include_tree.digest()
        shape = ",".join(type(self.serializer)._attributes_data)
        raw = f"{self.include_tree.to_spec()}|{type(self.serializer).__qualname__}:{shape}"
        return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:12]

    @classmethod
    def object_cache_keys(cls, serializer: Any, include_tree: Any = None) -> List[str]:
        """
        Keys of every cached instance reachable from *serializer* through
        included associations, in traversal order, without duplicates.
        """
        tree = IncludeTree.from_include_args(include_tree)
        keys: List[str] = []
        cls._collect_keys(serializer, tree, keys)
        return list(dict.fromkeys(keys))

    @classmethod
    def _collect_keys(cls, serializer: Any, tree: IncludeTree, keys: List[str]) -> None:
        if serializer is None:
            return
        if isinstance(serializer, CollectionSerializer):
            for member in serializer:
                cls._collect_keys(member, tree, keys)
            return
        if serializer.object is None:
            return
        cached = cls(serializer, tree)
        if cached.cached:
            keys.append(cached.cache_key)
        for association in serializer.associations(tree):
            cls._collect_keys(association.serializer, tree.child_for(association.key), keys)

    # ── Reads ────────────────────────────────────────────────────────────

    def cache_check(self, compute: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        """
        The serializer's attribute mapping, through the store when the
        class is cached.
        """
        store = self.store
        if store is None or not self.caching:
            return compute()
        try:
            if self.cached:
                return store.fetch(self.cache_key, compute, expires_in=self.expires_in)
            return FragmentCache(self).fetch(store)
        except CacheFault as fault:
            logger.warning("Fragment cache unavailable for %s: %s", type(self.serializer).__name__, fault.message)
            return compute()


def cache_read_multi(keys: Iterable[str], store: Optional[FragmentStore] = None) -> Dict[str, Any]:
    """
    One bulk read; ``{}`` with no store, no keys, or a failing store.
    """
    keys = list(keys)
    store = store if store is not None else get_cache_store()
    if store is None or not keys:
        return {}
    try:
        found = store.read_multi(keys)
    except (CacheFault, OSError) as e:
        logger.warning("Bulk fragment read failed, treating as miss: %s", e)
        return {}
    logger.debug("Prefetched %d/%d fragments", len(found), len(keys))
    return found


# ============================================================================
# Fragment cache
# ============================================================================

_fragment_classes: Dict[Tuple[type, str, FrozenSet[str]], type] = {}
_fragment_lock = threading.Lock()


def fragment_class(owner_cls: type, keys: Iterable[str], label: str) -> type:
    """
    Generated serializer class holding only *keys* of *owner_cls*'s
    attributes. Instances delegate reads and conditions to the owner
    instance passed as ``_fragmented``.
    """
    keys = frozenset(keys)
    cache_key = (owner_cls, label, keys)
    with _fragment_lock:
        existing = _fragment_classes.get(cache_key)
    if existing is not None:
        return existing

    namespace: Dict[str, Any] = {
        "__module__": owner_cls.__module__,
        "__qualname__": f"{owner_cls.__qualname__}{label}Fragment",
        "Meta": type("Meta", (), {"abstract": True}),
    }
    for key, field in owner_cls._attributes_data.items():
        if key in keys:
            namespace[field.name] = field
    generated = SerializerMeta(f"{owner_cls.__name__}{label}Fragment", (Serializer,), namespace)

    with _fragment_lock:
        return _fragment_classes.setdefault(cache_key, generated)


def fragment_cache(owner_cls: type, cached_hash: Dict[str, Any], non_cached_hash: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge both halves. Fresh values win; keys follow *owner_cls*'s
    declaration order.
    """
    merged = {**cached_hash, **non_cached_hash}
    ordered = {key: merged[key] for key in owner_cls._attributes_data if key in merged}
    for key, value in merged.items():
        ordered.setdefault(key, value)
    return ordered


class FragmentCache:
    """
    Splits a fragment-cached serializer into a cached and a live part.
    """

    def __init__(self, cached_serializer: CachedSerializer):
        self.cached_serializer = cached_serializer
        self.serializer = cached_serializer.serializer

    def split(self) -> Tuple[List[str], List[str]]:
        """(cached keys, live keys) in declaration order."""
        options = self.cached_serializer.options or {}
        only = set(options.get("only") or ())
        except_ = set(options.get("except_") or ())
        cached, live = [], []
        for key, field in type(self.serializer)._attributes_data.items():
            if only:
                selected = key in only or field.name in only
            else:
                selected = not (key in except_ or field.name in except_)
            (cached if selected else live).append(key)
        return cached, live

    def fetch(self, store: FragmentStore) -> Dict[str, Any]:
        owner = self.serializer
        owner_cls = type(owner)
        cached_keys, live_keys = self.split()

        cached_cls = fragment_class(owner_cls, cached_keys, "Cached")
        live_cls = fragment_class(owner_cls, live_keys, "Live")
        cached_part = cached_cls(owner.object, _fragmented=owner, **owner.instance_options)
        live_part = live_cls(owner.object, _fragmented=owner, **owner.instance_options)

        cached_hash = store.fetch(
            self.cached_serializer.cache_key,
            cached_part.attributes,
            expires_in=self.cached_serializer.expires_in,
        )
        return fragment_cache(owner_cls, cached_hash, live_part.attributes())
