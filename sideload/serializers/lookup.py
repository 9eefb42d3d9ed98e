"""
Sideload Serializer Lookup — resource class → serializer class.

Serializers register themselves when their class is created: by name
(``PostSerializer``, or ``admin.PostSerializer`` with
``Meta.namespace = "admin"``) and, when ``Meta.model`` is set, by model.
Lookup walks the resource's MRO and, for each class, tries an ordered
list of strategies:

1. a nested class ``<Resource>Serializer`` on the serializer asking
   (the "context" serializer), e.g. ``PostSerializer.CommentSerializer``
2. a model registration under the requested namespace
3. the name ``<namespace>.<Resource>Serializer``
4. a model registration without namespace
5. the name ``<Resource>Serializer``

Results, misses included, are cached per (resource class, namespace,
context). The cache is shared by every thread; a race may compute the
same answer twice but only one value is ever stored.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger("sideload.serializers.lookup")

Strategy = Callable[["SerializerRegistry", type, Optional[str], Optional[type]], Optional[type]]


# ============================================================================
# Strategies
# ============================================================================

def nested_in_context(registry: "SerializerRegistry", cls: type, namespace: Optional[str], context: Optional[type]) -> Optional[type]:
    if context is None:
        return None
    candidate = getattr(context, f"{cls.__name__}Serializer", None)
    if isinstance(candidate, type) and getattr(candidate, "_is_serializer", False):
        return candidate
    return None


def namespaced_model(registry: "SerializerRegistry", cls: type, namespace: Optional[str], context: Optional[type]) -> Optional[type]:
    if not namespace:
        return None
    return registry.by_model(cls, namespace)


def namespaced_name(registry: "SerializerRegistry", cls: type, namespace: Optional[str], context: Optional[type]) -> Optional[type]:
    if not namespace:
        return None
    return registry.by_name(f"{namespace}.{cls.__name__}Serializer")


def plain_model(registry: "SerializerRegistry", cls: type, namespace: Optional[str], context: Optional[type]) -> Optional[type]:
    return registry.by_model(cls)


def plain_name(registry: "SerializerRegistry", cls: type, namespace: Optional[str], context: Optional[type]) -> Optional[type]:
    return registry.by_name(f"{cls.__name__}Serializer")


DEFAULT_STRATEGIES: Tuple[Strategy, ...] = (
    nested_in_context,
    namespaced_model,
    namespaced_name,
    plain_model,
    plain_name,
)


# ============================================================================
# Registry
# ============================================================================

class SerializerRegistry:
    """
    Process-wide serializer registry with a lazily filled lookup cache.
    """

    def __init__(self, strategies: Optional[List[Strategy]] = None):
        self.strategies: List[Strategy] = list(strategies or DEFAULT_STRATEGIES)
        self._lock = threading.Lock()
        self._names: Dict[str, type] = {}
        self._models: Dict[Tuple[Optional[str], type], type] = {}
        self._cache: Dict[Tuple[type, Optional[str], Optional[type]], Optional[type]] = {}

    # ── Registration ─────────────────────────────────────────────────────

    def register_name(self, serializer_cls: type, namespace: Optional[str] = None) -> None:
        name = serializer_cls.__name__
        if namespace:
            name = f"{namespace}.{name}"
        with self._lock:
            previous = self._names.get(name)
            if previous is not None and previous is not serializer_cls:
                logger.debug("Serializer name %s now refers to %s.%s", name, serializer_cls.__module__, serializer_cls.__qualname__)
            self._names[name] = serializer_cls
            self._cache.clear()

    def register(self, model: type, serializer_cls: type, namespace: Optional[str] = None) -> None:
        """Bind *model* (and its subclasses, through the MRO walk) to *serializer_cls*."""
        with self._lock:
            self._models[(namespace or None, model)] = serializer_cls
            self._cache.clear()

    def by_name(self, name: str) -> Optional[type]:
        return self._names.get(name)

    def by_model(self, model: type, namespace: Optional[str] = None) -> Optional[type]:
        return self._models.get((namespace or None, model))

    # ── Lookup ───────────────────────────────────────────────────────────

    def lookup(
        self,
        resource_cls: type,
        *,
        namespace: Optional[str] = None,
        context: Optional[type] = None,
    ) -> Optional[type]:
        """Serializer class for *resource_cls*, or None."""
        key = (resource_cls, namespace or None, context)
        with self._lock:
            if key in self._cache:
                return self._cache[key]

        found = self._resolve(resource_cls, namespace, context)

        with self._lock:
            return self._cache.setdefault(key, found)

    def _resolve(self, resource_cls: type, namespace: Optional[str], context: Optional[type]) -> Optional[type]:
        for klass in resource_cls.__mro__:
            if klass is object:
                break
            for strategy in self.strategies:
                found = strategy(self, klass, namespace, context)
                if found is not None:
                    logger.debug("%s → %s via %s", resource_cls.__name__, found.__name__, strategy.__name__)
                    return found
        logger.debug("No serializer for %s", resource_cls.__name__)
        return None

    # ── Maintenance ──────────────────────────────────────────────────────

    def clear_cache(self) -> None:
        """Forget cached lookups; registrations stay."""
        with self._lock:
            self._cache.clear()

    def clear(self) -> None:
        """Forget cached lookups and every registration."""
        with self._lock:
            self._cache.clear()
            self._names.clear()
            self._models.clear()

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "names": dict(self._names),
                "models": dict(self._models),
            }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        with self._lock:
            self._names = dict(snapshot["names"])
            self._models = dict(snapshot["models"])
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._names)


registry = SerializerRegistry()


def get_registry() -> SerializerRegistry:
    return registry
