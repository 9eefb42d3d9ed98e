"""
Tests for serializer lookup: precedence, strategies, namespaces and the
lookup cache.
"""

import threading

import pytest

from sideload import (
    Attribute,
    CollectionSerializer,
    NoSerializerFault,
    Serializer,
    configure,
    serialize,
)
from sideload.serializers.base import is_collection
from sideload.serializers.lookup import SerializerRegistry, plain_name

from tests.models import Comment, Model, Post, PostSerializer, build_post


class Widget(Model):
    pass


class Gizmo(Model):
    pass


class SubGizmo(Gizmo):
    pass


# ============================================================================
# Precedence
# ============================================================================


class TestPrecedence:
    def test_name_convention(self):
        assert Serializer.serializer_for(build_post(1)) is PostSerializer

    def test_resource_serializer_class_wins(self):
        class CustomSerializer(Serializer):
            id = Attribute()

        post = build_post(1)
        post.serializer_class = CustomSerializer
        assert Serializer.serializer_for(post, {"serializer": PostSerializer}) is CustomSerializer

    def test_collection_beats_serializer_option(self):
        assert Serializer.serializer_for([build_post(1)], {"serializer": PostSerializer}) is CollectionSerializer

    def test_serializer_option_beats_registry(self):
        class OtherSerializer(Serializer):
            id = Attribute()

        assert Serializer.serializer_for(build_post(1), {"serializer": OtherSerializer}) is OtherSerializer

    def test_none_has_no_serializer(self):
        assert Serializer.serializer_for(None) is None

    def test_unknown_resource(self):
        assert Serializer.serializer_for(Widget(id=1)) is None

    def test_lookup_disabled(self):
        configure(serializer_lookup_enabled=False)
        assert Serializer.serializer_for(build_post(1)) is None
        with pytest.raises(NoSerializerFault):
            serialize(build_post(1))

    @pytest.mark.parametrize(
        "resource, expected",
        [
            ([1], True),
            ((1,), True),
            ({1}, True),
            ("text", False),
            (b"bytes", False),
            ({"a": 1}, False),
            (None, False),
            (Model(), False),
        ],
    )
    def test_is_collection(self, resource, expected):
        assert is_collection(resource) is expected


# ============================================================================
# Strategies
# ============================================================================


class TestStrategies:
    def test_model_registration(self):
        class FancySerializer(Serializer):
            id = Attribute()

            class Meta:
                model = Gizmo

        assert Serializer.serializer_for(Gizmo(id=1)) is FancySerializer

    def test_mro_walk(self):
        class FancySerializer(Serializer):
            id = Attribute()

            class Meta:
                model = Gizmo

        assert Serializer.serializer_for(SubGizmo(id=1)) is FancySerializer

    def test_subclass_does_not_reregister_model(self):
        class FancySerializer(Serializer):
            class Meta:
                model = Gizmo

        class FancierSerializer(FancySerializer):
            pass

        assert Serializer.serializer_for(Gizmo()) is FancySerializer

    def test_nested_in_context(self):
        class WidgetSerializer(Serializer):
            id = Attribute()

        class HolderSerializer(Serializer):
            class WidgetSerializer(Serializer):
                name = Attribute()

        widget = Widget(id=1, name="w")
        assert HolderSerializer.serializer_for(widget) is HolderSerializer.WidgetSerializer
        assert Serializer.serializer_for(widget) is WidgetSerializer

    def test_nested_class_is_not_registered_by_name(self):
        class HolderSerializer(Serializer):
            class WidgetSerializer(Serializer):
                name = Attribute()

        assert Serializer.serializer_for(Widget()) is None

    def test_namespaced_name(self):
        class WidgetSerializer(Serializer):
            id = Attribute()

            class Meta:
                namespace = "admin"

        widget = Widget(id=1)
        assert Serializer.serializer_for(widget, {"serializer_namespace": "admin"}) is WidgetSerializer
        assert Serializer.serializer_for(widget) is None

    def test_namespace_falls_back_to_plain(self):
        assert Serializer.serializer_for(build_post(1), {"serializer_namespace": "admin"}) is PostSerializer

    def test_namespaced_model(self):
        class AdminGizmoSerializer(Serializer):
            class Meta:
                model = Gizmo
                namespace = "admin"

        class PublicGizmoSerializer(Serializer):
            class Meta:
                model = Gizmo

        gizmo = Gizmo()
        assert Serializer.serializer_for(gizmo, {"serializer_namespace": "admin"}) is AdminGizmoSerializer
        assert Serializer.serializer_for(gizmo) is PublicGizmoSerializer

    def test_abstract_serializers_are_not_registered(self, isolated_registry):
        class WidgetSerializer(Serializer):
            class Meta:
                abstract = True
                model = Widget

        assert isolated_registry.by_name("WidgetSerializer") is None
        assert Serializer.serializer_for(Widget()) is None

    def test_namespace_reaches_nested_resources(self):
        class CommentSerializer(Serializer):
            id = Attribute()
            flagged = Attribute(lambda ctx: True)

            class Meta:
                namespace = "admin"

        document = serialize(build_post(1, comments=[Comment(id=5, body="x", author=None)]), serializer_namespace="admin")
        assert document["comments"] == [{"id": 5, "flagged": True}]


# ============================================================================
# Registry & cache
# ============================================================================


class TestRegistry:
    def test_results_are_cached(self):
        calls = []

        def counting(registry, cls, namespace, context):
            calls.append(cls)
            return plain_name(registry, cls, namespace, context)

        registry = SerializerRegistry(strategies=[counting])
        registry.register_name(PostSerializer)

        assert registry.lookup(Post) is PostSerializer
        assert registry.lookup(Post) is PostSerializer
        assert calls == [Post]

    def test_misses_are_cached(self):
        calls = []

        def counting(registry, cls, namespace, context):
            calls.append(cls)
            return None

        registry = SerializerRegistry(strategies=[counting])
        assert registry.lookup(Widget) is None
        assert registry.lookup(Widget) is None
        assert calls == [Widget, Model]

    def test_registration_invalidates_cache(self):
        registry = SerializerRegistry()
        assert registry.lookup(Widget) is None

        class WidgetSerializer(Serializer):
            pass

        registry.register_name(WidgetSerializer)
        assert registry.lookup(Widget) is WidgetSerializer

    def test_clear(self):
        registry = SerializerRegistry()
        registry.register_name(PostSerializer)
        registry.register(Post, PostSerializer)
        assert registry.lookup(Post) is PostSerializer

        registry.clear()
        assert len(registry) == 0
        assert registry.lookup(Post) is None

    def test_clear_cache_keeps_registrations(self):
        registry = SerializerRegistry()
        registry.register_name(PostSerializer)
        registry.lookup(Post)
        registry.clear_cache()
        assert registry.lookup(Post) is PostSerializer

    def test_concurrent_lookups_agree(self):
        registry = SerializerRegistry()
        registry.register_name(PostSerializer)
        results = []

        def worker():
            for _ in range(200):
                results.append(registry.lookup(Post))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 1600
        assert set(results) == {PostSerializer}
