"""
Tests for the SerializableResource entry point and the adapter registry.
"""

import pytest

from sideload import (
    Adapter,
    Attribute,
    Attributes,
    EmberData,
    NoSerializerFault,
    SerializableResource,
    Serializer,
    UnknownAdapterFault,
    adapter_class,
    configure,
    register_adapter,
    serialize,
)
from sideload.adapters.base import registered_adapters
from sideload.serializers.base import CollectionSerializer

from tests.models import AuthorSerializer, Model, PostSerializer


class TestOptionSplit:
    def test_adapter_and_serializer_options(self, post):
        resource = SerializableResource(post, include="author", fields=["id"], scope="user", root="entry")
        assert resource.adapter_opts == {"include": "author", "fields": ["id"]}
        assert resource.serializer_opts == {"scope": "user", "root": "entry"}

    def test_serializer_class(self, post, posts):
        assert SerializableResource(post).serializer is PostSerializer
        assert SerializableResource(posts).serializer is CollectionSerializer
        assert SerializableResource(post, serializer=AuthorSerializer).serializer is AuthorSerializer

    def test_serializer_instance_receives_scope(self, post):
        resource = SerializableResource(post, scope="admin")
        assert resource.serializer_instance.scope == "admin"
        assert resource.serializer_instance is resource.serializer_instance

    def test_no_serializer(self):
        with pytest.raises(NoSerializerFault) as exc_info:
            SerializableResource(object()).serializable_hash()
        assert exc_info.value.code == "NO_SERIALIZER"

    def test_no_serializer_for_collection_member(self):
        with pytest.raises(NoSerializerFault):
            serialize([object()])

    def test_resource_serializer_class_wins(self):
        class BadgeSerializer(Serializer):
            label = Attribute()

        badge = Model(label="gold", serializer_class=BadgeSerializer)
        assert serialize(badge) == {"label": "gold"}


class TestAdapterSelection:
    def test_explicit_serializer_option(self, post):
        class HeadlineSerializer(Serializer):
            id = Attribute()
            title = Attribute()

        assert serialize(post, serializer=HeadlineSerializer) == {"id": 1, "title": "Hello"}
        assert serialize(post, serializer=HeadlineSerializer, adapter="ember_data") == {
            "headline": {"id": 1, "title": "Hello"},
        }

    def test_adapter_receives_serializer_option(self, post):
        resource = SerializableResource(post, serializer=PostSerializer)
        assert resource.adapter.serializer.object is post
        assert resource.adapter.instance_options["serializer"] is PostSerializer

    def test_default_adapter(self, post):
        assert isinstance(SerializableResource(post).adapter, Attributes)

    def test_configured_adapter(self, post):
        configure(adapter="ember_data")
        assert isinstance(SerializableResource(post).adapter, EmberData)
        assert "post" in serialize(post)

    def test_adapter_option(self, post):
        assert isinstance(SerializableResource(post, adapter="ember_data").adapter, EmberData)

    def test_adapter_class_passthrough(self, post):
        assert isinstance(SerializableResource(post, adapter=EmberData).adapter, EmberData)

    def test_unknown_adapter(self, post):
        with pytest.raises(UnknownAdapterFault) as exc_info:
            serialize(post, adapter="json_api")
        assert "json_api" in exc_info.value.message

    def test_as_json_alias(self, post):
        resource = SerializableResource(post, include="nothing")
        assert resource.as_json() == {"id": 1, "title": "Hello", "body": "World"}


class TestAdapterRegistry:
    def test_builtin_adapters(self):
        assert adapter_class("attributes") is Attributes
        assert adapter_class("ember_data") is EmberData
        assert {"attributes", "ember_data"} <= set(registered_adapters())

    def test_register_custom_adapter(self, post):
        @register_adapter("ids_only")
        class IdsOnly(Adapter):
            def serializable_hash(self, options=None):
                return {"id": self.serializer.object.id}

        assert IdsOnly.name == "ids_only"
        assert serialize(post, adapter="ids_only") == {"id": 1}

    def test_base_adapter_is_abstract(self, post):
        with pytest.raises(NotImplementedError):
            Adapter(PostSerializer(post)).serializable_hash()
