"""
Tests for association descriptors and their resolution.
"""

from dataclasses import dataclass

from sideload import (
    USE_ATTRIBUTE,
    Attribute,
    BelongsTo,
    CollectionSerializer,
    HasMany,
    HasOne,
    Serializer,
)
from sideload.serializers.relations import Association, as_plain_data

from tests.models import (
    AuthorSerializer,
    CommentSerializer,
    Model,
    PostSerializer,
    build_post,
)


def resolve(serializer, name):
    for association in serializer.associations("*"):
        if association.name == name:
            return association
    raise LookupError(name)


# ============================================================================
# Serializer resolution
# ============================================================================


class TestBuildAssociation:
    def test_single_resource_gets_serializer(self, post):
        association = resolve(PostSerializer(post), "author")
        assert isinstance(association.serializer, AuthorSerializer)
        assert association.serializer.object is post.author
        assert association.key == "author"

    def test_collection_gets_collection_serializer(self, post):
        association = resolve(PostSerializer(post), "comments")
        assert isinstance(association.serializer, CollectionSerializer)
        assert all(isinstance(s, CommentSerializer) for s in association.serializer)
        assert association.sideloaded

    def test_child_knows_its_context(self, post):
        association = resolve(PostSerializer(post), "author")
        assert association.serializer.instance_options["serializer_context_class"] is PostSerializer

    def test_parent_options_are_handed_down(self, post):
        association = resolve(PostSerializer(post, scope="viewer"), "author")
        assert association.serializer.scope == "viewer"

    def test_nil_value(self):
        association = resolve(PostSerializer(build_post(1, author=None)), "author")
        assert association.serializer is None
        assert association.virtual_value is None
        assert "virtual_value" not in association.options

    def test_explicit_serializer_option(self, post):
        class ShortAuthorSerializer(Serializer):
            name = Attribute()

        class ExplicitSerializer(Serializer):
            author = BelongsTo(serializer=ShortAuthorSerializer)

        association = resolve(ExplicitSerializer(post), "author")
        assert isinstance(association.serializer, ShortAuthorSerializer)

    def test_explicit_serializer_for_collection_members(self, post):
        class ShortCommentSerializer(Serializer):
            id = Attribute()

        class ExplicitSerializer(Serializer):
            comments = HasMany(serializer=ShortCommentSerializer)

        association = resolve(ExplicitSerializer(post), "comments")
        assert all(isinstance(s, ShortCommentSerializer) for s in association.serializer)


# ============================================================================
# Virtual values
# ============================================================================


@dataclass
class Point:
    x: int
    y: int


class TestVirtualValues:
    def test_plain_mapping_is_virtual(self):
        class MetaSerializer(Serializer):
            stats = HasOne()

        association = resolve(MetaSerializer(Model(stats={"views": 3})), "stats")
        assert association.serializer is None
        assert association.virtual_value == {"views": 3}

    def test_collection_without_member_serializer_falls_back(self):
        class TaggedSerializer(Serializer):
            tags = HasMany()

        association = resolve(TaggedSerializer(Model(tags=["a", "b"])), "tags")
        assert association.serializer is None
        assert association.virtual_value == ["a", "b"]

    def test_fallback_uses_plain_data_hooks(self):
        class PathSerializer(Serializer):
            points = HasMany()

        association = resolve(PathSerializer(Model(points=[Point(1, 2)])), "points")
        assert association.virtual_value == [{"x": 1, "y": 2}]

    def test_bare_object_is_not_virtual(self):
        class OpaqueSerializer(Serializer):
            handle = HasOne()

        association = resolve(OpaqueSerializer(Model(handle=object())), "handle")
        assert association.serializer is None
        assert "virtual_value" not in association.options

    def test_as_plain_data(self):
        class Jsonable:
            def as_json(self):
                return {"ok": True}

        assert as_plain_data(Jsonable()) == {"ok": True}
        assert as_plain_data([Point(0, 1)]) == [{"x": 0, "y": 1}]
        assert as_plain_data(5) == 5


# ============================================================================
# Options
# ============================================================================


class TestAssociationOptions:
    def test_value_rule_and_key(self, post):
        class RecentSerializer(Serializer):
            last_comments = HasMany(lambda ctx: ctx.object.comments[-1:], key="recent")

        association = resolve(RecentSerializer(post), "last_comments")
        assert association.key == "recent"
        assert [s.object.id for s in association.serializer] == [2]

    def test_use_attribute_falls_back_to_read(self, post):
        class LinkedSerializer(Serializer):
            comments = HasMany(
                lambda ctx: USE_ATTRIBUTE,
                links={"related": lambda ctx: f"/posts/{ctx.object.id}/comments"},
            )

        association = resolve(LinkedSerializer(post), "comments")
        assert len(association.serializer) == 2
        assert association.links == {"related": "/posts/1/comments"}

    def test_literal_and_callable_meta(self, post):
        class MetaSerializer(Serializer):
            comments = HasMany(meta=lambda ctx: {"count": len(ctx.object.comments)})
            author = BelongsTo(meta={"kind": "person"})

        serializer = MetaSerializer(post)
        assert resolve(serializer, "comments").meta == {"count": 2}
        assert resolve(serializer, "author").meta == {"kind": "person"}

    def test_include_data_false_skips_serializer(self, post):
        class LinkOnlySerializer(Serializer):
            comments = HasMany(include_data=False, links={"self": "/c"})

        association = resolve(LinkOnlySerializer(post), "comments")
        assert association.serializer is None
        assert "virtual_value" not in association.options
        assert association.links == {"self": "/c"}
        assert association.include_data is False

    def test_conditions(self, post):
        class ConditionalSerializer(Serializer):
            author = BelongsTo(if_="show_author")
            comments = HasMany(unless=lambda s: True)

            def show_author(self):
                return self.scope == "admin"

        assert [a.name for a in ConditionalSerializer(post, scope="admin").associations()] == ["author"]
        assert list(ConditionalSerializer(post, scope="guest").associations()) == []

    def test_include_tree_selects(self, post):
        serializer = PostSerializer(post)
        assert [a.name for a in serializer.associations("author")] == ["author"]
        assert [a.name for a in serializer.associations("comments.author")] == ["comments"]

    def test_no_object_no_associations(self):
        assert list(PostSerializer(None).associations()) == []

    def test_association_repr(self):
        assert repr(Association("author", None, {})) == "<Association 'author' -> nil>"
