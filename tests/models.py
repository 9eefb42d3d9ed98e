"""
Plain resource classes and serializers shared by the test suite.
"""

from sideload import Attribute, BelongsTo, HasMany, Serializer


class Model:
    """Minimal resource: keyword arguments become attributes."""

    def __init__(self, **attrs):
        for key, value in attrs.items():
            setattr(self, key, value)

    def __repr__(self):
        return f"<{type(self).__name__} id={getattr(self, 'id', None)}>"


class Author(Model):
    pass


class Comment(Model):
    pass


class Post(Model):
    pass


class Page(list):
    """A paginated slice of a larger result set."""

    def __init__(self, items, *, current_page=1, total_pages=1, total_count=None, model=None):
        super().__init__(items)
        self.current_page = current_page
        self.total_pages = total_pages
        self.total_count = len(items) if total_count is None else total_count
        self.next_page = current_page + 1 if current_page < total_pages else None
        self.prev_page = current_page - 1 if current_page > 1 else None
        if model is not None:
            self.model = model


class AuthorSerializer(Serializer):
    id = Attribute()
    name = Attribute()


class CommentSerializer(Serializer):
    id = Attribute()
    body = Attribute()
    author = BelongsTo()


class PostSerializer(Serializer):
    id = Attribute()
    title = Attribute()
    body = Attribute()
    comments = HasMany(sideload=True)
    author = BelongsTo()


def build_post(post_id=1, *, comments=None, author=None, title=None, body=None):
    return Post(
        id=post_id,
        title=title or f"Post {post_id}",
        body=body or f"Body of post {post_id}",
        comments=list(comments or []),
        author=author,
    )
