"""
Tests for the name inflection helpers.
"""

import pytest

from sideload.utils.inflection import demodulize, pluralize, underscore


@pytest.mark.parametrize("name,expected", [
    ("Post", "post"),
    ("BlogPost", "blog_post"),
    ("HTTPRequest", "http_request"),
    ("blog-post", "blog_post"),
])
def test_underscore(name, expected):
    assert underscore(name) == expected


def test_demodulize():
    assert demodulize("api.v2.PostSerializer") == "PostSerializer"
    assert demodulize("PostSerializer") == "PostSerializer"


@pytest.mark.parametrize("word,expected", [
    ("post", "posts"),
    ("blog_post", "blog_posts"),
    ("category", "categories"),
    ("day", "days"),
    ("box", "boxes"),
    ("match", "matches"),
    ("person", "people"),
    ("news", "news"),
    ("", ""),
])
def test_pluralize(word, expected):
    assert pluralize(word) == expected
