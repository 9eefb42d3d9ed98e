"""
Shared test fixtures for the Sideload test suite.
"""

import pytest

from sideload.config import reset_config
from sideload.serializers.lookup import registry

from tests.models import Author, Comment, build_post


# ============================================================================
# Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_config():
    """Every test starts from the default configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def isolated_registry():
    """Serializers declared inside a test do not leak into the next one."""
    snapshot = registry.snapshot()
    yield registry
    registry.restore(snapshot)


# ============================================================================
# Resources
# ============================================================================


@pytest.fixture
def ada():
    return Author(id=1, name="Ada")


@pytest.fixture
def grace():
    return Author(id=2, name="Grace")


@pytest.fixture
def comments(grace):
    return [
        Comment(id=1, body="First!", author=grace),
        Comment(id=2, body="Nice post", author=None),
    ]


@pytest.fixture
def post(ada, comments):
    return build_post(1, comments=comments, author=ada, title="Hello", body="World")


@pytest.fixture
def posts(ada, grace, comments):
    shared = comments[0]
    return [
        build_post(1, comments=[shared, comments[1]], author=ada),
        build_post(2, comments=[shared], author=grace),
    ]
