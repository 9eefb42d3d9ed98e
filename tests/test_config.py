"""
Tests for configuration loading and the process-wide config.
"""

import json

import pytest

from sideload import Attribute, Serializer, configure, get_config, reset_config, serialize
from sideload.cache.backends.memory import MemoryStore
from sideload.cache.backends.null import NullStore
from sideload.cache.core import CacheConfig
from sideload.cache.faults import CacheConfigFault
from sideload.config import ConfigLoader, SideloadConfig, get_cache_store

from tests.models import Author


@pytest.fixture
def config_dir(tmp_path):
    (tmp_path / "base.json").write_text(json.dumps({
        "adapter": "attributes",
        "cache": {"enabled": False, "max_size": 50, "key_prefix": "app:"},
    }))
    (tmp_path / "local.yaml").write_text(
        "adapter: ember_data\n"
        "cache:\n"
        "  max_size: 200\n"
    )
    (tmp_path / ".env").write_text(
        "SIDELOAD_DEFAULT_INCLUDE=comments.author\n"
        "UNRELATED=1\n"
    )
    return tmp_path


# ============================================================================
# ConfigLoader
# ============================================================================


class TestConfigLoader:
    def test_json_file(self, config_dir):
        loader = ConfigLoader.load([str(config_dir / "base.json")])
        assert loader.get("cache.max_size") == 50
        assert loader.get("cache.key_prefix") == "app:"

    def test_later_files_override_earlier(self, config_dir):
        loader = ConfigLoader.load([str(config_dir / "base.json"), str(config_dir / "local.yaml")])
        assert loader.get("adapter") == "ember_data"
        assert loader.get("cache.max_size") == 200
        assert loader.get("cache.key_prefix") == "app:"

    def test_glob_patterns(self, config_dir):
        loader = ConfigLoader.load([str(config_dir / "*.json")])
        assert loader.get("adapter") == "attributes"

    def test_env_file(self, config_dir):
        loader = ConfigLoader.load(env_file=str(config_dir / ".env"))
        assert loader.get("default_include") == "comments.author"
        assert loader.get("unrelated") is None

    def test_missing_env_file(self, tmp_path):
        assert ConfigLoader.load(env_file=str(tmp_path / "nope.env")).config_data == {}

    def test_environment_variables(self, config_dir, monkeypatch):
        monkeypatch.setenv("SIDELOAD_CACHE__MAX_SIZE", "999")
        monkeypatch.setenv("SIDELOAD_CACHE__ENABLED", "yes")
        loader = ConfigLoader.load([str(config_dir / "base.json")])
        assert loader.get("cache.max_size") == 999
        assert loader.get("cache.enabled") is True

    def test_env_overrides_env_file(self, config_dir, monkeypatch):
        monkeypatch.setenv("SIDELOAD_DEFAULT_INCLUDE", "author")
        loader = ConfigLoader.load(env_file=str(config_dir / ".env"))
        assert loader.get("default_include") == "author"

    def test_overrides_win(self, config_dir, monkeypatch):
        monkeypatch.setenv("SIDELOAD_ADAPTER", "ember_data")
        loader = ConfigLoader.load(overrides={"adapter": "attributes"})
        assert loader.get("adapter") == "attributes"

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("APP_ADAPTER", "ember_data")
        assert ConfigLoader.load(env_prefix="APP_").get("adapter") == "ember_data"

    @pytest.mark.parametrize("raw,parsed", [
        ("on", True),
        ("off", False),
        ("null", None),
        ("42", 42),
        ("2.5", 2.5),
        ('["a", "b"]', ["a", "b"]),
        ("comments", "comments"),
    ])
    def test_value_parsing(self, raw, parsed):
        assert ConfigLoader()._parse_value(raw) == parsed

    def test_to_config(self, config_dir):
        config = ConfigLoader.load(
            [str(config_dir / "base.json"), str(config_dir / "local.yaml")],
            env_file=str(config_dir / ".env"),
        ).to_config()

        assert isinstance(config, SideloadConfig)
        assert config.adapter == "ember_data"
        assert config.default_include == "comments.author"
        assert config.cache == CacheConfig(max_size=200, key_prefix="app:")


# ============================================================================
# Process-wide config
# ============================================================================


class TestConfigure:
    def test_defaults(self):
        config = get_config()
        assert config.adapter == "attributes"
        assert config.default_include is None
        assert config.cache.enabled is False

    def test_overrides(self):
        configure(adapter="ember_data")
        assert get_config().adapter == "ember_data"
        configure(default_include="author")
        assert get_config().adapter == "ember_data"

    def test_replace_whole_config(self):
        configure(SideloadConfig(adapter="ember_data"), default_include="*")
        assert get_config().adapter == "ember_data"
        assert get_config().default_include == "*"

    def test_reset(self):
        configure(adapter="ember_data")
        reset_config()
        assert get_config().adapter == "attributes"

    def test_unknown_option(self):
        with pytest.raises(TypeError):
            configure(colour="blue")

    def test_to_dict(self):
        data = configure(cache=CacheConfig(backend="null")).to_dict()
        assert data["cache"]["backend"] == "null"
        assert "cache_store" not in data

    def test_from_dict_ignores_unknown_keys(self):
        config = SideloadConfig.from_dict({"adapter": "ember_data", "theme": "dark"})
        assert config.adapter == "ember_data"

    def test_default_include_is_used(self, post):
        configure(default_include="author")
        assert set(serialize(post)) == {"id", "title", "body", "author"}

    def test_lookup_can_be_disabled(self, ada):
        configure(serializer_lookup_enabled=False)
        assert Serializer.serializer_for(ada) is None

        class NameSerializer(Serializer):
            name = Attribute()

        assert serialize(ada, serializer=NameSerializer) == {"name": "Ada"}


class TestCacheStore:
    def test_disabled_by_default(self):
        assert get_cache_store() is None

    def test_explicit_store_wins(self):
        store = MemoryStore()
        configure(cache={"enabled": False}, cache_store=store)
        assert get_cache_store() is store

    def test_store_is_built_once(self):
        configure(cache={"enabled": True, "backend": "null"})
        store = get_cache_store()
        assert isinstance(store, NullStore)
        assert get_cache_store() is store

    def test_reconfigure_rebuilds_store(self):
        configure(cache={"enabled": True})
        first = get_cache_store()
        configure(cache={"enabled": True, "max_size": 3})
        assert get_cache_store() is not first

    def test_unknown_backend_surfaces(self):
        configure(cache={"enabled": True, "backend": "tape"})
        with pytest.raises(CacheConfigFault):
            get_cache_store()
