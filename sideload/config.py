"""
Sideload configuration.

One process-wide ``SideloadConfig`` is read by serializers, adapters
and the fragment cache. It can be set in code::

    import sideload

    sideload.configure(adapter="ember_data", default_include="*")

or loaded from files and the environment::

    loader = ConfigLoader.load(["sideload.yaml"], env_file=".env")
    sideload.configure(loader.to_config())

Merge order (later overrides earlier): config files (JSON/YAML), the
``.env`` file, ``SIDELOAD_*`` environment variables, manual overrides.
Double underscores nest: ``SIDELOAD_CACHE__BACKEND=redis``.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import threading
from dataclasses import dataclass, field
from glob import glob
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from dotenv import dotenv_values

from .cache.core import CacheConfig, FragmentStore

logger = logging.getLogger("sideload.config")


# ============================================================================
# Config object
# ============================================================================

@dataclass
class SideloadConfig:
    """
    Active settings.

    Attributes:
        adapter: Adapter used when a call names none ("attributes",
            "ember_data", or any registered name).
        default_include: Include spec applied when a call passes none.
            ``None`` means every association one level deep.
        serializer_lookup_enabled: When False, serializers are never
            inferred from resource classes; only explicit ones are used.
        policy_finder: ``finder(scope, obj) -> policy`` used for
            attribute-level read permissions.
        cache: Fragment cache settings.
        cache_store: A ready store instance; takes precedence over
            ``cache``.
    """
    adapter: str = "attributes"
    default_include: Any = None
    serializer_lookup_enabled: bool = True
    policy_finder: Optional[Callable[[Any, Any], Any]] = None
    cache: CacheConfig = field(default_factory=CacheConfig)
    cache_store: Optional[FragmentStore] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SideloadConfig":
        known = {f.name for f in dataclasses.fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        cache = values.get("cache")
        if isinstance(cache, dict):
            values["cache"] = CacheConfig.from_dict(cache)
        unknown = sorted(set(data) - known)
        if unknown:
            logger.debug("Ignoring unknown config keys: %s", unknown)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "adapter": self.adapter,
            "default_include": self.default_include,
            "serializer_lookup_enabled": self.serializer_lookup_enabled,
            "cache": self.cache.to_dict(),
        }


# ============================================================================
# Loader
# ============================================================================

class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > config files > defaults
    """

    def __init__(self, env_prefix: str = "SIDELOAD_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[list[str]] = None,
        env_prefix: str = "SIDELOAD_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from every source.

        Args:
            paths: Config file paths (glob patterns supported)
            env_prefix: Prefix for environment variables
            env_file: Path to a .env file
            overrides: Manual overrides (highest precedence)
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        for path_str in sorted(glob(pattern)):
            path = Path(path_str)
            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)
            else:
                logger.warning("Skipping config file with unknown format: %s", path)

    def _load_json_file(self, path: Path):
        with open(path) as f:
            data = json.load(f)
            self._merge_dict(self.config_data, data)

    def _load_yaml_file(self, path: Path):
        import yaml
        with open(path) as f:
            data = yaml.safe_load(f)
            if data:
                self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        if not Path(path).exists():
            logger.debug("No .env file at %s", path)
            return
        for key, value in dotenv_values(path).items():
            if key.startswith(self.env_prefix) and value is not None:
                self._set_nested(key, value)

    def _load_from_env(self):
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert SIDELOAD_CACHE__MAX_SIZE to nested dict."""
        key = key[len(self.env_prefix):]
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        lowered = value.lower()
        if lowered in ("true", "yes", "on"):
            return True
        if lowered in ("false", "no", "off"):
            return False
        if lowered in ("none", "null"):
            return None

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def to_config(self) -> SideloadConfig:
        return SideloadConfig.from_dict(self.config_data)


# ============================================================================
# Process-wide state
# ============================================================================

_lock = threading.Lock()
_config = SideloadConfig()
_store: Optional[FragmentStore] = None


def get_config() -> SideloadConfig:
    return _config


def configure(config: Optional[SideloadConfig] = None, **overrides: Any) -> SideloadConfig:
    """
    Replace the active configuration.

    With *config*, it becomes the active config (then *overrides* apply);
    otherwise *overrides* are applied on top of the current one. A
    ``cache`` override may be a ``CacheConfig`` or a plain dict.
    """
    global _config, _store
    cache = overrides.get("cache")
    if isinstance(cache, dict):
        overrides["cache"] = CacheConfig.from_dict(cache)
    with _lock:
        base = config if config is not None else _config
        _config = dataclasses.replace(base, **overrides)
        _store = None
    return _config


def reset_config() -> SideloadConfig:
    """Restore defaults and drop the memoized cache store."""
    global _config, _store
    with _lock:
        _config = SideloadConfig()
        _store = None
    return _config


def get_cache_store() -> Optional[FragmentStore]:
    """
    The store fragment caching reads from, or None when caching is off.

    An explicit ``cache_store`` wins; otherwise a store is built from
    ``cache`` on first use and reused until the config changes.
    """
    global _store
    config = _config
    if config.cache_store is not None:
        return config.cache_store
    if not config.cache.enabled:
        return None
    with _lock:
        if _store is None:
            from .cache.providers import create_cache_store
            _store = create_cache_store(config.cache)
        return _store
