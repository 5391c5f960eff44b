"""
Configuration loader for the content cache.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "store": {
        "db_path": "local/versecache/bible.db",
    },
    "preferences": {
        "path": "local/versecache/preferences.json",
    },
    "source": {
        "url": None,
    },
    "fetch": {
        "timeout": 30,
        "user_agent": "VerseCache/1.0",
    },
    "sync": {
        # 0 = accept any snapshot, including an empty one
        "min_books": 0,
    },
}


class CacheConfig:
    """
    Configuration for the content cache.

    Loads an optional YAML file over the defaults, then applies environment
    variable overrides.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML config file (optional)
        """
        self.config_path = Path(config_path) if config_path else None
        self.config = copy.deepcopy(DEFAULT_CONFIG)
        if self.config_path:
            _merge(self.config, self._load_config())
        self._apply_env_overrides()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        logger.info(f"Loading config from: {self.config_path}")

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file {self.config_path}: {e}") from e

        if config is not None and not isinstance(config, dict):
            raise ValueError(f"Config file must contain a mapping: {self.config_path}")

        return config or {}

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to loaded config."""
        db_path = os.environ.get("VERSECACHE_DB_PATH")
        if db_path:
            self.config["store"]["db_path"] = db_path

        source_url = os.environ.get("VERSECACHE_SOURCE_URL")
        if source_url:
            self.config["source"]["url"] = source_url

        prefs_path = os.environ.get("VERSECACHE_PREFS_PATH")
        if prefs_path:
            self.config["preferences"]["path"] = prefs_path

    @property
    def db_path(self) -> str:
        return str(self.get("store.db_path"))

    @property
    def prefs_path(self) -> Path:
        return Path(self.get("preferences.path"))

    @property
    def source_url(self) -> Optional[str]:
        return self.get("source.url")

    @property
    def min_books(self) -> int:
        return int(self.get("sync.min_books", 0))

    def get_fetch_config(self) -> Dict[str, Any]:
        """Get fetch configuration."""
        return self.config.get("fetch", {})

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dotted key."""
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Recursively merge override into base in place."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
