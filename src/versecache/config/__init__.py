"""
Configuration for the content cache.
"""

from .config_loader import CacheConfig, DEFAULT_CONFIG

__all__ = ["CacheConfig", "DEFAULT_CONFIG"]
