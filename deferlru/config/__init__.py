"""Configuration management for deferlru."""

from deferlru.config.settings import (
    USER_CONFIG_FILE,
    CacheSettings,
    get_settings,
    init_user_config,
)

__all__ = ["CacheSettings", "USER_CONFIG_FILE", "get_settings", "init_user_config"]
