"""Settings management with Pydantic Settings.

Configuration priority (highest to lowest):
1. Environment variables (DEFERLRU_* prefix)
2. .env file in current directory
3. User config file (~/.config/deferlru/config.yaml)
4. Default values
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# User config directory
USER_CONFIG_DIR = Path.home() / ".config" / "deferlru"
USER_CONFIG_FILE = USER_CONFIG_DIR / "config.yaml"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _load_user_config() -> dict[str, Any]:
    """Load user configuration from ~/.config/deferlru/config.yaml."""
    if USER_CONFIG_FILE.exists():
        with open(USER_CONFIG_FILE, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    return {}


class CacheSettings(BaseSettings):
    """Cache defaults and runtime flags.

    Example .env file:
        DEFERLRU_UPDATE_BATCH_SIZE=256
        DEFERLRU_LOG_LEVEL=DEBUG

    Example config.yaml:
        default_size: 1024
        detect_reentrancy: true
    """

    model_config = SettingsConfigDict(
        env_prefix="DEFERLRU_",
        env_file=".env",
        extra="ignore",
    )

    # Capacity used when the CLI is not given --size
    default_size: int = Field(default=128, gt=0)

    # Number of insertions applied per guarded batch in update()
    update_batch_size: int = Field(default=128, ge=1, le=65536)

    # Initial flag values for new caches
    detect_reentrancy: bool = True
    suspend_auto_purge: bool = False

    # Number of CallbackFailure records kept per cache
    failure_history: int = Field(default=32, ge=0)

    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {value!r}"
            )
        return level

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)


@lru_cache
def get_settings() -> CacheSettings:
    """Get cached settings instance.

    Loads configuration from:
    1. Default values
    2. User config file (~/.config/deferlru/config.yaml)
    3. .env file
    4. Environment variables (highest priority)
    """
    user_config = _load_user_config()

    # Init kwargs outrank env vars in pydantic-settings; keep env on top.
    prefix = CacheSettings.model_config.get("env_prefix", "")
    overrides = {
        key: value
        for key, value in user_config.items()
        if f"{prefix}{key}".upper() not in {k.upper() for k in os.environ}
    }
    return CacheSettings(**overrides)


def init_user_config() -> Path:
    """Initialize user config directory and return the config file path.

    Creates ~/.config/deferlru/config.yaml with a template if it doesn't exist.
    """
    USER_CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    if not USER_CONFIG_FILE.exists():
        template = """# deferlru configuration
# This file is loaded automatically. Environment variables take priority.

# Capacity used by `deferlru simulate` when --size is not given
# default_size: 128

# Insertions applied per guarded batch in LRUCache.update()
# update_batch_size: 128

# Initial flags for new caches
# detect_reentrancy: true
# suspend_auto_purge: false

# Number of eviction-callback failures remembered per cache
# failure_history: 32

# CRITICAL | ERROR | WARNING | INFO | DEBUG
# log_level: WARNING
"""
        USER_CONFIG_FILE.write_text(template, encoding="utf-8")

    return USER_CONFIG_FILE
