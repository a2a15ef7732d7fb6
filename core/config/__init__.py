"""
Runtime Configuration Module

Provides configuration loading and management for the escrow service.
"""

from .runtime import (
    ENV_PREFIX,
    ApiConfig,
    LedgerConfig,
    RuntimeConfig,
    StoreConfig,
    WatcherConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "ENV_PREFIX",
    "ApiConfig",
    "LedgerConfig",
    "RuntimeConfig",
    "StoreConfig",
    "WatcherConfig",
    "get_default_config",
    "set_default_config",
]
