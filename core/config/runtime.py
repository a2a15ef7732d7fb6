"""
Runtime Configuration

Central configuration for the ledger, the watcher, the artifact store and the API.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


ENV_PREFIX = "ESCROW_"


@dataclass
class LedgerConfig:
    """Configuration for the release ledger."""
    owner: Optional[str] = None
    admin: Optional[str] = None
    fee_rate: int = 100  # basis points
    fee_recipient: Optional[str] = None  # defaults to owner


@dataclass
class WatcherConfig:
    """Configuration for the polling watcher."""
    poll_interval_s: float = 12.0
    caller: Optional[str] = None  # defaults to ledger admin


@dataclass
class StoreConfig:
    """Configuration for the artifact store."""
    artifact_dir: str = "deposits"


@dataclass
class ApiConfig:
    """Configuration for the HTTP adapter."""
    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for the escrow service.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def watcher_caller(self) -> Optional[str]:
        return self.watcher.caller or self.ledger.admin

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - ESCROW_OWNER: Owner principal (OWNER role)
        - ESCROW_ADMIN: Admin principal (ADMIN role)
        - ESCROW_FEE_RATE: Fee rate in basis points
        - ESCROW_FEE_RECIPIENT: Fee recipient account
        - ESCROW_POLL_INTERVAL: Watcher poll interval in seconds
        - ESCROW_ARTIFACT_DIR: Artifact store directory
        - ESCROW_API_PORT: HTTP port
        - ESCROW_LOG_LEVEL: Logging level name
        """
        overrides: dict[str, Any] = {}

        # Ledger settings
        if os.getenv(f"{ENV_PREFIX}OWNER"):
            overrides.setdefault("ledger", {})["owner"] = os.getenv(f"{ENV_PREFIX}OWNER")
        if os.getenv(f"{ENV_PREFIX}ADMIN"):
            overrides.setdefault("ledger", {})["admin"] = os.getenv(f"{ENV_PREFIX}ADMIN")
        if os.getenv(f"{ENV_PREFIX}FEE_RATE"):
            overrides.setdefault("ledger", {})["fee_rate"] = int(os.getenv(f"{ENV_PREFIX}FEE_RATE", "100"))
        if os.getenv(f"{ENV_PREFIX}FEE_RECIPIENT"):
            overrides.setdefault("ledger", {})["fee_recipient"] = os.getenv(f"{ENV_PREFIX}FEE_RECIPIENT")

        # Watcher settings
        if os.getenv(f"{ENV_PREFIX}POLL_INTERVAL"):
            overrides.setdefault("watcher", {})["poll_interval_s"] = float(
                os.getenv(f"{ENV_PREFIX}POLL_INTERVAL", "12")
            )

        # Store settings
        if os.getenv(f"{ENV_PREFIX}ARTIFACT_DIR"):
            overrides.setdefault("store", {})["artifact_dir"] = os.getenv(f"{ENV_PREFIX}ARTIFACT_DIR")

        # API settings
        if os.getenv(f"{ENV_PREFIX}API_PORT"):
            overrides.setdefault("api", {})["port"] = int(os.getenv(f"{ENV_PREFIX}API_PORT", "3000"))

        if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            overrides["log_level"] = os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "INFO").upper()

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        ledger_data = data.get("ledger", {})
        watcher_data = data.get("watcher", {})
        store_data = data.get("store", {})
        api_data = data.get("api", {})

        return cls(
            ledger=LedgerConfig(**ledger_data) if ledger_data else LedgerConfig(),
            watcher=WatcherConfig(**watcher_data) if watcher_data else WatcherConfig(),
            store=StoreConfig(**store_data) if store_data else StoreConfig(),
            api=ApiConfig(**api_data) if api_data else ApiConfig(),
            log_level=str(data.get("log_level", "INFO")).upper(),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        import copy
        new_config = copy.deepcopy(self)

        for section in ("ledger", "watcher", "store", "api"):
            for key, value in overrides.get(section, {}).items():
                setattr(getattr(new_config, section), key, value)

        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "ledger": {
                "owner": self.ledger.owner,
                "admin": self.ledger.admin,
                "fee_rate": self.ledger.fee_rate,
                "fee_recipient": self.ledger.fee_recipient,
            },
            "watcher": {
                "poll_interval_s": self.watcher.poll_interval_s,
                "caller": self.watcher.caller,
            },
            "store": {
                "artifact_dir": self.store.artifact_dir,
            },
            "api": {
                "host": self.api.host,
                "port": self.api.port,
            },
            "log_level": self.log_level,
            "extra": self.extra,
        }


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: Optional[RuntimeConfig]) -> None:
    """Set the default runtime configuration (None resets to env on next get)."""
    global _default_config
    _default_config = config
